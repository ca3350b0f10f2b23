"""
Configuration management for the BPMN chat assistant.
"""

from typing import Optional
from pydantic import BaseModel, Field
from os import getenv
import bpmn_chat.config as cfg
from bpmn_chat.core.models import CompletionOptions, FallbackMode

class SystemConfig(BaseModel):
    """System configuration for the process assistant."""
    openrouter_base_url: str = Field(
        default_factory=lambda: getenv("BPMN_CHAT_BASE_URL", cfg.OPENROUTER_BASE_URL),
        description="Base URL for OpenAI-compatible API"
    )
    model: str = Field(
        default_factory=lambda: getenv("BPMN_CHAT_MODEL", cfg.GENERATE_MODEL),
        description="Model that creates and updates processes"
    )
    api_key: Optional[str] = Field(
        default_factory=lambda: getenv("OPENROUTER_API_KEY"),
        description="API key for the model endpoint"
    )
    max_output_tokens: int = Field(
        default=cfg.MAX_OUTPUT_TOKENS,
        gt=0,
        description="Max tokens the model may generate per turn"
    )
    temperature: float = Field(
        default=cfg.TEMPERATURE,
        ge=0.0,
        le=1.0,
        description="Sampling temperature"
    )
    llm_timeout: float = Field(
        default=cfg.LLM_TIMEOUT,
        gt=0.0,
        description="Timeout in seconds for one completion call"
    )
    fallback_mode: FallbackMode = Field(
        default_factory=lambda: FallbackMode(
            getenv("BPMN_CHAT_FALLBACK_MODE", FallbackMode.DISABLED.value)
        ),
        description="Whether the canned development payload replaces the live model"
    )
    fallback_payload_path: str = Field(
        default=str(cfg.FALLBACK_PAYLOAD),
        description="Path to the canned development payload"
    )
    enforce_connectivity: bool = Field(
        default=True,
        description="Reject processes whose elements are not all connected"
    )
    gateway_retries: int = Field(
        default=cfg.GATEWAY_RETRIES,
        ge=0,
        description="Extra attempts after a network failure of the completion call"
    )

    def completion_options(self) -> CompletionOptions:
        return CompletionOptions(
            max_output_tokens=self.max_output_tokens,
            temperature=self.temperature,
            timeout=self.llm_timeout,
        )
