"""
Utility functions for the BPMN chat assistant.
"""

from pathlib import Path
from typing import Optional

from bpmn_chat.agents.process_agent.config import SystemConfig
from bpmn_chat.agents.process_agent.session import Session, SessionOrchestrator
from bpmn_chat.core.exceptions import ConfigurationError
from bpmn_chat.core.gateway import (
    CannedCompletionGateway,
    CompletionGateway,
    FallbackCompletionGateway,
    LLMCompletionGateway,
)
from bpmn_chat.core.logger import Logger
from bpmn_chat.core.model_manager import ModelManager, ModelSpec
from bpmn_chat.core.models import FallbackMode
from bpmn_chat.core.sanitizer import ResponseSanitizer
from bpmn_chat.core.sinks import PayloadSink


def create_model_manager(cfg: SystemConfig) -> ModelManager:
    """
    Create a model manager from the system configuration.

    Args:
        cfg: System configuration object

    Returns:
        Configured ModelManager instance
    """
    if not cfg.api_key:
        raise ConfigurationError(
            "No API key configured. Set OPENROUTER_API_KEY or use the canned fallback payload."
        )

    model_spec = ModelSpec(
        name=cfg.model,
        api_key=cfg.api_key,
        base_url=cfg.openrouter_base_url,
        temperature=cfg.temperature,
        timeout=cfg.llm_timeout,
        max_tokens=cfg.max_output_tokens,
    )
    return ModelManager(model_spec)


def create_gateway(cfg: SystemConfig) -> CompletionGateway:
    """
    Select the completion gateway for the configured fallback mode.

    Args:
        cfg: System configuration object

    Returns:
        Live, canned, or live-with-fallback gateway
    """
    canned = CannedCompletionGateway(payload_path=Path(cfg.fallback_payload_path))

    if cfg.fallback_mode == FallbackMode.ALWAYS:
        Logger.log_warning("Using canned fallback payload instead of the live model")
        return canned

    live = LLMCompletionGateway(create_model_manager(cfg))
    if cfg.fallback_mode == FallbackMode.ON_ERROR:
        Logger.log_info("Canned fallback payload enabled for unreachable model")
        return FallbackCompletionGateway(primary=live, fallback=canned)

    return live


def initialize_process_assistant(
    cfg: SystemConfig,
    sink: Optional[PayloadSink] = None,
    session: Optional[Session] = None,
) -> SessionOrchestrator:
    """
    Initialize the assistant for one conversation.

    Args:
        cfg: System configuration
        sink: Receiver of accepted payloads
        session: Existing session to continue, a new one when omitted

    Returns:
        SessionOrchestrator ready to handle turns
    """
    Logger.log_title("INITIALIZING BPMN CHAT ASSISTANT")

    try:
        gateway = create_gateway(cfg)
        orchestrator = SessionOrchestrator(
            gateway=gateway,
            options=cfg.completion_options(),
            sanitizer=ResponseSanitizer(enforce_connectivity=cfg.enforce_connectivity),
            sink=sink,
            session=session,
            gateway_retries=cfg.gateway_retries,
        )
    except Exception as e:
        Logger.log_error(f"System initialization failed: {e}")
        raise

    Logger.log_title("SYSTEM INITIALIZATION COMPLETE")
    return orchestrator
