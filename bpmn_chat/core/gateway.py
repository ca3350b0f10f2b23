"""
Completion gateways: the only place the assistant talks to a language model.

Every implementation takes one instruction string and returns raw text or
raises GatewayError. Substitutes for the live model (the canned development
payload, the fallback wrapper) implement the same interface so they can be
swapped in by configuration.
"""

import time

from pathlib import Path
from typing import FrozenSet, Iterable, Optional, Protocol, runtime_checkable

import openai
from langchain_core.messages import HumanMessage

from bpmn_chat.config import FALLBACK_PAYLOAD
from bpmn_chat.core.exceptions import GatewayError
from bpmn_chat.core.logger import Logger
from bpmn_chat.core.model_manager import ModelManager
from bpmn_chat.core.models import CompletionOptions, GatewayCause


DEFAULT_FALLBACK_CAUSES: FrozenSet[GatewayCause] = frozenset({
    GatewayCause.NETWORK,
    GatewayCause.AUTH,
    GatewayCause.TIMEOUT,
})


@runtime_checkable
class CompletionGateway(Protocol):
    def complete(self, instruction: str, options: CompletionOptions) -> str:
        """Return the raw model text for one instruction or raise GatewayError."""
        ...


def classify_failure(error: BaseException) -> GatewayCause:
    """Map a client exception to a gateway failure cause."""
    if isinstance(error, (openai.APITimeoutError, TimeoutError)):
        return GatewayCause.TIMEOUT
    if isinstance(error, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return GatewayCause.AUTH
    if isinstance(error, (openai.APIConnectionError, ConnectionError)):
        return GatewayCause.NETWORK
    return GatewayCause.UNKNOWN


def _content_text(content) -> str:
    if isinstance(content, str):
        return content
    # Some providers return a list of content blocks
    parts = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


class LLMCompletionGateway:
    """Live gateway backed by an OpenAI-compatible chat model."""

    def __init__(self, model_manager: ModelManager):
        self.model_manager = model_manager

    def complete(self, instruction: str, options: CompletionOptions) -> str:
        start = time.monotonic()
        try:
            llm = self.model_manager.get_model(
                max_tokens=options.max_output_tokens,
                temperature=options.temperature,
                timeout=options.timeout,
            )
            response = llm.invoke([HumanMessage(content=instruction)])
        except Exception as e:
            cause = classify_failure(e)
            Logger.log_error(f"Completion failed ({cause.value}): {type(e).__name__}: {e}")
            raise GatewayError(
                f"The language model could not be reached ({cause.value}).",
                context={"error": type(e).__name__},
                cause=cause,
            ) from e
        finally:
            Logger.log_elapsed(time.monotonic() - start)

        return _content_text(response.content)


class CannedCompletionGateway:
    """
    Deterministic stand-in for the live model.

    Returns the same pre-baked payload text for every instruction. Used
    during development and when the live service is unavailable.
    """

    def __init__(self, payload_text: Optional[str] = None, payload_path: Path = FALLBACK_PAYLOAD):
        """
        Args:
            payload_text: Text to return; read from payload_path when omitted
            payload_path: JSON file holding the canned payload
        """
        self._payload_text = payload_text
        self.payload_path = payload_path

    def complete(self, instruction: str, options: CompletionOptions) -> str:
        if self._payload_text is None:
            Logger.log_info(f"Loading canned payload from {self.payload_path}")
            try:
                self._payload_text = self.payload_path.read_text(encoding="utf-8")
            except OSError as e:
                Logger.log_error(f"Canned payload unavailable: {type(e).__name__}: {e}")
                raise GatewayError(
                    f"The canned payload could not be read from {self.payload_path}.",
                    context={"error": type(e).__name__},
                    cause=GatewayCause.UNKNOWN,
                ) from e
        return self._payload_text


class FallbackCompletionGateway:
    """
    Delegates to a fallback gateway when the primary cannot be reached.

    Only GatewayError with one of the configured causes is absorbed. Output
    that arrives but is unusable is a problem for the sanitizer, not for
    this wrapper.
    """

    def __init__(
        self,
        primary: CompletionGateway,
        fallback: CompletionGateway,
        causes: Iterable[GatewayCause] = DEFAULT_FALLBACK_CAUSES,
    ):
        self.primary = primary
        self.fallback = fallback
        self.causes = frozenset(causes)

    def complete(self, instruction: str, options: CompletionOptions) -> str:
        try:
            return self.primary.complete(instruction, options)
        except GatewayError as e:
            if e.cause not in self.causes:
                raise
            Logger.log_warning(f"Primary gateway failed ({e.cause.value}); using fallback payload")
            return self.fallback.complete(instruction, options)
