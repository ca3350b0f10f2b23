"""Exception hierarchy for the BPMN chat assistant."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from bpmn_chat.core.models import GatewayCause


@dataclass(eq=False)
class ProcessAssistantError(Exception):
    """Base exception type for all assistant errors."""

    message: str
    context: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        if not self.context:
            return self.message
        return f"{self.message} | context={self.context}"


class ConfigurationError(ProcessAssistantError):
    """Raised when configuration is missing or invalid."""


class InvalidInput(ProcessAssistantError):
    """Raised when the user text or description is empty."""


@dataclass(eq=False)
class GatewayError(ProcessAssistantError):
    """Raised when the completion service could not be reached or answered."""

    cause: GatewayCause = GatewayCause.UNKNOWN


class ModelRefused(ProcessAssistantError):
    """Raised when the model replied with the refusal sentinel."""


@dataclass(eq=False)
class MalformedOutput(ProcessAssistantError):
    """Raised when the model output is not parseable JSON."""

    raw_text: str = ""


@dataclass(eq=False)
class SchemaViolation(ProcessAssistantError):
    """Raised when parsed output violates the process payload contract."""

    path: str = ""


@dataclass(eq=False)
class ConnectivityViolation(ProcessAssistantError):
    """Raised when a payload is not one connected process graph."""

    element_ids: List[str] = field(default_factory=list)


class SinkError(ProcessAssistantError):
    """Raised when an accepted payload could not be handed to the sink."""
