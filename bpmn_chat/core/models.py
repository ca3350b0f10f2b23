"""
Data models and type definitions for the BPMN chat assistant.
"""

from enum import Enum
from typing import List, Optional, TypedDict
from pydantic import BaseModel, Field


class FallbackMode(str, Enum):
    """How the canned development payload replaces the live model."""
    DISABLED = "disabled"    # Live model only
    ON_ERROR = "on_error"    # Live model, canned payload on transport/auth/timeout failure
    ALWAYS = "always"        # Canned payload in place of a live call


class Intent(str, Enum):
    """What a turn asks the model to do."""
    CREATE = "create"
    UPDATE = "update"


class SessionState(str, Enum):
    IDLE = "idle"
    ESTABLISHED = "established"


class GatewayCause(str, Enum):
    """Classified reasons for a failed completion call."""
    NETWORK = "Network"
    AUTH = "Auth"
    TIMEOUT = "Timeout"
    UNKNOWN = "Unknown"


class NodeNames(str, Enum):
    """Enum for node names to avoid string literals."""
    BUILD_INSTRUCTION = "build_instruction"
    COMPLETE = "complete"
    SANITIZE = "sanitize"


class ElementType(str, Enum):
    """Closed set of BPMN element kinds the model may emit."""
    START_EVENT = "bpmn:StartEvent"
    END_EVENT = "bpmn:EndEvent"
    TASK = "bpmn:Task"
    USER_TASK = "bpmn:UserTask"
    SERVICE_TASK = "bpmn:ServiceTask"
    MANUAL_TASK = "bpmn:ManualTask"
    SCRIPT_TASK = "bpmn:ScriptTask"
    BUSINESS_RULE_TASK = "bpmn:BusinessRuleTask"
    SEND_TASK = "bpmn:SendTask"
    RECEIVE_TASK = "bpmn:ReceiveTask"
    EXCLUSIVE_GATEWAY = "bpmn:ExclusiveGateway"
    SEQUENCE_FLOW = "bpmn:SequenceFlow"

    @property
    def is_connector(self) -> bool:
        return self in CONNECTOR_TYPES


CONNECTOR_TYPES = frozenset({ElementType.SEQUENCE_FLOW})


class ProcessElement(BaseModel):
    """Model for one node or connector of a BPMN process."""
    id: str = Field(min_length=1, description="Unique element identifier, e.g. task_1")
    name: Optional[str] = Field(
        default=None,
        description="Human-readable label of the element"
    )
    type: ElementType = Field(description="BPMN element type")
    source: Optional[str] = Field(
        default=None,
        description="Id of the source element (sequence flows only)"
    )
    target: Optional[str] = Field(
        default=None,
        description="Id of the target element (sequence flows only)"
    )


class ProcessPayload(BaseModel):
    """Structured output of one turn: a complete BPMN process."""
    id: str = Field(min_length=1, description="Process identifier")
    description: Optional[str] = Field(
        default=None,
        description="Short summary of the process"
    )
    elements: List[ProcessElement] = Field(
        description="All events, tasks, gateways and sequence flows of the process"
    )

    def flow_count(self) -> int:
        return sum(1 for element in self.elements if element.type.is_connector)

    def element_ids(self) -> List[str]:
        return [element.id for element in self.elements]

    def same_elements(self, other: "ProcessPayload") -> bool:
        """Compare two payloads ignoring element order."""
        if self.id != other.id or self.description != other.description:
            return False
        mine = sorted(self.elements, key=lambda e: e.id)
        theirs = sorted(other.elements, key=lambda e: e.id)
        return mine == theirs


class CompletionOptions(BaseModel):
    """Per-call options for the completion gateway."""
    max_output_tokens: int = Field(gt=0, description="Maximum tokens to generate")
    temperature: float = Field(ge=0.0, le=1.0, description="Sampling temperature")
    timeout: float = Field(gt=0.0, description="Request timeout in seconds")


class TurnResult(BaseModel):
    """What a successful turn hands back to the UI."""
    intent: Intent
    payload: ProcessPayload
    message: str


class TurnState(TypedDict, total=False):
    """Shared state for the per-turn LangGraph workflow."""
    user_text: str
    intent: Intent
    current_payload: Optional[ProcessPayload]
    instruction: str
    raw_response: str
    payload: ProcessPayload
