"""
Conversation sessions and the per-turn orchestrator.
"""

import threading
import uuid

from typing import Optional

from bpmn_chat.core.exceptions import InvalidInput, ProcessAssistantError, SinkError
from bpmn_chat.core.gateway import CompletionGateway
from bpmn_chat.core.instructions import InstructionBuilder
from bpmn_chat.core.logger import Logger
from bpmn_chat.core.models import (
    CompletionOptions,
    Intent,
    ProcessPayload,
    SessionState,
    TurnResult,
)
from bpmn_chat.core.prompts import CREATED_MESSAGE, UPDATED_MESSAGE
from bpmn_chat.core.sanitizer import ResponseSanitizer
from bpmn_chat.core.sinks import NullSink, PayloadSink
from bpmn_chat.agents.process_agent.workflow import TurnNodes, create_turn_workflow


class Session:
    """
    Conversational context holding the last accepted payload.

    The payload is replaced only by a successful turn. The lock is held
    for the duration of a turn, so turns of one session never overlap.
    """

    def __init__(self, session_id: Optional[str] = None):
        self.session_id = session_id or uuid.uuid4().hex
        self.lock = threading.Lock()
        self._payload: Optional[ProcessPayload] = None
        self.accepted_turns = 0

    @property
    def payload(self) -> Optional[ProcessPayload]:
        return self._payload

    @property
    def state(self) -> SessionState:
        if self._payload is None:
            return SessionState.IDLE
        return SessionState.ESTABLISHED

    @property
    def intent(self) -> Intent:
        """Intent of the next turn."""
        return Intent.CREATE if self._payload is None else Intent.UPDATE

    def accept(self, payload: ProcessPayload) -> None:
        self._payload = payload
        self.accepted_turns += 1


class SessionOrchestrator:
    """
    Runs user turns against one session.

    A turn creates a process while the session is idle and updates the
    stored process afterwards. Failures propagate with their original
    exception type and leave the session untouched.
    """

    def __init__(
        self,
        gateway: CompletionGateway,
        options: CompletionOptions,
        builder: Optional[InstructionBuilder] = None,
        sanitizer: Optional[ResponseSanitizer] = None,
        sink: Optional[PayloadSink] = None,
        session: Optional[Session] = None,
        gateway_retries: int = 0,
    ):
        """
        Initialize the orchestrator.

        Args:
            gateway: Completion gateway (live, canned or fallback)
            options: Options passed to every completion call
            builder: Instruction builder, a fresh one when omitted
            sanitizer: Response sanitizer, enforcing connectivity when omitted
            sink: Receiver of accepted payloads
            session: Session to drive, a new idle one when omitted
            gateway_retries: Extra attempts after a network failure
        """
        self.session = session or Session()
        self.sink = sink or NullSink()
        self.nodes = TurnNodes(
            builder=builder or InstructionBuilder(),
            gateway=gateway,
            sanitizer=sanitizer or ResponseSanitizer(),
            options=options,
            gateway_retries=gateway_retries,
        )
        self.workflow = create_turn_workflow(self.nodes)

    @property
    def state(self) -> SessionState:
        return self.session.state

    @property
    def payload(self) -> Optional[ProcessPayload]:
        return self.session.payload

    def _export(self, payload: ProcessPayload) -> None:
        """Hand a payload to the sink before the session accepts it."""
        try:
            self.sink.import_payload(payload)
        except ProcessAssistantError as e:
            Logger.log_error(f"Payload sink failed: {e}")
            raise
        except Exception as e:
            Logger.log_error(f"Payload sink failed: {type(e).__name__}: {e}")
            raise SinkError(
                "The process could not be handed to the diagram.",
                context={"error": type(e).__name__},
            ) from e

    def handle_turn(self, user_text: str) -> TurnResult:
        """
        Handle one user message.

        Args:
            user_text: The raw message

        Returns:
            TurnResult with the accepted payload and a confirmation message

        Raises:
            InvalidInput: If the message is empty, before any model call
            GatewayError, ModelRefused, MalformedOutput, SchemaViolation,
            ConnectivityViolation: Unchanged from the failing step
            SinkError: If the sink rejected the payload; the session is unchanged
        """
        if not user_text or not user_text.strip():
            raise InvalidInput("Please enter a message.")
        text = user_text.strip()

        with self.session.lock:
            current = self.session.payload
            intent = self.session.intent
            Logger.log_turn_start(self.session.session_id, intent, text)

            try:
                final_state = self.workflow.invoke({
                    "user_text": text,
                    "intent": intent,
                    "current_payload": current,
                })
            except ProcessAssistantError as e:
                Logger.log_warning(f"Turn failed: {type(e).__name__}: {e}")
                raise

            payload: ProcessPayload = final_state["payload"]
            self._export(payload)
            self.session.accept(payload)
            Logger.log_payload(payload)

        message = CREATED_MESSAGE if intent == Intent.CREATE else UPDATED_MESSAGE
        return TurnResult(intent=intent, payload=payload, message=message)
