"""Tests for sessions and the turn orchestrator."""

import threading

import pytest

from bpmn_chat.core.exceptions import (
    ConnectivityViolation,
    GatewayError,
    InvalidInput,
    MalformedOutput,
    ModelRefused,
    SchemaViolation,
    SinkError,
)
from bpmn_chat.core.gateway import CannedCompletionGateway, FallbackCompletionGateway
from bpmn_chat.core.models import GatewayCause, Intent, SessionState
from bpmn_chat.core.prompts import CREATED_MESSAGE, UPDATED_MESSAGE
from bpmn_chat.core.schema import serialize_payload, validate


class RecordingSink:
    def __init__(self):
        self.payloads = []

    def import_payload(self, payload):
        self.payloads.append(payload)


# -----------------------------------------------------------------------------
# Successful turns
# -----------------------------------------------------------------------------

def test_first_turn_creates_process(scripted_gateway, make_orchestrator, order_to_cash):
    gateway = scripted_gateway(order_to_cash)
    orchestrator = make_orchestrator(gateway)

    result = orchestrator.handle_turn("Create an order-to-cash process")

    assert result.intent is Intent.CREATE
    assert result.message == CREATED_MESSAGE
    assert result.payload == validate(order_to_cash)
    assert orchestrator.state is SessionState.ESTABLISHED
    assert orchestrator.payload == result.payload
    assert "Create an order-to-cash process" in gateway.instructions[0]


def test_second_turn_updates_process(
    scripted_gateway, make_orchestrator, order_to_cash, order_to_cash_with_approval
):
    gateway = scripted_gateway(order_to_cash, order_to_cash_with_approval)
    orchestrator = make_orchestrator(gateway)
    first = orchestrator.handle_turn("Create an order-to-cash process")

    result = orchestrator.handle_turn("Add an approval step before the end")

    assert result.intent is Intent.UPDATE
    assert result.message == UPDATED_MESSAGE
    assert result.payload == validate(order_to_cash_with_approval)
    assert serialize_payload(first.payload) in gateway.instructions[1]
    assert "Add an approval step before the end" in gateway.instructions[1]
    assert orchestrator.session.accepted_turns == 2


def test_fenced_response_is_accepted(scripted_gateway, make_orchestrator, order_to_cash):
    gateway = scripted_gateway("```json\n" + serialize_payload(validate(order_to_cash)) + "\n```")

    result = make_orchestrator(gateway).handle_turn("Create an order-to-cash process")

    assert result.payload.id == "order_to_cash"


def test_sink_receives_accepted_payloads(scripted_gateway, make_orchestrator, order_to_cash):
    sink = RecordingSink()
    orchestrator = make_orchestrator(scripted_gateway(order_to_cash, "ERROR"), sink=sink)

    orchestrator.handle_turn("Create an order-to-cash process")
    with pytest.raises(ModelRefused):
        orchestrator.handle_turn("What's the weather like?")

    assert sink.payloads == [validate(order_to_cash)]


# -----------------------------------------------------------------------------
# Failed turns leave the session untouched
# -----------------------------------------------------------------------------

@pytest.mark.parametrize("text", ["", "   ", "\n"])
def test_empty_message_is_rejected_without_model_call(scripted_gateway, make_orchestrator, text):
    gateway = scripted_gateway("unused")
    orchestrator = make_orchestrator(gateway)

    with pytest.raises(InvalidInput):
        orchestrator.handle_turn(text)

    assert gateway.instructions == []
    assert orchestrator.state is SessionState.IDLE


def test_refusal_while_idle_keeps_session_idle(scripted_gateway, make_orchestrator):
    orchestrator = make_orchestrator(scripted_gateway("ERROR"))

    with pytest.raises(ModelRefused):
        orchestrator.handle_turn("Tell me a joke")

    assert orchestrator.state is SessionState.IDLE
    assert orchestrator.payload is None


def test_refusal_while_established_keeps_payload(scripted_gateway, make_orchestrator, order_to_cash):
    orchestrator = make_orchestrator(scripted_gateway(order_to_cash, "ERROR"))
    accepted = orchestrator.handle_turn("Create an order-to-cash process").payload

    with pytest.raises(ModelRefused):
        orchestrator.handle_turn("Tell me a joke")

    assert orchestrator.state is SessionState.ESTABLISHED
    assert orchestrator.payload == accepted
    assert orchestrator.session.accepted_turns == 1


def test_timeout_without_fallback_surfaces_gateway_error(scripted_gateway, make_orchestrator):
    orchestrator = make_orchestrator(
        scripted_gateway(GatewayError("timed out", cause=GatewayCause.TIMEOUT))
    )

    with pytest.raises(GatewayError) as exc_info:
        orchestrator.handle_turn("Create an order-to-cash process")

    assert exc_info.value.cause is GatewayCause.TIMEOUT
    assert orchestrator.state is SessionState.IDLE


@pytest.mark.parametrize("bad_response,error", [
    ("Here is your process!", MalformedOutput),
    ('{"id": "p", "elements": [{"id": "x", "type": "bpmn:Lane"}]}', SchemaViolation),
    ('{"id": "p", "elements": [{"id": "a", "type": "bpmn:Task"}, '
     '{"id": "b", "type": "bpmn:Task"}]}', ConnectivityViolation),
])
def test_invalid_update_keeps_previous_payload(
    scripted_gateway, make_orchestrator, order_to_cash, bad_response, error
):
    orchestrator = make_orchestrator(scripted_gateway(order_to_cash, bad_response))
    accepted = orchestrator.handle_turn("Create an order-to-cash process").payload

    with pytest.raises(error):
        orchestrator.handle_turn("Add an approval step")

    assert orchestrator.payload == accepted


def test_disconnected_process_accepted_when_check_disabled(scripted_gateway, make_orchestrator):
    response = {"id": "p", "elements": [
        {"id": "a", "type": "bpmn:Task"},
        {"id": "b", "type": "bpmn:Task"},
    ]}
    orchestrator = make_orchestrator(scripted_gateway(response), enforce_connectivity=False)

    result = orchestrator.handle_turn("Two unrelated tasks")

    assert result.payload.element_ids() == ["a", "b"]


# -----------------------------------------------------------------------------
# Fallback and retries
# -----------------------------------------------------------------------------

def test_fallback_serves_canned_process_on_timeout(scripted_gateway, make_orchestrator):
    primary = scripted_gateway(GatewayError("timed out", cause=GatewayCause.TIMEOUT))
    orchestrator = make_orchestrator(FallbackCompletionGateway(primary, CannedCompletionGateway()))

    result = orchestrator.handle_turn("Create an immigration process")

    assert result.payload.id == "immigration_process"
    assert orchestrator.state is SessionState.ESTABLISHED


def test_fallback_does_not_mask_refusal(scripted_gateway, make_orchestrator):
    gateway = FallbackCompletionGateway(scripted_gateway("ERROR"), CannedCompletionGateway())
    orchestrator = make_orchestrator(gateway)

    with pytest.raises(ModelRefused):
        orchestrator.handle_turn("Tell me a joke")

    assert orchestrator.state is SessionState.IDLE


def test_network_failure_is_retried_when_configured(
    monkeypatch, scripted_gateway, make_orchestrator, order_to_cash
):
    monkeypatch.setattr("bpmn_chat.core.invoke.time.sleep", lambda seconds: None)
    gateway = scripted_gateway(
        GatewayError("connection reset", cause=GatewayCause.NETWORK),
        order_to_cash,
    )
    orchestrator = make_orchestrator(gateway, gateway_retries=1)

    result = orchestrator.handle_turn("Create an order-to-cash process")

    assert result.payload.id == "order_to_cash"
    assert len(gateway.instructions) == 2


# -----------------------------------------------------------------------------
# Isolation and concurrency
# -----------------------------------------------------------------------------

def test_sessions_are_independent(
    scripted_gateway, make_orchestrator, order_to_cash, order_to_cash_with_approval
):
    first = make_orchestrator(scripted_gateway(order_to_cash))
    second = make_orchestrator(scripted_gateway(order_to_cash_with_approval))

    first.handle_turn("Create an order-to-cash process")

    assert second.state is SessionState.IDLE
    second.handle_turn("Create an order-to-cash process with approval")
    assert first.payload == validate(order_to_cash)
    assert second.payload == validate(order_to_cash_with_approval)
    assert first.session.session_id != second.session.session_id


def test_turns_of_one_session_are_serialized(scripted_gateway, make_orchestrator, order_to_cash):
    gateway = scripted_gateway(order_to_cash, delay=0.05)
    orchestrator = make_orchestrator(gateway)
    errors = []

    def run_turn(text):
        try:
            orchestrator.handle_turn(text)
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=run_turn, args=(f"Turn {i}",)) for i in range(3)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert gateway.max_in_flight == 1
    assert orchestrator.session.accepted_turns == 3
    # Exactly one turn saw the idle session
    create_turns = [i for i in gateway.instructions if "updates a valid BPMN process" not in i]
    assert len(create_turns) == 1


# -----------------------------------------------------------------------------
# Sink failures
# -----------------------------------------------------------------------------

class FailingSink:
    def import_payload(self, payload):
        raise OSError("disk full")


def test_sink_failure_keeps_session_idle(scripted_gateway, make_orchestrator, order_to_cash):
    orchestrator = make_orchestrator(scripted_gateway(order_to_cash), sink=FailingSink())

    with pytest.raises(SinkError) as exc_info:
        orchestrator.handle_turn("Create an order-to-cash process")

    assert isinstance(exc_info.value.__cause__, OSError)
    assert orchestrator.state is SessionState.IDLE
    assert orchestrator.session.accepted_turns == 0


def test_sink_failure_keeps_previous_payload(
    scripted_gateway, make_orchestrator, order_to_cash, order_to_cash_with_approval
):
    orchestrator = make_orchestrator(scripted_gateway(order_to_cash, order_to_cash_with_approval))
    accepted = orchestrator.handle_turn("Create an order-to-cash process").payload
    orchestrator.sink = FailingSink()

    with pytest.raises(SinkError):
        orchestrator.handle_turn("Add an approval step before the end")

    assert orchestrator.payload == accepted
    assert orchestrator.session.accepted_turns == 1
