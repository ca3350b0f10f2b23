"""Shared fixtures for assistant tests.

No test talks to a real model: gateways are replaced by scripted stubs
that record every instruction they receive.
"""

import json
import threading
import time

import pytest
from typing import Any, Callable, Dict, List, Optional, Union

from bpmn_chat.core.models import CompletionOptions
from bpmn_chat.core.sanitizer import ResponseSanitizer
from bpmn_chat.agents.process_agent.session import SessionOrchestrator


class ScriptedGateway:
    """Gateway stub replaying a list of responses or exceptions."""

    def __init__(self, responses: List[Union[str, BaseException]], delay: float = 0.0):
        self.responses = list(responses)
        self.delay = delay
        self.instructions: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._guard = threading.Lock()

    def complete(self, instruction: str, options: CompletionOptions) -> str:
        with self._guard:
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
            self.instructions.append(instruction)
            response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        try:
            if self.delay:
                time.sleep(self.delay)
            if isinstance(response, BaseException):
                raise response
            return response
        finally:
            with self._guard:
                self.in_flight -= 1


@pytest.fixture
def order_to_cash() -> Dict[str, Any]:
    """Start event, one task, end event and two connecting flows."""
    return {
        "id": "order_to_cash",
        "description": "Order-to-cash process",
        "elements": [
            {"id": "start_1", "name": "Order Received", "type": "bpmn:StartEvent"},
            {"id": "task_1", "name": "Ship Order", "type": "bpmn:ServiceTask"},
            {"id": "end_1", "name": "Order Fulfilled", "type": "bpmn:EndEvent"},
            {"id": "flow_1", "type": "bpmn:SequenceFlow", "source": "start_1", "target": "task_1"},
            {"id": "flow_2", "type": "bpmn:SequenceFlow", "source": "task_1", "target": "end_1"},
        ],
    }


@pytest.fixture
def order_to_cash_with_approval(order_to_cash: Dict[str, Any]) -> Dict[str, Any]:
    """The order-to-cash process with an approval task before the end."""
    elements = [e for e in order_to_cash["elements"] if e["id"] != "flow_2"]
    elements += [
        {"id": "task_2", "name": "Approve Shipment", "type": "bpmn:UserTask"},
        {"id": "flow_2", "type": "bpmn:SequenceFlow", "source": "task_1", "target": "task_2"},
        {"id": "flow_3", "type": "bpmn:SequenceFlow", "source": "task_2", "target": "end_1"},
    ]
    return {**order_to_cash, "elements": elements}


@pytest.fixture
def completion_options() -> CompletionOptions:
    return CompletionOptions(max_output_tokens=2000, temperature=0.9, timeout=5.0)


@pytest.fixture
def scripted_gateway() -> Callable[..., ScriptedGateway]:
    """Factory fixture building a ScriptedGateway.

    Plain dict responses are serialized to JSON.
    """
    def _create(*responses: Any, delay: float = 0.0) -> ScriptedGateway:
        prepared = [json.dumps(r) if isinstance(r, dict) else r for r in responses]
        return ScriptedGateway(prepared, delay=delay)

    return _create


@pytest.fixture
def make_orchestrator(completion_options: CompletionOptions):
    """Factory fixture wiring an orchestrator around a gateway."""
    def _create(
        gateway: Any,
        sink: Optional[Any] = None,
        enforce_connectivity: bool = True,
        gateway_retries: int = 0,
    ) -> SessionOrchestrator:
        return SessionOrchestrator(
            gateway=gateway,
            options=completion_options,
            sanitizer=ResponseSanitizer(enforce_connectivity=enforce_connectivity),
            sink=sink,
            gateway_retries=gateway_retries,
        )

    return _create
