"""
Per-turn workflow for the process assistant.
"""

from typing import Any, Dict
from langgraph.graph import StateGraph, START, END

from bpmn_chat.core.gateway import CompletionGateway
from bpmn_chat.core.instructions import InstructionBuilder
from bpmn_chat.core.invoke import call_with_retries
from bpmn_chat.core.logger import Logger
from bpmn_chat.core.models import CompletionOptions, Intent, NodeNames, TurnState
from bpmn_chat.core.sanitizer import ResponseSanitizer


class TurnNodes:
    """
    Nodes of the turn workflow: build the instruction, call the model,
    sanitize the answer.

    Nodes raise on failure instead of writing an error into the state, so
    the exception leaves the compiled graph with its original type.
    """

    def __init__(
        self,
        builder: InstructionBuilder,
        gateway: CompletionGateway,
        sanitizer: ResponseSanitizer,
        options: CompletionOptions,
        gateway_retries: int = 0,
    ):
        self.builder = builder
        self.gateway = gateway
        self.sanitizer = sanitizer
        self.options = options
        self.gateway_retries = gateway_retries

    def build_instruction(self, state: TurnState) -> Dict[str, Any]:
        Logger.log_info(f"--- NODE: {NodeNames.BUILD_INSTRUCTION.upper()} ---")

        intent = state["intent"]
        if intent == Intent.UPDATE:
            instruction = self.builder.build_update_instruction(
                state["user_text"],
                state["current_payload"],
            )
        else:
            instruction = self.builder.build_create_instruction(state["user_text"])

        Logger.log_instruction(intent, instruction)
        return {"instruction": instruction}

    def complete(self, state: TurnState) -> Dict[str, Any]:
        Logger.log_info(f"--- NODE: {NodeNames.COMPLETE.upper()} ---")

        raw_response = call_with_retries(
            lambda: self.gateway.complete(state["instruction"], self.options),
            retries=self.gateway_retries,
        )

        Logger.log_response(raw_response)
        return {"raw_response": raw_response}

    def sanitize(self, state: TurnState) -> Dict[str, Any]:
        Logger.log_info(f"--- NODE: {NodeNames.SANITIZE.upper()} ---")

        payload = self.sanitizer.sanitize(state["raw_response"])
        return {"payload": payload}


def create_turn_workflow(nodes: TurnNodes) -> Any:
    """
    Create the LangGraph workflow that runs one turn.

    Args:
        nodes: TurnNodes instance with the node methods

    Returns:
        Compiled LangGraph workflow
    """
    Logger.log_debug("Creating turn workflow")

    workflow = StateGraph(TurnState)

    workflow.add_node(NodeNames.BUILD_INSTRUCTION.value, nodes.build_instruction)
    workflow.add_node(NodeNames.COMPLETE.value, nodes.complete)
    workflow.add_node(NodeNames.SANITIZE.value, nodes.sanitize)

    workflow.add_edge(START, NodeNames.BUILD_INSTRUCTION.value)
    workflow.add_edge(NodeNames.BUILD_INSTRUCTION.value, NodeNames.COMPLETE.value)
    workflow.add_edge(NodeNames.COMPLETE.value, NodeNames.SANITIZE.value)
    workflow.add_edge(NodeNames.SANITIZE.value, END)

    return workflow.compile()
