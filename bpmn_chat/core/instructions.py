from langchain_core.prompts import PromptTemplate

from bpmn_chat.config import REFUSAL_SENTINEL
from bpmn_chat.core.exceptions import InvalidInput
from bpmn_chat.core.models import ProcessPayload
from bpmn_chat.core.prompts import (
    CONNECTIVITY_RULE,
    CREATE_PROCESS_TEMPLATE,
    LABELING_CONVENTIONS,
    UPDATE_PROCESS_TEMPLATE,
)
from bpmn_chat.core.schema import describe, serialize_payload


class InstructionBuilder:
    """
    Renders the create and update instructions sent to the model.

    The fixed rules, labeling conventions and the schema description are
    bound as partial variables, so only the per-turn values vary.
    """

    def __init__(self):
        shared = {
            "connectivity_rule": CONNECTIVITY_RULE,
            "labeling_conventions": LABELING_CONVENTIONS,
            "format_instructions": describe(),
            "sentinel": REFUSAL_SENTINEL,
        }
        self.create_prompt = PromptTemplate(
            template=CREATE_PROCESS_TEMPLATE,
            input_variables=["description"],
            partial_variables=shared,
        )
        self.update_prompt = PromptTemplate(
            template=UPDATE_PROCESS_TEMPLATE,
            input_variables=["requested_changes", "process"],
            partial_variables=shared,
        )

    def build_create_instruction(self, description: str) -> str:
        """
        Build the instruction that creates a process from a description.

        Args:
            description: The user's description of the process

        Returns:
            The rendered instruction

        Raises:
            InvalidInput: If the description is empty
        """
        if not description or not description.strip():
            raise InvalidInput("Please describe the process you want to create.")
        return self.create_prompt.format(description=description)

    def build_update_instruction(
        self,
        requested_changes: str,
        current_payload: ProcessPayload
    ) -> str:
        """
        Build the instruction that updates an existing process.

        Args:
            requested_changes: The user's change request
            current_payload: The last accepted payload, read only

        Returns:
            The rendered instruction

        Raises:
            InvalidInput: If the requested changes are empty
        """
        if not requested_changes or not requested_changes.strip():
            raise InvalidInput("Please describe the changes you want to make.")
        return self.update_prompt.format(
            requested_changes=requested_changes,
            process=serialize_payload(current_payload),
        )
