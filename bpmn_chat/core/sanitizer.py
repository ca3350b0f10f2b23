import json
import re

from typing import Any

from bpmn_chat.config import REFUSAL_SENTINEL
from bpmn_chat.core.exceptions import MalformedOutput, ModelRefused
from bpmn_chat.core.models import ProcessPayload
from bpmn_chat.core.schema import check_connectivity, validate


OPENING_FENCE = re.compile(r"\A```[\w-]*[ \t]*\r?\n?")
CLOSING_FENCE = re.compile(r"\r?\n?```\Z")


def strip_code_fences(text: str) -> str:
    """
    Remove a leading and trailing fenced-block marker.

    The opening marker may carry a format hint (```json). Interior
    content is left untouched.

    Args:
        text: Trimmed model output

    Returns:
        Text without the surrounding fence markers
    """
    stripped = OPENING_FENCE.sub("", text, count=1)
    stripped = CLOSING_FENCE.sub("", stripped, count=1)
    return stripped.strip()


class ResponseSanitizer:
    """
    Turns a raw model completion into a validated ProcessPayload.

    Each failure has its own exception type so the caller can tell a
    refusal from unparseable text from a contract violation.
    """

    def __init__(self, enforce_connectivity: bool = True):
        """
        Args:
            enforce_connectivity: Whether disconnected processes are rejected
        """
        self.enforce_connectivity = enforce_connectivity

    def parse(self, raw_text: str) -> Any:
        """
        Parse raw model output into plain JSON data.

        Raises:
            ModelRefused: If the model replied with the refusal sentinel
            MalformedOutput: If the text is not valid JSON
        """
        text = (raw_text or "").strip()
        if text == REFUSAL_SENTINEL:
            raise ModelRefused("The model could not turn your message into a BPMN process.")

        text = strip_code_fences(text)
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise MalformedOutput(
                f"The model returned output that is not valid JSON: {e.msg}.",
                raw_text=raw_text,
            ) from e

    def sanitize(self, raw_text: str) -> ProcessPayload:
        """
        Sanitize, parse and validate one model completion.

        Args:
            raw_text: Text exactly as returned by the gateway

        Returns:
            The validated payload

        Raises:
            ModelRefused, MalformedOutput, SchemaViolation, ConnectivityViolation
        """
        candidate = self.parse(raw_text)
        payload = validate(candidate)
        if self.enforce_connectivity:
            check_connectivity(payload)
        return payload
