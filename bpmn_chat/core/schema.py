"""
Output contract for the process payload the model must emit.

The contract is described to the model through the format instructions of
a PydanticOutputParser and enforced on the way back in by ``validate`` and
``check_connectivity``.
"""

import json

from functools import lru_cache
from typing import Any, Dict, List, Sequence, Set, Union

from langchain_core.output_parsers import PydanticOutputParser
from pydantic import ValidationError

from bpmn_chat.core.exceptions import (
    ConnectivityViolation,
    MalformedOutput,
    SchemaViolation,
)
from bpmn_chat.core.models import ProcessPayload


ROOT_PATH = "$"


@lru_cache(maxsize=1)
def describe() -> str:
    """
    Describe the required output shape in natural language.

    Returns:
        Format instructions listing field names, types, required fields
        and the enumerated element kinds
    """
    parser = PydanticOutputParser(pydantic_object=ProcessPayload)
    return parser.get_format_instructions()


def _format_path(loc: Sequence[Union[str, int]]) -> str:
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return path or ROOT_PATH


def validate(candidate: Any) -> ProcessPayload:
    """
    Validate a parsed candidate against the process payload contract.

    Args:
        candidate: Value produced by parsing the model output

    Returns:
        The typed ProcessPayload

    Raises:
        SchemaViolation: With the path of the first violated field
    """
    try:
        payload = ProcessPayload.model_validate(candidate)
    except ValidationError as e:
        first = e.errors()[0]
        path = _format_path(first["loc"])
        raise SchemaViolation(
            f"Invalid process payload at '{path}': {first['msg']}",
            path=path,
        ) from e

    elements_by_id = {element.id: element for element in payload.elements}
    seen: Set[str] = set()

    for idx, element in enumerate(payload.elements):
        prefix = f"elements[{idx}]"

        if element.id in seen:
            raise SchemaViolation(
                f"Duplicate element id '{element.id}'",
                path=f"{prefix}.id",
            )
        seen.add(element.id)

        for field_name in ("source", "target"):
            ref = getattr(element, field_name)
            path = f"{prefix}.{field_name}"

            if not element.type.is_connector:
                if ref:
                    raise SchemaViolation(
                        f"'{element.id}' is a {element.type.value} and cannot have a {field_name}",
                        path=path,
                    )
                continue

            if not ref:
                raise SchemaViolation(
                    f"Sequence flow '{element.id}' is missing its {field_name}",
                    path=path,
                )
            referenced = elements_by_id.get(ref)
            if referenced is None:
                raise SchemaViolation(
                    f"Sequence flow '{element.id}' references unknown element '{ref}'",
                    path=path,
                )
            if referenced.type.is_connector:
                raise SchemaViolation(
                    f"Sequence flow '{element.id}' cannot connect to sequence flow '{ref}'",
                    path=path,
                )

    return payload


def check_connectivity(payload: ProcessPayload) -> None:
    """
    Check that the flow nodes form a single weakly connected graph.

    Args:
        payload: A payload that already passed ``validate``

    Raises:
        ConnectivityViolation: Listing isolated or disconnected elements
    """
    nodes = [e.id for e in payload.elements if not e.type.is_connector]
    if not nodes:
        raise ConnectivityViolation("Process contains no events, tasks or gateways")

    neighbours: Dict[str, Set[str]] = {node: set() for node in nodes}
    for element in payload.elements:
        if element.type.is_connector:
            neighbours[element.source].add(element.target)
            neighbours[element.target].add(element.source)

    isolated = [node for node in nodes if not neighbours[node]]
    if isolated:
        raise ConnectivityViolation(
            f"Elements without any sequence flow: {', '.join(isolated)}",
            element_ids=isolated,
        )

    reached = {nodes[0]}
    stack = [nodes[0]]
    while stack:
        for nxt in neighbours[stack.pop()]:
            if nxt not in reached:
                reached.add(nxt)
                stack.append(nxt)

    disconnected: List[str] = [node for node in nodes if node not in reached]
    if disconnected:
        raise ConnectivityViolation(
            f"Elements not connected to the rest of the process: {', '.join(disconnected)}",
            element_ids=disconnected,
        )


def serialize_payload(payload: ProcessPayload) -> str:
    """Render a payload as indented JSON for the update instruction."""
    return json.dumps(payload.model_dump(mode="json", exclude_none=True), indent=2)


def parse_payload(text: str) -> ProcessPayload:
    """
    Parse JSON text back into a validated payload.

    Raises:
        MalformedOutput: If the text is not valid JSON
        SchemaViolation: If the JSON breaks the payload contract
    """
    try:
        candidate = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedOutput(
            f"Model output is not valid JSON: {e.msg} (line {e.lineno}, column {e.colno})",
            raw_text=text,
        ) from e
    return validate(candidate)
