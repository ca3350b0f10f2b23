"""
Receivers for accepted payloads.

The assistant hands every accepted payload to a sink; turning it into a
rendered diagram is the sink's business.
"""

from pathlib import Path
from typing import Protocol, runtime_checkable

from bpmn_chat.core.logger import Logger
from bpmn_chat.core.models import ProcessPayload
from bpmn_chat.core.schema import serialize_payload


@runtime_checkable
class PayloadSink(Protocol):
    def import_payload(self, payload: ProcessPayload) -> None:
        ...


class NullSink:
    """Discards payloads."""

    def import_payload(self, payload: ProcessPayload) -> None:
        return None


class JsonFileSink:
    """Writes each accepted payload to turn_<n>.json in a run directory."""

    def __init__(self, run_dir: Path):
        self.run_dir = run_dir
        self.count = 0

    def import_payload(self, payload: ProcessPayload) -> None:
        path = self.run_dir / f"turn_{self.count + 1}.json"
        with open(path, "w", encoding="utf-8") as f:
            f.write(serialize_payload(payload))
        self.count += 1
        Logger.log_info(f"Saved payload to {path}")
