from __future__ import annotations

import json
import logging
import time
from typing import Any

from commands.base import Command

logger = logging.getLogger(__name__)

EXECUTE = "execute"
UNDO = "undo"


def _target_of(event: Any) -> dict[str, Any]:
    # draw events name an annotation, segment events a segment number
    if hasattr(event, "segment_number"):
        return {"segment": event.segment_number}
    if hasattr(event, "id"):
        return {"annotation_id": event.id}
    return {}


class CommandTrace:
    """
    Audit trail of command executions and undos.

    One entry per callback: sequence number, phase, command name, reported
    event type, its target and, for updates, the changed keys. Entries hold
    ids only, never whole annotations or masks.
    """

    def __init__(self) -> None:
        self.entries: list[dict[str, Any]] = []

    def __len__(self) -> int:
        return len(self.entries)

    def record(self, command: Command) -> Command:
        """Add command callbacks to the trail, still forwarding them where they went before."""
        forward_execute = command.on_execute
        forward_undo = command.on_undo

        def on_execute(event: Any) -> None:
            self.add(command, event, phase=EXECUTE)
            forward_execute(event)

        def on_undo(event: Any) -> None:
            self.add(command, event, phase=UNDO)
            forward_undo(event)

        command.on_execute = on_execute  # type: ignore[method-assign]
        command.on_undo = on_undo  # type: ignore[method-assign]
        return command

    def add(self, command: Command, event: Any, *, phase: str) -> dict[str, Any]:
        entry: dict[str, Any] = {
            "seq": len(self.entries),
            "ts": float(time.time()),
            "phase": str(phase),
            "command": command.get_name(),
            "event": getattr(event, "type", None),
        }
        entry.update(_target_of(event))
        get_keys = getattr(command, "get_keys", None)
        if callable(get_keys):
            entry["keys"] = sorted(get_keys())
        self.entries.append(entry)
        logger.debug("Command %s %s (%s)", entry["command"], phase, entry["event"])
        return entry

    def for_annotation(self, annotation_id: str) -> list[dict[str, Any]]:
        return [e for e in self.entries if e.get("annotation_id") == annotation_id]

    def clear(self) -> None:
        self.entries = []

    def to_ndjson_bytes(self) -> bytes:
        """One entry per line; values JSON cannot hold are written as strings."""
        lines = [json.dumps(e, ensure_ascii=False, separators=(",", ":"), default=str) for e in self.entries]
        return "".join(line + "\n" for line in lines).encode("utf-8")
