from __future__ import annotations

import logging
from typing import Any, Callable

from annotation.events import EventChannel, UndoStackEvent
from commands.base import Command

logger = logging.getLogger(__name__)

UNDO_ADD = "undoadd"
UNDO = "undo"
REDO = "redo"
UNDO_REMOVE = "undoremove"


class UndoStack:
    """
    Linear command history.

    Commands are added already executed. Adding after an undo drops the
    commands that could have been redone.
    """

    def __init__(self) -> None:
        self._stack: list[Command] = []
        self._current = 0
        self.events: EventChannel[UndoStackEvent] = EventChannel()

    def get_stack_size(self) -> int:
        return len(self._stack)

    def get_current_stack_index(self) -> int:
        return self._current

    def can_undo(self) -> bool:
        return self._current > 0

    def can_redo(self) -> bool:
        return self._current < len(self._stack)

    def add(self, command: Command) -> None:
        del self._stack[self._current :]
        self._stack.append(command)
        self._current += 1
        self.events.publish(UndoStackEvent(UNDO_ADD, command.get_name()))

    def remove(self, name: str) -> bool:
        """Drop the last done command if it has the given name."""
        if self._current == 0 or self._stack[self._current - 1].get_name() != name:
            logger.warning("Last command is not %s, nothing removed", name)
            return False
        del self._stack[self._current - 1]
        self._current -= 1
        self.events.publish(UndoStackEvent(UNDO_REMOVE, name))
        return True

    def undo(self) -> bool:
        if not self.can_undo():
            logger.warning("Nothing to undo")
            return False
        self._current -= 1
        command = self._stack[self._current]
        command.undo()
        logger.debug(
            "Undid %s", command.get_name(), extra={"command": command.get_name(), "stack_index": self._current}
        )
        self.events.publish(UndoStackEvent(UNDO, command.get_name()))
        return True

    def redo(self) -> bool:
        if not self.can_redo():
            logger.warning("Nothing to redo")
            return False
        command = self._stack[self._current]
        command.execute()
        self._current += 1
        logger.debug(
            "Redid %s", command.get_name(), extra={"command": command.get_name(), "stack_index": self._current}
        )
        self.events.publish(UndoStackEvent(REDO, command.get_name()))
        return True

    def add_event_listener(self, event_type: str, callback: Callable[[Any], Any]) -> None:
        self.events.subscribe(event_type, callback)

    def remove_event_listener(self, event_type: str, callback: Callable[[Any], Any]) -> None:
        self.events.unsubscribe(event_type, callback)
