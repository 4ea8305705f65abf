from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from annotation.events import EventChannel


class InvalidCommandError(RuntimeError):
    """Raised when an invalid command is executed."""


class Command:
    """
    Reversible mutation.

    Subclasses implement _apply/_revert and the events they report. Callers
    check is_valid() before execute(); on_execute/on_undo are no-ops meant to
    be replaced (e.g. by an undo stack or an audit trail).
    """

    def __init__(self, *, silent: bool = False) -> None:
        self.silent = bool(silent)

    def get_name(self) -> str:
        raise NotImplementedError

    def is_valid(self) -> bool:
        return True

    def execute(self) -> None:
        if not self.is_valid():
            raise InvalidCommandError(f"Cannot execute invalid command {self.get_name()}")
        self._apply()
        self.notify_executed()

    def undo(self) -> None:
        self._revert()
        self.on_undo(self._undo_event())

    def notify_executed(self) -> None:
        """Report an execution whose changes were applied outside execute() (e.g. live while dragging)."""
        if not self.silent:
            self.on_execute(self._execute_event())

    def publish_to(self, channel: EventChannel) -> Command:
        """Send execute and undo events to channel; returns self."""
        self.on_execute = channel.publish  # type: ignore[method-assign]
        self.on_undo = channel.publish  # type: ignore[method-assign]
        return self

    def on_execute(self, event: Any) -> None:
        pass

    def on_undo(self, event: Any) -> None:
        pass

    def _apply(self) -> None:
        raise NotImplementedError

    def _revert(self) -> None:
        raise NotImplementedError

    def _execute_event(self) -> Any:
        raise NotImplementedError

    def _undo_event(self) -> Any:
        raise NotImplementedError
