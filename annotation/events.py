from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Generic, TypeVar

if TYPE_CHECKING:
    from annotation.annotation import Annotation

logger = logging.getLogger(__name__)

ANNOTATION_ADD = "annotationadd"
ANNOTATION_UPDATE = "annotationupdate"
ANNOTATION_REMOVE = "annotationremove"
EDITABLE_CHANGE = "annotationgroupeditablechange"
DRAW_CREATE = "draw-create"
DRAW_DELETE = "draw-delete"
DRAW_MOVE = "draw-move"
DRAW_CHANGE = "draw-change"
POSITION_CHANGE = "positionchange"


@dataclass(frozen=True)
class AnnotationEvent:
    type: str
    data: Annotation
    keys: tuple[str, ...] | None = None


@dataclass(frozen=True)
class EditableChangeEvent:
    data: bool
    type: str = EDITABLE_CHANGE


@dataclass(frozen=True)
class DrawEvent:
    """Payload of command callbacks."""

    type: str
    id: str


@dataclass(frozen=True)
class PositionChangeEvent:
    # (index values, world values)
    value: tuple[tuple[float, ...], tuple[float, ...]]
    type: str = POSITION_CHANGE


@dataclass(frozen=True)
class UndoStackEvent:
    type: str
    command_name: str | None = None


E = TypeVar("E")


@dataclass
class EventChannel(Generic[E]):
    """
    Typed publish/subscribe channel.

    Listeners are called synchronously in subscription order. A listener that
    raises is logged and skipped; it never breaks the publisher.
    """

    _listeners: dict[str, list[Callable[[E], Any]]] = field(default_factory=dict)

    def subscribe(self, event_type: str, callback: Callable[[E], Any]) -> None:
        self._listeners.setdefault(event_type, []).append(callback)

    def unsubscribe(self, event_type: str, callback: Callable[[E], Any]) -> bool:
        callbacks = self._listeners.get(event_type)
        if not callbacks or callback not in callbacks:
            logger.warning("No listener to remove for event type %s", event_type)
            return False
        callbacks.remove(callback)
        return True

    def has_listeners(self, event_type: str) -> bool:
        return bool(self._listeners.get(event_type))

    def publish(self, event: E) -> None:
        event_type = str(getattr(event, "type", ""))
        for callback in list(self._listeners.get(event_type, ())):
            try:
                callback(event)
            except Exception:
                logger.warning("Listener for %s raised", event_type, exc_info=True)
