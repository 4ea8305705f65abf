from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Sequence

from annotation.annotation import QUANTIFICATION_KEYS, Annotation
from annotation.events import (
    ANNOTATION_ADD,
    ANNOTATION_REMOVE,
    ANNOTATION_UPDATE,
    AnnotationEvent,
    EditableChangeEvent,
    EventChannel,
)

logger = logging.getLogger(__name__)

DEFAULT_COLOUR = "#ffff80"


class AnnotationGroup:
    """Ordered annotations of one volume plus group level meta and policy."""

    def __init__(
        self,
        annotations: Iterable[Annotation] | None = None,
        *,
        meta: dict[str, Any] | None = None,
        colour: str = DEFAULT_COLOUR,
    ) -> None:
        self._list: list[Annotation] = list(annotations or [])
        self._meta: dict[str, Any] = dict(meta or {})
        self._editable = True
        self._colour = colour
        self.events: EventChannel[AnnotationEvent | EditableChangeEvent] = EventChannel()

    # --- list

    def get_list(self) -> list[Annotation]:
        return list(self._list)

    def get_length(self) -> int:
        return len(self._list)

    def __len__(self) -> int:
        return len(self._list)

    def __iter__(self):
        return iter(list(self._list))

    def find(self, annotation_id: str) -> Annotation | None:
        for a in self._list:
            if a.id == annotation_id:
                return a
        return None

    def index_of(self, annotation_id: str) -> int | None:
        for i, a in enumerate(self._list):
            if a.id == annotation_id:
                return i
        return None

    def add(self, annotation: Annotation, index: int | None = None) -> bool:
        if self.find(annotation.id) is not None:
            logger.warning("Annotation %s is already in the group, not adding it twice", annotation.id)
            return False
        if index is None or index >= len(self._list):
            self._list.append(annotation)
        else:
            self._list.insert(max(index, 0), annotation)
        self.events.publish(AnnotationEvent(ANNOTATION_ADD, annotation))
        return True

    def update(self, annotation: Annotation, keys: Sequence[str] | None = None) -> bool:
        """
        Signal that annotation changed; refresh its quantification when the
        shape or text expression is among the changed keys.
        """
        if self.find(annotation.id) is None:
            logger.warning("Cannot update annotation %s: not in the group", annotation.id)
            return False
        key_tuple = tuple(keys) if keys is not None else None
        if key_tuple is None or any(k in QUANTIFICATION_KEYS for k in key_tuple):
            annotation.update_quantification()
        self.events.publish(AnnotationEvent(ANNOTATION_UPDATE, annotation, key_tuple))
        return True

    def remove(self, annotation_id: str) -> int | None:
        """Remove by id; returns the former position, None if not found."""
        index = self.index_of(annotation_id)
        if index is None:
            logger.warning("Cannot remove annotation %s: not in the group", annotation_id)
            return None
        annotation = self._list.pop(index)
        self.events.publish(AnnotationEvent(ANNOTATION_REMOVE, annotation))
        return index

    # --- policy

    def is_editable(self) -> bool:
        return self._editable

    def set_editable(self, flag: bool) -> None:
        flag = bool(flag)
        if flag == self._editable:
            return
        self._editable = flag
        self.events.publish(EditableChangeEvent(flag))

    def get_colour(self) -> str:
        return self._colour

    def set_colour(self, colour: str) -> None:
        self._colour = colour

    # --- meta

    def get_meta(self) -> dict[str, Any]:
        return dict(self._meta)

    def has_meta(self, key: str) -> bool:
        return key in self._meta

    def get_meta_value(self, key: str) -> Any:
        return self._meta.get(key)

    def set_meta_value(self, key: str, value: Any) -> None:
        self._meta[key] = value

    def find_meta(self, predicate: Callable[[str, Any], bool]) -> dict[str, Any]:
        return {k: v for k, v in self._meta.items() if predicate(k, v)}

    # --- listeners

    def add_event_listener(self, event_type: str, callback: Callable[[Any], Any]) -> None:
        self.events.subscribe(event_type, callback)

    def remove_event_listener(self, event_type: str, callback: Callable[[Any], Any]) -> None:
        self.events.unsubscribe(event_type, callback)
