from __future__ import annotations

from typing import Any, Mapping

from annotation.annotation import Annotation
from annotation.events import DRAW_CHANGE, DRAW_CREATE, DRAW_DELETE, DRAW_MOVE, DrawEvent
from annotation.group import AnnotationGroup
from commands.base import Command
from shapes.base import kind_of


def _shape_name(annotation: Annotation) -> str:
    kind = kind_of(annotation.math_shape)
    return kind.value if kind is not None else "shape"


class AddAnnotationCommand(Command):
    def __init__(self, annotation: Annotation, group: AnnotationGroup, *, silent: bool = False) -> None:
        super().__init__(silent=silent)
        self.annotation = annotation
        self.group = group

    def get_name(self) -> str:
        return f"Draw-{_shape_name(self.annotation)}"

    def is_valid(self) -> bool:
        return self.annotation.math_shape is not None

    def _apply(self) -> None:
        self.group.add(self.annotation)

    def _revert(self) -> None:
        self.group.remove(self.annotation.id)

    def _execute_event(self) -> DrawEvent:
        return DrawEvent(DRAW_CREATE, self.annotation.id)

    def _undo_event(self) -> DrawEvent:
        return DrawEvent(DRAW_DELETE, self.annotation.id)


class RemoveAnnotationCommand(Command):
    """Remove an annotation; undo puts it back at its former position."""

    def __init__(self, annotation: Annotation, group: AnnotationGroup, *, silent: bool = False) -> None:
        super().__init__(silent=silent)
        self.annotation = annotation
        self.group = group
        self._index = group.index_of(annotation.id)

    def get_name(self) -> str:
        return f"Delete-{_shape_name(self.annotation)}"

    def is_valid(self) -> bool:
        return self._index is not None

    def _apply(self) -> None:
        index = self.group.remove(self.annotation.id)
        if index is not None:
            self._index = index

    def _revert(self) -> None:
        self.group.add(self.annotation, self._index)

    def _execute_event(self) -> DrawEvent:
        return DrawEvent(DRAW_DELETE, self.annotation.id)

    def _undo_event(self) -> DrawEvent:
        return DrawEvent(DRAW_CREATE, self.annotation.id)


class UpdateAnnotationCommand(Command):
    """
    Change a few annotation properties.

    Only the changed keys with their old and new values are kept, never a
    full snapshot of the annotation.
    """

    def __init__(
        self,
        annotation: Annotation,
        original_props: Mapping[str, Any],
        new_props: Mapping[str, Any],
        group: AnnotationGroup,
        *,
        is_move: bool = False,
        silent: bool = False,
    ) -> None:
        super().__init__(silent=silent)
        if set(original_props) != set(new_props):
            raise ValueError("Original and new properties must have the same keys")
        self.annotation = annotation
        self.group = group
        self.original_props = dict(original_props)
        self.new_props = dict(new_props)
        self.is_move = bool(is_move)

    def get_keys(self) -> tuple[str, ...]:
        return tuple(self.new_props)

    def get_name(self) -> str:
        prefix = "Move" if self.is_move else "Change"
        return f"{prefix}-{_shape_name(self.annotation)}"

    def is_valid(self) -> bool:
        return len(self.new_props) != 0 and self.group.find(self.annotation.id) is not None

    def _apply(self) -> None:
        self.annotation.set_props(self.new_props)
        self.group.update(self.annotation, self.get_keys())

    def _revert(self) -> None:
        self.annotation.set_props(self.original_props)
        self.group.update(self.annotation, self.get_keys())

    def _event(self) -> DrawEvent:
        return DrawEvent(DRAW_MOVE if self.is_move else DRAW_CHANGE, self.annotation.id)

    def _execute_event(self) -> DrawEvent:
        return self._event()

    def _undo_event(self) -> DrawEvent:
        return self._event()
