from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from annotation.annotation import Annotation
from annotation.events import DrawEvent, EventChannel
from annotation.group import AnnotationGroup
from commands.annotation_commands import RemoveAnnotationCommand, UpdateAnnotationCommand
from commands.base import Command
from commands.undo_stack import UndoStack
from drawing.draw_layer import DrawLayer
from drawing.factories.base import ShapeFactory, anchors_to_dict
from drawing.nodes import ShapeNode
from editing.bounds import ContainerBounds, DeleteTarget
from geometry.primitives import Point2D

logger = logging.getLogger(__name__)

SHAPE_KEYS = ("math_shape", "reference_points")
MOVE_KEYS = ("math_shape", "reference_points", "label_position")
LABEL_KEYS = ("label_position",)


class DragState(str, Enum):
    DRAGGING = "dragging"
    COMMITTED = "committed"
    CANCELLED = "cancelled"


class Editor:
    """
    Entry point for interactive edits of one annotation group.

    Hands out drag sessions, at most one per annotation, and only while the
    group is editable. Finished drags end up on the undo stack as a single
    command whose draw event is published on draw_events.
    """

    def __init__(
        self,
        group: AnnotationGroup,
        undo_stack: UndoStack,
        bounds: ContainerBounds,
        *,
        layer: DrawLayer | None = None,
        delete_target: DeleteTarget | None = None,
        draw_events: EventChannel[DrawEvent] | None = None,
    ) -> None:
        self.group = group
        self.undo_stack = undo_stack
        self.bounds = bounds
        self.layer = layer
        self.delete_target = delete_target
        self.draw_events: EventChannel[DrawEvent] = draw_events if draw_events is not None else EventChannel()
        self._active: dict[str, DragSession] = {}

    def is_dragging(self, annotation_id: str) -> bool:
        return annotation_id in self._active

    def start_anchor_drag(self, annotation: Annotation, anchor_id: str) -> AnchorDragSession | None:
        factory = self._check_start(annotation)
        if factory is None:
            return None
        if anchor_id not in {a.id for a in factory.get_anchors(annotation.math_shape)}:
            logger.warning("Unknown anchor %s for %s", anchor_id, factory.name)
            return None
        return self._register(AnchorDragSession(self, annotation, factory, anchor_id))

    def start_shape_drag(self, annotation: Annotation) -> ShapeDragSession | None:
        factory = self._check_start(annotation)
        if factory is None:
            return None
        return self._register(ShapeDragSession(self, annotation, factory))

    def start_label_drag(self, annotation: Annotation) -> LabelDragSession | None:
        factory = self._check_start(annotation)
        if factory is None:
            return None
        return self._register(LabelDragSession(self, annotation, factory))

    def _check_start(self, annotation: Annotation) -> ShapeFactory | None:
        if not self.group.is_editable():
            logger.warning("Group is not editable, cannot drag %s", annotation.id)
            return None
        if annotation.id in self._active:
            logger.warning("Annotation %s is already being dragged", annotation.id)
            return None
        if self.group.find(annotation.id) is None:
            logger.warning("Annotation %s is not in the group", annotation.id)
            return None
        custom = self.layer.custom_factories if self.layer is not None else None
        return annotation.get_factory(custom)

    def _register(self, session: Any) -> Any:
        self._active[session.annotation.id] = session
        return session

    def _release(self, session: DragSession) -> None:
        self._active.pop(session.annotation.id, None)

    def _node(self, annotation: Annotation) -> ShapeNode | None:
        if self.layer is None:
            return None
        return self.layer.get_node(annotation.id)


class DragSession:
    """
    One pointer drag: Dragging -> Committed | Cancelled. An annotation with no
    session is idle.

    Moves update the annotation and its node in place without creating
    commands; end() emits at most one command for the whole drag.
    """

    keys: tuple[str, ...] = SHAPE_KEYS

    def __init__(self, editor: Editor, annotation: Annotation, factory: ShapeFactory) -> None:
        self.editor = editor
        self.annotation = annotation
        self.factory = factory
        self.state = DragState.DRAGGING
        self.snapshot = annotation.get_props(self.keys)

    def is_active(self) -> bool:
        return self.state is DragState.DRAGGING

    def _check_active(self) -> None:
        if not self.is_active():
            raise RuntimeError(f"Drag session is {self.state.value}")

    def _refresh_node(self) -> None:
        node = self.editor._node(self.annotation)
        if node is not None:
            style = self.editor.layer.style  # type: ignore[union-attr]
            self.factory.update_shape_group_on_anchor_move(self.annotation, node, style)

    def _restore(self) -> None:
        self.annotation.set_props(self.snapshot)
        self.annotation.update_quantification()
        self._refresh_node()

    def _has_changed(self) -> bool:
        return self.annotation.get_props(self.keys) != self.snapshot

    def _commit_update(self, *, is_move: bool) -> Command | None:
        if not self._has_changed():
            return None
        command = UpdateAnnotationCommand(
            self.annotation,
            self.snapshot,
            self.annotation.get_props(self.keys),
            self.editor.group,
            is_move=is_move,
        ).publish_to(self.editor.draw_events)
        # already applied while dragging: record it and signal the change
        self.editor.undo_stack.add(command)
        self.editor.group.update(self.annotation, self.keys)
        command.notify_executed()
        return command

    def _finish(self, state: DragState) -> None:
        self.state = state
        self.editor._release(self)

    def cancel(self) -> None:
        """Put the annotation back to its pre-drag state."""
        self._check_active()
        self._restore()
        self._finish(DragState.CANCELLED)


class AnchorDragSession(DragSession):
    def __init__(self, editor: Editor, annotation: Annotation, factory: ShapeFactory, anchor_id: str) -> None:
        super().__init__(editor, annotation, factory)
        self.anchor_id = anchor_id
        self._anchors = anchors_to_dict(factory.get_anchors(annotation.math_shape))

    def move(self, point: Point2D) -> None:
        self._check_active()
        anchors = dict(self._anchors)
        anchors[self.anchor_id] = self.editor.bounds.clamp_point(point)
        anchors = self.factory.constrain_anchor_move(anchors, self.anchor_id)
        self.factory.update_annotation_on_anchor_move(self.annotation, anchors)
        self._anchors = anchors
        self._refresh_node()

    def end(self) -> Command | None:
        self._check_active()
        command = self._commit_update(is_move=False)
        self._finish(DragState.COMMITTED)
        return command


class ShapeDragSession(DragSession):
    keys = MOVE_KEYS

    def __init__(self, editor: Editor, annotation: Annotation, factory: ShapeFactory) -> None:
        super().__init__(editor, annotation, factory)
        self.translation = (0.0, 0.0)

    def move(self, dx: float, dy: float) -> tuple[float, float]:
        """Translate by (dx, dy), kept inside the container; returns the applied delta."""
        self._check_active()
        points = self.factory.get_outline_points(self.annotation.math_shape)
        dx, dy = self.editor.bounds.clamp_translation(points, dx, dy)
        if dx != 0 or dy != 0:
            self.factory.update_annotation_on_translation(self.annotation, dx, dy)
            self.translation = (self.translation[0] + dx, self.translation[1] + dy)
            self._refresh_node()
        return dx, dy

    def is_over_delete_target(self, point: Point2D | None) -> bool:
        target = self.editor.delete_target
        return target is not None and point is not None and target.is_over(point)

    def end(self, drop_point: Point2D | None = None) -> Command | None:
        self._check_active()
        if self.is_over_delete_target(drop_point):
            self._restore()
            command: Command | None = RemoveAnnotationCommand(self.annotation, self.editor.group).publish_to(
                self.editor.draw_events
            )
            self.editor.undo_stack.add(command)
            command.execute()
        elif self.translation != (0.0, 0.0):
            command = self._commit_update(is_move=True)
        else:
            command = None
        self._finish(DragState.COMMITTED)
        return command


class LabelDragSession(DragSession):
    keys = LABEL_KEYS

    def move(self, dx: float, dy: float) -> None:
        self._check_active()
        position = self.factory.get_label_position(self.annotation)
        self.annotation.label_position = self.editor.bounds.clamp_point(position.translated(dx, dy))
        node = self.editor._node(self.annotation)
        if node is not None:
            style = self.editor.layer.style  # type: ignore[union-attr]
            self.factory.update_label_position(self.annotation, node, style)

    def end(self) -> Command | None:
        self._check_active()
        command = self._commit_update(is_move=False)
        self._finish(DragState.COMMITTED)
        return command
