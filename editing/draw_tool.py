from __future__ import annotations

import logging
from typing import Sequence

from annotation.annotation import Annotation
from annotation.events import DrawEvent, EventChannel
from annotation.group import AnnotationGroup
from annotation.reference import ReferenceFrame
from commands.annotation_commands import AddAnnotationCommand
from commands.undo_stack import UndoStack
from config.settings import LabelsCfg
from drawing.factories.base import ShapeFactory
from drawing.registry import get_factory_by_name
from geometry.primitives import Point2D

logger = logging.getLogger(__name__)


class DrawTool:
    """Turns the points of a finished pointer gesture into a new annotation."""

    def __init__(
        self,
        group: AnnotationGroup,
        undo_stack: UndoStack,
        view: ReferenceFrame,
        *,
        labels: LabelsCfg | None = None,
        custom_factories: Sequence[ShapeFactory] | None = None,
        draw_events: EventChannel[DrawEvent] | None = None,
    ) -> None:
        self.group = group
        self.undo_stack = undo_stack
        self.view = view
        self.labels = labels or LabelsCfg()
        self.custom_factories = list(custom_factories or [])
        self.draw_events: EventChannel[DrawEvent] = draw_events if draw_events is not None else EventChannel()

    def get_factory(self, name: str) -> ShapeFactory | None:
        for factory in self.custom_factories:
            if factory.name == name:
                return factory
        return get_factory_by_name(name)

    def create(self, factory_name: str, points: Sequence[Point2D], *, colour: str | None = None) -> Annotation | None:
        """
        Create, bind and add an annotation through an undoable command.

        Raises ValueError when points do not fit the shape.
        """
        if not self.group.is_editable():
            logger.warning("Group is not editable, not drawing %s", factory_name)
            return None
        factory = self.get_factory(factory_name)
        if factory is None:
            return None

        shape = factory.create_shape(points)
        annotation = Annotation(math_shape=shape, colour=colour, reference_points=tuple(points))
        annotation.init(self.view)
        annotation.set_text_expr(self.labels.for_factory(factory.name))
        annotation.update_quantification()

        command = AddAnnotationCommand(annotation, self.group).publish_to(self.draw_events)
        command.execute()
        self.undo_stack.add(command)
        return annotation
