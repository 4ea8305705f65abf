from __future__ import annotations

import logging
from typing import Any, Sequence

from annotation.events import POSITION_CHANGE, DrawEvent, EventChannel
from annotation.group import AnnotationGroup
from commands.undo_stack import UndoStack
from config.settings import AnnotationConfig, load_config
from drawing.draw_layer import DrawLayer
from drawing.factories.base import ShapeFactory
from editing.bounds import ContainerBounds, DeleteTarget
from editing.draw_tool import DrawTool
from editing.drag_session import Editor
from geometry.primitives import Point2D
from imaging.volume_view import VolumeView
from observability.logging import setup_logging

logger = logging.getLogger(__name__)


class AnnotationWorkspace:
    """
    Everything needed to annotate one volume view, wired together.

    The draw layer follows the view's position changes so only annotations of
    the displayed plane are visible.

    Draw tool and editor publish their draw-create, draw-move, draw-change and
    draw-delete events on the shared draw_events channel.
    """

    def __init__(
        self,
        view: VolumeView,
        *,
        group: AnnotationGroup | None = None,
        config: AnnotationConfig | None = None,
        custom_factories: Sequence[ShapeFactory] | None = None,
    ) -> None:
        self.config = config or AnnotationConfig()
        self.view = view
        self.group = group or AnnotationGroup(colour=self.config.style.line_colour)
        for annotation in self.group.get_list():
            if not annotation.is_initialized():
                annotation.set_view_controller(view)
        self.undo_stack = UndoStack()
        self.draw_events: EventChannel[DrawEvent] = EventChannel()
        self.layer = DrawLayer(
            self.group,
            style=self.config.style.to_draw_style(),
            custom_factories=custom_factories,
            precision=self.config.position.precision,
        )

        size = view.get_geometry().get_size(view.get_plane_helper().get_view_orientation())
        width, height = size.get_2d()
        self.bounds = ContainerBounds(float(width), float(height))
        self.editor = Editor(
            self.group,
            self.undo_stack,
            self.bounds,
            layer=self.layer,
            delete_target=DeleteTarget(Point2D(width / 2, height / 15)),
            draw_events=self.draw_events,
        )
        self.draw_tool = DrawTool(
            self.group,
            self.undo_stack,
            view,
            labels=self.config.labels,
            custom_factories=custom_factories,
            draw_events=self.draw_events,
        )
        view.events.subscribe(POSITION_CHANGE, self._on_position_change)
        self.layer.activate(view)

    @classmethod
    def from_config_file(cls, view: VolumeView, path: str | None = None, *, setup_logs: bool = False) -> AnnotationWorkspace:
        config = load_config(path)
        if setup_logs:
            setup_logging(config.logging.level, json_logs=config.logging.json_logs)
        return cls(view, config=config)

    def _on_position_change(self, event: Any) -> None:
        self.layer.activate(self.view)

    def close(self) -> None:
        self.view.events.unsubscribe(POSITION_CHANGE, self._on_position_change)
        self.layer.close()
