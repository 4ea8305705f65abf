from __future__ import annotations

import logging
from typing import Sequence

from annotation.annotation import Annotation
from annotation.events import ANNOTATION_ADD, ANNOTATION_REMOVE, ANNOTATION_UPDATE, AnnotationEvent
from annotation.group import AnnotationGroup
from annotation.reference import ReferenceFrame
from drawing.factories.base import ShapeFactory
from drawing.nodes import DrawStyle, ShapeNode
from drawing.position_groups import DEFAULT_PRECISION, PositionGroups, PositionKey

logger = logging.getLogger(__name__)

# keys whose change only affects the label
LABEL_KEYS = ("text_expr", "label_position")


class DrawLayer:
    """
    Renderable view of an AnnotationGroup for one volume.

    Keeps one node tree per annotation in sync with group events and tells,
    through position groups, which trees belong to the current slice.
    """

    def __init__(
        self,
        group: AnnotationGroup,
        *,
        style: DrawStyle | None = None,
        custom_factories: Sequence[ShapeFactory] | None = None,
        precision: int = DEFAULT_PRECISION,
    ) -> None:
        self.group = group
        self.style = style or DrawStyle(line_colour=group.get_colour())
        self.custom_factories = list(custom_factories or [])
        self.positions = PositionGroups(precision)
        self._nodes: dict[str, ShapeNode] = {}

        for annotation in group.get_list():
            self._on_add(AnnotationEvent(ANNOTATION_ADD, annotation))
        group.events.subscribe(ANNOTATION_ADD, self._on_add)
        group.events.subscribe(ANNOTATION_UPDATE, self._on_update)
        group.events.subscribe(ANNOTATION_REMOVE, self._on_remove)

    def close(self) -> None:
        self.group.events.unsubscribe(ANNOTATION_ADD, self._on_add)
        self.group.events.unsubscribe(ANNOTATION_UPDATE, self._on_update)
        self.group.events.unsubscribe(ANNOTATION_REMOVE, self._on_remove)

    def get_factory(self, annotation: Annotation) -> ShapeFactory | None:
        return annotation.get_factory(self.custom_factories)

    def get_node(self, annotation_id: str) -> ShapeNode | None:
        return self._nodes.get(annotation_id)

    def activate(self, view: ReferenceFrame) -> PositionKey | None:
        """Show the nodes of the position group at the view position; only two groups are touched."""
        self._set_visible(self.positions.get_active_ids(), False)
        key = self.positions.activate(view)
        self._set_visible(self.positions.get_active_ids(), True)
        return key

    def _set_visible(self, annotation_ids: list[str], visible: bool) -> None:
        for annotation_id in annotation_ids:
            node = self._nodes.get(annotation_id)
            if node is not None:
                node.visible = visible

    def get_visible_nodes(self) -> list[ShapeNode]:
        return [self._nodes[i] for i in self.positions.get_active_ids() if i in self._nodes]

    def _on_add(self, event: AnnotationEvent) -> None:
        annotation = event.data
        factory = self.get_factory(annotation)
        if factory is None:
            return
        node = factory.create_node(annotation, self.style)
        self._nodes[annotation.id] = node
        self.positions.add(annotation)
        node.visible = self.positions.is_visible(annotation.id)

    def _on_update(self, event: AnnotationEvent) -> None:
        annotation = event.data
        node = self._nodes.get(annotation.id)
        factory = self.get_factory(annotation)
        if node is None or factory is None:
            return
        keys = event.keys
        if keys is not None and all(k in LABEL_KEYS for k in keys):
            factory.update_label_content(annotation, node, self.style)
        else:
            factory.update_shape_group_on_anchor_move(annotation, node, self.style)
        self.positions.update(annotation)
        node.visible = self.positions.is_visible(annotation.id)

    def _on_remove(self, event: AnnotationEvent) -> None:
        self._nodes.pop(event.data.id, None)
        self.positions.remove(event.data.id)
