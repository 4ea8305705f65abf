from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar, Mapping, Sequence

from drawing.label import get_connector
from drawing.nodes import ANCHOR, CONNECTOR, GROUP, LABEL, SHAPE, SHAPE_EXTRA, DrawStyle, ShapeNode
from geometry.primitives import Point2D
from shapes.base import ShapeKind

if TYPE_CHECKING:
    from annotation.annotation import Annotation


@dataclass(frozen=True)
class Anchor:
    id: str
    x: float
    y: float

    def as_point(self) -> Point2D:
        return Point2D(self.x, self.y)


def anchors_to_dict(anchors: Sequence[Anchor]) -> dict[str, Point2D]:
    return {a.id: a.as_point() for a in anchors}


class ShapeFactory:
    """
    Per shape kind drawing and editing behaviour.

    Factories are stateless. The math shape stays the single source of truth;
    anchors and nodes are always derived from it.
    """

    name: ClassVar[str] = ""
    kind: ClassVar[ShapeKind]
    shape_type: ClassVar[type]
    # number of points to create the shape, None when open ended
    n_points: ClassVar[int | None] = None
    # anchor ids in their fixed order
    anchor_ids: ClassVar[tuple[str, ...]] = ()

    @classmethod
    def supports(cls, shape: Any) -> bool:
        return isinstance(shape, cls.shape_type)

    # --- shape <-> points / anchors

    def create_shape(self, points: Sequence[Point2D]) -> Any:
        raise NotImplementedError

    def get_anchors(self, shape: Any) -> list[Anchor]:
        raise NotImplementedError

    def anchors_to_shape(self, anchors: Mapping[str, Point2D]) -> Any:
        raise NotImplementedError

    def constrain_anchor_move(self, anchors: Mapping[str, Point2D], anchor_id: str) -> dict[str, Point2D]:
        """Adjust the other anchors after anchor_id moved. Default: none."""
        return dict(anchors)

    # --- annotation updates

    def update_annotation_on_anchor_move(self, annotation: Annotation, anchors: Mapping[str, Point2D]) -> None:
        annotation.math_shape = self.anchors_to_shape(anchors)
        annotation.update_quantification()

    def update_annotation_on_translation(self, annotation: Annotation, dx: float, dy: float) -> None:
        annotation.math_shape = annotation.math_shape.translated(dx, dy)
        if annotation.reference_points is not None:
            annotation.reference_points = tuple(p.translated(dx, dy) for p in annotation.reference_points)
        if annotation.label_position is not None:
            annotation.label_position = annotation.label_position.translated(dx, dy)
        annotation.update_quantification()

    # --- drawing

    def get_outline(self, shape: Any, style: DrawStyle, colour: str) -> ShapeNode:
        raise NotImplementedError

    def get_extras(self, shape: Any, style: DrawStyle, colour: str) -> list[ShapeNode]:
        return []

    def get_default_label_position(self, shape: Any) -> Point2D:
        raise NotImplementedError

    def get_outline_points(self, shape: Any) -> list[Point2D]:
        """Points bounding the drawn shape, used to attach the label connector."""
        return [a.as_point() for a in self.get_anchors(shape)]

    def get_label_position(self, annotation: Annotation) -> Point2D:
        if annotation.label_position is not None:
            return annotation.label_position
        return self.get_default_label_position(annotation.math_shape)

    def create_node(self, annotation: Annotation, style: DrawStyle) -> ShapeNode:
        group = ShapeNode(name=GROUP, primitive="group", id=annotation.id)
        group.children = self._build_children(annotation, style, anchors_visible=False)
        return group

    def update_shape_group_on_anchor_move(self, annotation: Annotation, group: ShapeNode, style: DrawStyle) -> None:
        """Resync outline, extras, anchors, label and connector with the shape."""
        anchors = group.find(ANCHOR)
        visible = any(a.visible for a in anchors)
        group.children = self._build_children(annotation, style, anchors_visible=visible)

    def update_label_content(self, annotation: Annotation, group: ShapeNode, style: DrawStyle) -> None:
        group.replace_children(LABEL, [self._label_node(annotation, style)])
        group.replace_children(CONNECTOR, self._connector_nodes(annotation, style))

    def update_label_position(self, annotation: Annotation, group: ShapeNode, style: DrawStyle) -> None:
        self.update_label_content(annotation, group, style)

    def _colour(self, annotation: Annotation, style: DrawStyle) -> str:
        return annotation.colour or style.line_colour

    def _label_node(self, annotation: Annotation, style: DrawStyle) -> ShapeNode:
        text = annotation.get_text()
        pos = self.get_label_position(annotation)
        return ShapeNode(
            name=LABEL,
            primitive="text",
            attrs={
                "x": pos.x,
                "y": pos.y,
                "text": text,
                "font_size": style.font_size,
                "font_family": style.font_family,
                "padding": style.text_padding,
            },
            style={"fill": self._colour(annotation, style), "tag_opacity": style.tag_opacity},
            visible=len(text) != 0,
        )

    def _connector_nodes(self, annotation: Annotation, style: DrawStyle) -> list[ShapeNode]:
        text = annotation.get_text()
        if not text:
            return []
        line = get_connector(
            self.get_outline_points(annotation.math_shape),
            self.get_label_position(annotation),
            style.label_box_size(text),
        )
        if line is None:
            return []
        return [
            ShapeNode(
                name=CONNECTOR,
                primitive="line",
                attrs={"points": [line.begin.x, line.begin.y, line.end.x, line.end.y]},
                style={"stroke": self._colour(annotation, style), "stroke_width": 1, "dash": [10, 7]},
            )
        ]

    def _build_children(self, annotation: Annotation, style: DrawStyle, *, anchors_visible: bool) -> list[ShapeNode]:
        shape = annotation.math_shape
        colour = self._colour(annotation, style)
        children = [self.get_outline(shape, style, colour)]
        children.extend(self.get_extras(shape, style, colour))
        for a in self.get_anchors(shape):
            children.append(
                ShapeNode(
                    name=ANCHOR,
                    primitive="circle",
                    id=a.id,
                    attrs={"x": a.x, "y": a.y, "radius": style.anchor_radius},
                    style={"stroke": "#999", "fill": "rgba(100,100,100,0.7)"},
                    visible=anchors_visible,
                )
            )
        children.append(self._label_node(annotation, style))
        children.extend(self._connector_nodes(annotation, style))
        return children


def stroke_style(style: DrawStyle, colour: str) -> dict[str, Any]:
    return {"stroke": colour, "stroke_width": style.stroke_width}


def outline_node(primitive: str, attrs: dict[str, Any], style: DrawStyle, colour: str) -> ShapeNode:
    return ShapeNode(name=SHAPE, primitive=primitive, attrs=attrs, style=stroke_style(style, colour))


def extra_node(primitive: str, attrs: dict[str, Any], style: DrawStyle, colour: str) -> ShapeNode:
    return ShapeNode(name=SHAPE_EXTRA, primitive=primitive, attrs=attrs, style=stroke_style(style, colour))


def check_point_count(points: Sequence[Point2D], expected: int, name: str) -> None:
    if len(points) != expected:
        raise ValueError(f"{name} needs {expected} points, got {len(points)}")
