from __future__ import annotations

from typing import Mapping, Sequence

from drawing.factories.base import Anchor, ShapeFactory, check_point_count, outline_node
from drawing.nodes import DrawStyle, ShapeNode
from geometry.primitives import Point2D
from shapes.base import ShapeKind
from shapes.rectangle import Rectangle

# corner -> (corner sharing its y, corner sharing its x)
_LINKED = {
    "topLeft": ("topRight", "bottomLeft"),
    "topRight": ("topLeft", "bottomRight"),
    "bottomRight": ("bottomLeft", "topRight"),
    "bottomLeft": ("bottomRight", "topLeft"),
}


class RectangleFactory(ShapeFactory):
    name = "rectangle"
    kind = ShapeKind.RECTANGLE
    shape_type = Rectangle
    n_points = 2
    anchor_ids = ("topLeft", "topRight", "bottomRight", "bottomLeft")

    def create_shape(self, points: Sequence[Point2D]) -> Rectangle:
        check_point_count(points, 2, "Rectangle")
        return Rectangle(points[0], points[1])

    def get_anchors(self, shape: Rectangle) -> list[Anchor]:
        return [Anchor(i, p.x, p.y) for i, p in zip(self.anchor_ids, shape.get_corners())]

    def anchors_to_shape(self, anchors: Mapping[str, Point2D]) -> Rectangle:
        return Rectangle(anchors["topLeft"], anchors["bottomRight"])

    def constrain_anchor_move(self, anchors: Mapping[str, Point2D], anchor_id: str) -> dict[str, Point2D]:
        out = dict(anchors)
        if anchor_id not in _LINKED:
            return out
        moved = out[anchor_id]
        same_y, same_x = _LINKED[anchor_id]
        out[same_y] = Point2D(out[same_y].x, moved.y)
        out[same_x] = Point2D(moved.x, out[same_x].y)
        return out

    def get_outline(self, shape: Rectangle, style: DrawStyle, colour: str) -> ShapeNode:
        attrs = {
            "x": shape.begin.x,
            "y": shape.begin.y,
            "width": shape.get_real_width(),
            "height": shape.get_real_height(),
        }
        return outline_node("rect", attrs, style, colour)

    def get_default_label_position(self, shape: Rectangle) -> Point2D:
        return Point2D(shape.begin.x, shape.end.y)
