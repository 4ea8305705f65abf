from __future__ import annotations

from typing import Mapping, Sequence

from drawing.factories.base import Anchor, ShapeFactory, check_point_count, outline_node
from drawing.factories.circle import constrain_round_anchors, round_anchors
from drawing.nodes import DrawStyle, ShapeNode
from geometry.primitives import Point2D
from shapes.base import ShapeKind
from shapes.ellipse import Ellipse


class EllipseFactory(ShapeFactory):
    name = "ellipse"
    kind = ShapeKind.ELLIPSE
    shape_type = Ellipse
    n_points = 2
    anchor_ids = ("left", "right", "bottom", "top")

    def create_shape(self, points: Sequence[Point2D]) -> Ellipse:
        """Centre then a corner of the bounding box."""
        check_point_count(points, 2, "Ellipse")
        c, p = points
        return Ellipse(c, abs(p.x - c.x), abs(p.y - c.y))

    def get_anchors(self, shape: Ellipse) -> list[Anchor]:
        return round_anchors(shape.center.x, shape.center.y, shape.a, shape.b)

    def anchors_to_shape(self, anchors: Mapping[str, Point2D]) -> Ellipse:
        left, right = anchors["left"], anchors["right"]
        top, bottom = anchors["top"], anchors["bottom"]
        center = Point2D((left.x + right.x) / 2, (top.y + bottom.y) / 2)
        return Ellipse(center, abs(right.x - left.x) / 2, abs(bottom.y - top.y) / 2)

    def constrain_anchor_move(self, anchors: Mapping[str, Point2D], anchor_id: str) -> dict[str, Point2D]:
        return constrain_round_anchors(anchors, anchor_id, keep_aspect=False)

    def get_outline(self, shape: Ellipse, style: DrawStyle, colour: str) -> ShapeNode:
        attrs = {"x": shape.center.x, "y": shape.center.y, "radius_x": shape.a, "radius_y": shape.b}
        return outline_node("ellipse", attrs, style, colour)

    def get_default_label_position(self, shape: Ellipse) -> Point2D:
        return Point2D(shape.center.x - shape.a, shape.center.y + shape.b)
