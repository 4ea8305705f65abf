from __future__ import annotations

from typing import Mapping, Sequence

from drawing.factories.base import Anchor, ShapeFactory, check_point_count, outline_node
from drawing.nodes import DrawStyle, ShapeNode
from geometry.primitives import Point2D
from shapes.base import ShapeKind
from shapes.circle import Circle

HORIZONTAL = ("left", "right")
VERTICAL = ("bottom", "top")


def constrain_round_anchors(
    anchors: Mapping[str, Point2D], anchor_id: str, *, keep_aspect: bool
) -> dict[str, Point2D]:
    """
    Keep the centre fixed while one of left/right/bottom/top moves.

    The centre comes from the pair the moved anchor does not belong to. The
    moved anchor is projected onto its axis and the opposite one mirrored.
    keep_aspect applies the new radius to both axes (circle).
    """
    out = dict(anchors)
    left, right, bottom, top = out["left"], out["right"], out["bottom"], out["top"]
    moved = out[anchor_id]
    if anchor_id in HORIZONTAL:
        cx, cy = top.x, (top.y + bottom.y) / 2
        rx = abs(moved.x - cx)
        ry = rx if keep_aspect else abs(bottom.y - top.y) / 2
    elif anchor_id in VERTICAL:
        cx, cy = (left.x + right.x) / 2, left.y
        ry = abs(moved.y - cy)
        rx = ry if keep_aspect else abs(right.x - left.x) / 2
    else:
        return out
    out["left"] = Point2D(cx - rx, cy)
    out["right"] = Point2D(cx + rx, cy)
    out["bottom"] = Point2D(cx, cy + ry)
    out["top"] = Point2D(cx, cy - ry)
    return out


def round_anchors(cx: float, cy: float, rx: float, ry: float) -> list[Anchor]:
    return [
        Anchor("left", cx - rx, cy),
        Anchor("right", cx + rx, cy),
        Anchor("bottom", cx, cy + ry),
        Anchor("top", cx, cy - ry),
    ]


class CircleFactory(ShapeFactory):
    name = "circle"
    kind = ShapeKind.CIRCLE
    shape_type = Circle
    n_points = 2
    anchor_ids = ("left", "right", "bottom", "top")

    def create_shape(self, points: Sequence[Point2D]) -> Circle:
        """Centre then a point on the perimeter."""
        check_point_count(points, 2, "Circle")
        return Circle(points[0], points[0].get_distance(points[1]))

    def get_anchors(self, shape: Circle) -> list[Anchor]:
        return round_anchors(shape.center.x, shape.center.y, shape.radius, shape.radius)

    def anchors_to_shape(self, anchors: Mapping[str, Point2D]) -> Circle:
        left, right = anchors["left"], anchors["right"]
        center = Point2D((left.x + right.x) / 2, (anchors["top"].y + anchors["bottom"].y) / 2)
        return Circle(center, abs(right.x - left.x) / 2)

    def constrain_anchor_move(self, anchors: Mapping[str, Point2D], anchor_id: str) -> dict[str, Point2D]:
        return constrain_round_anchors(anchors, anchor_id, keep_aspect=True)

    def get_outline(self, shape: Circle, style: DrawStyle, colour: str) -> ShapeNode:
        return outline_node("circle", {"x": shape.center.x, "y": shape.center.y, "radius": shape.radius}, style, colour)

    def get_default_label_position(self, shape: Circle) -> Point2D:
        return Point2D(shape.center.x - shape.radius, shape.center.y + shape.radius)
