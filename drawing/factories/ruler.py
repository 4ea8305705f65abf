from __future__ import annotations

from typing import Mapping, Sequence

from drawing.factories.base import Anchor, ShapeFactory, check_point_count, extra_node, outline_node
from drawing.nodes import DrawStyle, ShapeNode
from geometry.primitives import Point2D
from shapes.base import ShapeKind
from shapes.line import Line, get_perpendicular_line

TICK_LENGTH = 10.0


class RulerFactory(ShapeFactory):
    name = "ruler"
    kind = ShapeKind.LINE
    shape_type = Line
    n_points = 2
    anchor_ids = ("begin", "end")

    def create_shape(self, points: Sequence[Point2D]) -> Line:
        check_point_count(points, 2, "Ruler")
        return Line(points[0], points[1])

    def get_anchors(self, shape: Line) -> list[Anchor]:
        return [
            Anchor("begin", shape.begin.x, shape.begin.y),
            Anchor("end", shape.end.x, shape.end.y),
        ]

    def anchors_to_shape(self, anchors: Mapping[str, Point2D]) -> Line:
        return Line(anchors["begin"], anchors["end"])

    def get_outline(self, shape: Line, style: DrawStyle, colour: str) -> ShapeNode:
        return outline_node("line", {"points": [shape.begin.x, shape.begin.y, shape.end.x, shape.end.y]}, style, colour)

    def get_extras(self, shape: Line, style: DrawStyle, colour: str) -> list[ShapeNode]:
        if shape.get_length() == 0:
            return []
        out = []
        for p in (shape.begin, shape.end):
            tick = get_perpendicular_line(shape, p, TICK_LENGTH)
            out.append(extra_node("line", {"points": [tick.begin.x, tick.begin.y, tick.end.x, tick.end.y]}, style, colour))
        return out

    def get_default_label_position(self, shape: Line) -> Point2D:
        # beside the end point, away from the line
        dx = 0 if shape.begin.x > shape.end.x else -1
        dy = -1 if shape.begin.y > shape.end.y else 0.5
        return Point2D(shape.end.x + dx * 25, shape.end.y + dy * 15)
