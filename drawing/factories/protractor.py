from __future__ import annotations

from typing import Mapping, Sequence

from drawing.factories.base import Anchor, ShapeFactory, check_point_count, extra_node, outline_node
from drawing.nodes import DrawStyle, ShapeNode
from geometry.primitives import Point2D
from shapes.base import ShapeKind
from shapes.line import Line, get_angle
from shapes.protractor import Protractor


class ProtractorFactory(ShapeFactory):
    name = "protractor"
    kind = ShapeKind.PROTRACTOR
    shape_type = Protractor
    n_points = 3
    anchor_ids = ("begin", "mid", "end")

    def create_shape(self, points: Sequence[Point2D]) -> Protractor:
        check_point_count(points, 3, "Protractor")
        return Protractor.from_points(points)

    def get_anchors(self, shape: Protractor) -> list[Anchor]:
        return [Anchor(i, p.x, p.y) for i, p in zip(self.anchor_ids, shape.points)]

    def anchors_to_shape(self, anchors: Mapping[str, Point2D]) -> Protractor:
        return Protractor((anchors["begin"], anchors["mid"], anchors["end"]))

    def get_outline(self, shape: Protractor, style: DrawStyle, colour: str) -> ShapeNode:
        flat: list[float] = []
        for p in shape.points:
            flat.extend((p.x, p.y))
        return outline_node("line", {"points": flat}, style, colour)

    def get_extras(self, shape: Protractor, style: DrawStyle, colour: str) -> list[ShapeNode]:
        line0, line1 = shape.get_lines()
        radius = min(line0.get_length(), line1.get_length()) * 0.33
        if radius == 0:
            return []
        angle = shape.get_angle()
        vertex = shape.points[1]
        # the arc sweeps from the first ray it meets going clockwise
        if get_angle(line0, line1) > 180:
            start = Line(vertex, shape.points[0])
        else:
            start = Line(vertex, shape.points[2])
        inclination = start.get_inclination()
        attrs = {
            "x": shape.points[1].x,
            "y": shape.points[1].y,
            "inner_radius": radius,
            "outer_radius": radius,
            "angle": angle,
            "rotation": -inclination,
        }
        return [extra_node("arc", attrs, style, colour)]

    def get_default_label_position(self, shape: Protractor) -> Point2D:
        return Line(shape.points[0], shape.points[2]).get_midpoint()
