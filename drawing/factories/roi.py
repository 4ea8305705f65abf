from __future__ import annotations

from typing import Mapping, Sequence

from drawing.factories.base import Anchor, ShapeFactory, outline_node
from drawing.nodes import DrawStyle, ShapeNode
from geometry.primitives import Point2D
from shapes.base import ShapeKind
from shapes.roi import ROI


class RoiFactory(ShapeFactory):
    name = "roi"
    kind = ShapeKind.ROI
    shape_type = ROI
    n_points = None

    def create_shape(self, points: Sequence[Point2D]) -> ROI:
        return ROI.from_points(points)

    def get_anchors(self, shape: ROI) -> list[Anchor]:
        return [Anchor(str(i), p.x, p.y) for i, p in enumerate(shape.points)]

    def anchors_to_shape(self, anchors: Mapping[str, Point2D]) -> ROI:
        ordered = sorted(anchors.items(), key=lambda kv: int(kv[0]))
        return ROI(tuple(p for _, p in ordered))

    def get_outline(self, shape: ROI, style: DrawStyle, colour: str) -> ShapeNode:
        flat: list[float] = []
        for p in shape.points:
            flat.extend((p.x, p.y))
        return outline_node("line", {"points": flat, "closed": True}, style, colour)

    def get_default_label_position(self, shape: ROI) -> Point2D:
        return shape.points[0]
