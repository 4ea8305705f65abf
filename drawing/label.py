from __future__ import annotations

import math
from typing import Sequence

from geometry.primitives import Point2D
from shapes.line import Line


def get_bounds(points: Sequence[Point2D]) -> tuple[float, float, float, float]:
    """min x, min y, max x, max y"""
    xs = [p.x for p in points]
    ys = [p.y for p in points]
    return min(xs), min(ys), max(xs), max(ys)


def get_edge_midpoints(min_x: float, min_y: float, max_x: float, max_y: float) -> list[Point2D]:
    """top, right, bottom, left"""
    cx = (min_x + max_x) / 2
    cy = (min_y + max_y) / 2
    return [
        Point2D(cx, min_y),
        Point2D(max_x, cy),
        Point2D(cx, max_y),
        Point2D(min_x, cy),
    ]


def _overlap(a: tuple[float, float, float, float], b: tuple[float, float, float, float]) -> bool:
    return a[0] <= b[2] and b[0] <= a[2] and a[1] <= b[3] and b[1] <= a[3]


def get_connector(
    shape_points: Sequence[Point2D], label_position: Point2D, label_size: tuple[float, float]
) -> Line | None:
    """
    Shortest segment joining a shape to its label.

    Candidates are the edge midpoints of the shape bounds and of the label box.
    No connector when the label box touches the shape bounds.
    """
    if not shape_points:
        return None
    shape_box = get_bounds(shape_points)
    w, h = label_size
    label_box = (label_position.x, label_position.y, label_position.x + w, label_position.y + h)
    if _overlap(shape_box, label_box):
        return None

    best: Line | None = None
    best_d = math.inf
    for s in get_edge_midpoints(*shape_box):
        for lp in get_edge_midpoints(*label_box):
            d = s.get_distance(lp)
            if d < best_d:
                best_d = d
                best = Line(s, lp)
    return best
