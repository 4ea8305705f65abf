from __future__ import annotations

import math
from dataclasses import dataclass
from typing import ClassVar, Iterable

from geometry.primitives import Point2D, Spacing2D
from shapes.base import ImageAccess, Quantification, ShapeKind, check_point2d


@dataclass(frozen=True)
class Line:
    kind: ClassVar[ShapeKind] = ShapeKind.LINE

    begin: Point2D
    end: Point2D

    def __post_init__(self) -> None:
        check_point2d(self.begin, name="Line begin")
        check_point2d(self.end, name="Line end")

    def equals(self, rhs: object) -> bool:
        return isinstance(rhs, Line) and self.begin.equals(rhs.begin) and self.end.equals(rhs.end)

    def get_points(self) -> list[Point2D]:
        return [self.begin, self.end]

    def get_delta_x(self) -> float:
        return self.end.x - self.begin.x

    def get_delta_y(self) -> float:
        return self.end.y - self.begin.y

    def get_length(self) -> float:
        return math.hypot(self.get_delta_x(), self.get_delta_y())

    def get_world_length(self, spacing: Spacing2D | None) -> float | None:
        if spacing is None:
            return None
        return math.hypot(self.get_delta_x() * spacing.x, self.get_delta_y() * spacing.y)

    def get_midpoint(self) -> Point2D:
        return Point2D((self.begin.x + self.end.x) / 2, (self.begin.y + self.end.y) / 2)

    def get_centroid(self) -> Point2D:
        return self.get_midpoint()

    def get_slope(self) -> float:
        dx = self.get_delta_x()
        if dx == 0:
            return math.inf
        return self.get_delta_y() / dx

    def get_intercept(self) -> float:
        """y at x = 0, nan for a vertical line."""
        if self.get_delta_x() == 0:
            return math.nan
        return (self.end.x * self.begin.y - self.begin.x * self.end.y) / self.get_delta_x()

    def get_inclination(self) -> float:
        """Direction in degrees in [0, 360), 90 for a left to right line; used to rotate ticks."""
        angle = math.degrees(math.atan2(self.get_delta_x(), self.get_delta_y()))
        return (180 - angle) % 360

    def translated(self, dx: float, dy: float) -> Line:
        return Line(self.begin.translated(dx, dy), self.end.translated(dx, dy))

    def quantify(self, image: ImageAccess | None, flags: Iterable[str] | None = None) -> Quantification:
        if image is None:
            return {}
        length = self.get_world_length(image.get_2d_spacing())
        if length is None:
            return {}
        return {"length": {"value": length, "unit": "mm"}}


def get_angle(line0: Line, line1: Line) -> float:
    """Angle in degrees from line0 to line1, measured at their junction."""
    dx0, dy0 = line0.get_delta_x(), line0.get_delta_y()
    dx1, dy1 = line1.get_delta_x(), line1.get_delta_y()
    dot = dx0 * dx1 + dy0 * dy1
    det = dx0 * dy1 - dy0 * dx1
    angle = math.degrees(math.atan2(det, dot))
    return 360 - (180 - angle)


def get_perpendicular_line(line: Line, point: Point2D, length: float) -> Line:
    """Line of the given length centred on point, perpendicular to line."""
    dx, dy = line.get_delta_x(), line.get_delta_y()
    norm = math.hypot(dx, dy)
    if norm == 0:
        raise ValueError("Cannot build a perpendicular to a zero length line")
    # unit normal
    nx, ny = -dy / norm, dx / norm
    half = length / 2
    return Line(
        Point2D(point.x - nx * half, point.y - ny * half),
        Point2D(point.x + nx * half, point.y + ny * half),
    )
