from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from geometry.primitives import Point2D


@dataclass(frozen=True)
class ContainerBounds:
    """Drawable area of a layer, in the layer's 2D coordinates."""

    width: float
    height: float

    def __post_init__(self) -> None:
        if not (self.width > 0 and self.height > 0):
            raise ValueError(f"Container size must be positive, got {self.width}x{self.height}")

    def contains(self, point: Point2D) -> bool:
        return 0 <= point.x <= self.width and 0 <= point.y <= self.height

    def clamp_point(self, point: Point2D) -> Point2D:
        x = min(max(point.x, 0.0), self.width)
        y = min(max(point.y, 0.0), self.height)
        if x == point.x and y == point.y:
            return point
        return Point2D(x, y)

    def clamp_translation(self, points: Sequence[Point2D], dx: float, dy: float) -> tuple[float, float]:
        """Reduce (dx, dy) so every point stays inside the container."""
        if not points:
            return dx, dy
        min_x = min(p.x for p in points)
        max_x = max(p.x for p in points)
        min_y = min(p.y for p in points)
        max_y = max(p.y for p in points)
        dx = min(max(dx, -min_x), self.width - max_x)
        dy = min(max(dy, -min_y), self.height - max_y)
        return dx, dy


@dataclass(frozen=True)
class DeleteTarget:
    """Drop zone that deletes a dragged shape."""

    center: Point2D
    half_width: float = 10.0
    half_height: float = 10.0

    def is_over(self, point: Point2D) -> bool:
        return abs(point.x - self.center.x) < self.half_width and abs(point.y - self.center.y) < self.half_height
