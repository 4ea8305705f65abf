from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Iterable, Sequence

from geometry.primitives import Point2D, Spacing2D
from shapes.base import ImageAccess, Quantification, ShapeKind, check_point2d, surface_quantification


@dataclass(frozen=True)
class ROI:
    """Free polygon; the last point connects back to the first."""

    kind: ClassVar[ShapeKind] = ShapeKind.ROI

    points: tuple[Point2D, ...]

    def __post_init__(self) -> None:
        pts = tuple(self.points)
        if not pts:
            raise ValueError("ROI needs at least one point")
        for i, p in enumerate(pts):
            check_point2d(p, name=f"ROI point {i}")
        object.__setattr__(self, "points", pts)

    @classmethod
    def from_points(cls, points: Sequence[Point2D]) -> ROI:
        return cls(tuple(points))

    def equals(self, rhs: object) -> bool:
        if not isinstance(rhs, ROI) or len(rhs.points) != len(self.points):
            return False
        return all(a.equals(b) for a, b in zip(self.points, rhs.points))

    def get_length(self) -> int:
        return len(self.points)

    def get_point(self, i: int) -> Point2D | None:
        if 0 <= i < len(self.points):
            return self.points[i]
        return None

    def with_point(self, point: Point2D) -> ROI:
        return ROI(self.points + (point,))

    def with_replaced_point(self, i: int, point: Point2D) -> ROI:
        pts = list(self.points)
        pts[i] = point
        return ROI(tuple(pts))

    def get_centroid(self) -> Point2D:
        n = len(self.points)
        return Point2D(sum(p.x for p in self.points) / n, sum(p.y for p in self.points) / n)

    def get_surface(self) -> float:
        """Shoelace formula on the closed polygon."""
        n = len(self.points)
        if n < 3:
            return 0.0
        acc = 0.0
        for i in range(n):
            p0 = self.points[i]
            p1 = self.points[(i + 1) % n]
            acc += p0.x * p1.y - p1.x * p0.y
        return abs(acc) / 2

    def get_world_surface(self, spacing: Spacing2D | None) -> float | None:
        if spacing is None:
            return None
        return self.get_surface() * spacing.x * spacing.y

    def translated(self, dx: float, dy: float) -> ROI:
        return ROI(tuple(p.translated(dx, dy) for p in self.points))

    def quantify(self, image: ImageAccess | None, flags: Iterable[str] | None = None) -> Quantification:
        if image is None or len(self.points) < 3:
            return {}
        return surface_quantification(self.get_world_surface(image.get_2d_spacing()))
