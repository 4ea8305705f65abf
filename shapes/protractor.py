from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Iterable, Sequence

from geometry.primitives import Point2D
from shapes.base import ImageAccess, Quantification, ShapeKind, check_point2d
from shapes.line import Line, get_angle


@dataclass(frozen=True)
class Protractor:
    """Angle defined by three points; the middle one is the vertex."""

    kind: ClassVar[ShapeKind] = ShapeKind.PROTRACTOR

    points: tuple[Point2D, Point2D, Point2D]

    def __post_init__(self) -> None:
        pts = tuple(self.points)
        if len(pts) != 3:
            raise ValueError(f"Protractor needs exactly 3 points, got {len(pts)}")
        for i, p in enumerate(pts):
            check_point2d(p, name=f"Protractor point {i}")
        object.__setattr__(self, "points", pts)

    @classmethod
    def from_points(cls, points: Sequence[Point2D]) -> Protractor:
        return cls(tuple(points))  # type: ignore[arg-type]

    def equals(self, rhs: object) -> bool:
        return isinstance(rhs, Protractor) and all(a.equals(b) for a, b in zip(self.points, rhs.points))

    def get_centroid(self) -> Point2D:
        return self.points[1]

    def get_lines(self) -> tuple[Line, Line]:
        return Line(self.points[0], self.points[1]), Line(self.points[1], self.points[2])

    def get_angle(self) -> float:
        """Angle at the vertex, in [0, 180] degrees."""
        line0, line1 = self.get_lines()
        angle = get_angle(line0, line1)
        if angle > 180:
            angle = 360 - angle
        return angle

    def translated(self, dx: float, dy: float) -> Protractor:
        return Protractor(tuple(p.translated(dx, dy) for p in self.points))  # type: ignore[arg-type]

    def quantify(self, image: ImageAccess | None = None, flags: Iterable[str] | None = None) -> Quantification:
        return {"angle": {"value": self.get_angle(), "unit": "degree"}}
