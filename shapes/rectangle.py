from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Iterable

from geometry.primitives import Point2D, Spacing2D, round_half_up
from shapes.base import (
    ImageAccess,
    Quantification,
    ShapeKind,
    check_point2d,
    stats_quantification,
    surface_quantification,
)


@dataclass(frozen=True)
class Rectangle:
    """Axis aligned rectangle; begin is always the top-left corner."""

    kind: ClassVar[ShapeKind] = ShapeKind.RECTANGLE

    begin: Point2D
    end: Point2D

    def __post_init__(self) -> None:
        b = check_point2d(self.begin, name="Rectangle begin")
        e = check_point2d(self.end, name="Rectangle end")
        object.__setattr__(self, "begin", Point2D(min(b.x, e.x), min(b.y, e.y)))
        object.__setattr__(self, "end", Point2D(max(b.x, e.x), max(b.y, e.y)))

    def equals(self, rhs: object) -> bool:
        return isinstance(rhs, Rectangle) and self.begin.equals(rhs.begin) and self.end.equals(rhs.end)

    def get_real_width(self) -> float:
        return self.end.x - self.begin.x

    def get_real_height(self) -> float:
        return self.end.y - self.begin.y

    def get_width(self) -> int:
        return round_half_up(self.get_real_width())

    def get_height(self) -> int:
        return round_half_up(self.get_real_height())

    def get_centroid(self) -> Point2D:
        return Point2D(self.begin.x + self.get_real_width() / 2, self.begin.y + self.get_real_height() / 2)

    def get_surface(self) -> float:
        return self.get_real_width() * self.get_real_height()

    def get_world_surface(self, spacing: Spacing2D | None) -> float | None:
        if spacing is None:
            return None
        return self.get_surface() * spacing.x * spacing.y

    def get_corners(self) -> list[Point2D]:
        """Top-left, top-right, bottom-right, bottom-left."""
        return [
            self.begin,
            Point2D(self.end.x, self.begin.y),
            self.end,
            Point2D(self.begin.x, self.end.y),
        ]

    def translated(self, dx: float, dy: float) -> Rectangle:
        return Rectangle(self.begin.translated(dx, dy), self.end.translated(dx, dy))

    def quantify(self, image: ImageAccess | None, flags: Iterable[str] | None = None) -> Quantification:
        if image is None:
            return {}
        quant = surface_quantification(self.get_world_surface(image.get_2d_spacing()))
        if image.can_quantify_image():
            values = image.get_image_region_values(self.begin.rounded(), self.end.rounded())
            quant.update(stats_quantification(values, flags, image.get_pixel_unit()))
        return quant
