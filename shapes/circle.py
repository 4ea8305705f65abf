from __future__ import annotations

import math
from dataclasses import dataclass
from typing import ClassVar, Iterable

from geometry.primitives import Point2D, Spacing2D, is_finite_number
from shapes.base import ImageAccess, Quantification, Region, ShapeKind, check_point2d, surface_quantification
from shapes.ellipse import get_ellipse_regions, quantify_regions


@dataclass(frozen=True)
class Circle:
    kind: ClassVar[ShapeKind] = ShapeKind.CIRCLE

    center: Point2D
    radius: float

    def __post_init__(self) -> None:
        check_point2d(self.center, name="Circle center")
        if not is_finite_number(self.radius) or self.radius < 0:
            raise ValueError(f"Circle radius must be a finite positive number, got {self.radius!r}")
        object.__setattr__(self, "radius", float(self.radius))

    def equals(self, rhs: object) -> bool:
        return isinstance(rhs, Circle) and self.center.equals(rhs.center) and self.radius == rhs.radius

    def get_centroid(self) -> Point2D:
        return self.center

    def get_surface(self) -> float:
        return math.pi * self.radius * self.radius

    def get_world_surface(self, spacing: Spacing2D | None) -> float | None:
        if spacing is None:
            return None
        return self.get_surface() * spacing.x * spacing.y

    def get_round(self) -> list[Region]:
        return get_ellipse_regions(self.center, self.radius, self.radius)

    def translated(self, dx: float, dy: float) -> Circle:
        return Circle(self.center.translated(dx, dy), self.radius)

    def quantify(self, image: ImageAccess | None, flags: Iterable[str] | None = None) -> Quantification:
        if image is None:
            return {}
        quant = surface_quantification(self.get_world_surface(image.get_2d_spacing()))
        quant.update(quantify_regions(image, self.get_round(), flags))
        return quant
