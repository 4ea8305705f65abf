from __future__ import annotations

import math
from dataclasses import dataclass
from typing import ClassVar, Iterable

from geometry.primitives import Point2D, Spacing2D, is_finite_number, round_half_up
from shapes.base import (
    ImageAccess,
    Quantification,
    Region,
    ShapeKind,
    check_point2d,
    stats_quantification,
    surface_quantification,
)

# Rows whose squared half height difference is below this are skipped.
DISCRIMINANT_EPS = 1e-7
# Rows narrower than one pixel (half width < 0.5) are skipped.
MIN_HALF_WIDTH = 0.5


def get_ellipse_regions(center: Point2D, a: float, b: float) -> list[Region]:
    """
    Scanline segments covering an axis aligned ellipse.

    For each integer step of y the edge equation x = cx +- (a/b) * sqrt(b^2 - dy^2)
    gives the row extent directly, no polygon filling involved.
    """
    regions: list[Region] = []
    if a <= 0 or b <= 0:
        return regions
    ratio = a / b
    b2 = b * b
    y = center.y - b
    while y < center.y + b:
        diff = b2 - (y - center.y) ** 2
        if abs(diff) >= DISCRIMINANT_EPS:
            trans_x = ratio * math.sqrt(max(diff, 0.0))
            if trans_x >= MIN_HALF_WIDTH:
                ry = round_half_up(y)
                regions.append(
                    (
                        (round_half_up(center.x - trans_x), ry),
                        (round_half_up(center.x + trans_x), ry),
                    )
                )
        y += 1
    return regions


def quantify_regions(image: ImageAccess, regions: list[Region], flags: Iterable[str] | None) -> Quantification:
    if not regions or not image.can_quantify_image():
        return {}
    values = image.get_image_variable_region_values(regions)
    return stats_quantification(values, flags, image.get_pixel_unit())


@dataclass(frozen=True)
class Ellipse:
    kind: ClassVar[ShapeKind] = ShapeKind.ELLIPSE

    center: Point2D
    a: float
    b: float

    def __post_init__(self) -> None:
        check_point2d(self.center, name="Ellipse center")
        for name in ("a", "b"):
            v = getattr(self, name)
            if not is_finite_number(v) or v < 0:
                raise ValueError(f"Ellipse {name} radius must be a finite positive number, got {v!r}")
            object.__setattr__(self, name, float(v))

    def equals(self, rhs: object) -> bool:
        return isinstance(rhs, Ellipse) and self.center.equals(rhs.center) and self.a == rhs.a and self.b == rhs.b

    def get_centroid(self) -> Point2D:
        return self.center

    def get_surface(self) -> float:
        return math.pi * self.a * self.b

    def get_world_surface(self, spacing: Spacing2D | None) -> float | None:
        if spacing is None:
            return None
        return self.get_surface() * spacing.x * spacing.y

    def get_round(self) -> list[Region]:
        return get_ellipse_regions(self.center, self.a, self.b)

    def translated(self, dx: float, dy: float) -> Ellipse:
        return Ellipse(self.center.translated(dx, dy), self.a, self.b)

    def quantify(self, image: ImageAccess | None, flags: Iterable[str] | None = None) -> Quantification:
        if image is None:
            return {}
        quant = surface_quantification(self.get_world_surface(image.get_2d_spacing()))
        quant.update(quantify_regions(image, self.get_round(), flags))
        return quant
