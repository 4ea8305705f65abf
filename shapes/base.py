from __future__ import annotations

from enum import Enum
from typing import Any, Iterable, Protocol, Sequence, runtime_checkable

from geometry.primitives import Point2D, Spacing2D
from shapes.stats import get_stats

# name -> {"value": float, "unit": str | None}
Quantification = dict[str, dict[str, Any]]

# one scanline: ((min_x, y), (max_x, y)), both ends included
Region = tuple[tuple[int, int], tuple[int, int]]

# Surfaces are computed in mm2 and reported in cm2.
MM2_PER_CM2 = 100.0


class ShapeKind(str, Enum):
    LINE = "line"
    CIRCLE = "circle"
    ELLIPSE = "ellipse"
    RECTANGLE = "rectangle"
    ROI = "roi"
    PROTRACTOR = "protractor"


@runtime_checkable
class ImageAccess(Protocol):
    """Pixel access for quantification; the core never owns pixel storage."""

    def get_image_region_values(self, min_point: Point2D, max_point: Point2D) -> Sequence[float]: ...

    def get_image_variable_region_values(self, regions: Sequence[Region]) -> Sequence[float]: ...

    def get_2d_spacing(self) -> Spacing2D | None: ...

    def can_quantify_image(self) -> bool: ...

    def get_pixel_unit(self) -> str | None: ...


def check_point2d(p: Any, *, name: str) -> Point2D:
    if not isinstance(p, Point2D):
        raise TypeError(f"{name} must be a Point2D, got {type(p).__name__}")
    return p


def surface_quantification(world_surface: float | None) -> Quantification:
    if world_surface is None:
        return {}
    return {"surface": {"value": world_surface / MM2_PER_CM2, "unit": "cm2"}}


def stats_quantification(
    values: Sequence[float], flags: Iterable[str] | None, unit: str | None
) -> Quantification:
    if len(values) == 0:
        return {}
    stats = get_stats(values, flags)
    return {name: {"value": v, "unit": unit} for name, v in stats.items()}


def kind_of(shape: Any) -> ShapeKind | None:
    kind = getattr(type(shape), "kind", None)
    return kind if isinstance(kind, ShapeKind) else None
