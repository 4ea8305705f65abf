from __future__ import annotations

from typing import Protocol, Sequence, runtime_checkable

from geometry.primitives import Point, Point2D, Point3D, Vector3D
from shapes.base import ImageAccess


@runtime_checkable
class ReferenceFrame(Protocol):
    """What an annotation needs to know about the view it is drawn on."""

    def get_current_position(self) -> Point: ...

    def get_current_image_uid(self) -> str | None: ...

    def get_sop_class_uid(self) -> str | None: ...

    def get_current_frame_number(self) -> int | None: ...

    def get_origin_for_image_uid(self, uid: str) -> Point3D | None: ...

    def is_acquisition_orientation(self) -> bool: ...

    def get_plane_points(self, position: Point) -> tuple[Point3D, Vector3D, Vector3D] | None: ...

    def get_cosines(self) -> Sequence[float]: ...

    def get_modality(self) -> str | None: ...

    def get_scroll_dim_index(self) -> int: ...

    def get_position_from_plane_point(
        self, point: Point2D, k: float, position: Point | None = None
    ) -> Point | None: ...

    def get_plane_position(self, position: Point) -> Point3D | None: ...


@runtime_checkable
class ViewController(ReferenceFrame, ImageAccess, Protocol):
    """A reference frame that also gives access to the pixels it displays."""
