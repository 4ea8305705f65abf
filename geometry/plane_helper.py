from __future__ import annotations

from geometry.matrix import Matrix33
from geometry.orientation import (
    get_cosines_from_orientation,
    get_deoriented_array3d,
    get_orientation_from_cosines,
    get_oriented_array3d,
    get_target_orientation,
    get_view_orientation,
)
from geometry.primitives import Index, Point, Point2D, Point3D, Vector3D
from geometry.volume_geometry import Geometry


class PlaneHelper:
    """
    Conversions between world, 2D view plane and native image space.

    [Img] -- Oi --> [Real] <-- Ot -- [Target]
    Pi = inv(Oi) * Ot * Pt = Ov * Pt, Ot = Oi * Ov

    The view orientation Ov is a permutation (ones and zeros) going from plane
    axes (x, y, scroll) to image axes (i, j, k). Plane coordinates are
    continuous image indices, so a plane point (x, y) at scroll value k is a
    voxel position, not a physical one.
    """

    def __init__(self, geometry: Geometry, view_orientation: Matrix33 | None = None) -> None:
        self._geometry = geometry
        self._image_orientation = geometry.get_orientation()
        self._view_orientation = view_orientation if view_orientation is not None else Matrix33.identity()
        self._target_orientation = get_target_orientation(self._image_orientation, self._view_orientation)

    @classmethod
    def from_target(cls, geometry: Geometry, target_orientation: Matrix33) -> PlaneHelper:
        """Build from the wanted display orientation (e.g. the coronal preset)."""
        view = get_view_orientation(geometry.get_orientation(), target_orientation)
        return cls(geometry, view)

    def get_geometry(self) -> Geometry:
        return self._geometry

    def get_image_orientation(self) -> Matrix33:
        return self._image_orientation

    def get_view_orientation(self) -> Matrix33:
        return self._view_orientation

    def get_target_orientation(self) -> Matrix33:
        return self._target_orientation

    # --- scroll

    def get_scroll_index(self) -> int:
        return self._view_orientation.get_third_col_major_direction()

    def get_native_scroll_index(self) -> int:
        return self._image_orientation.get_third_col_major_direction()

    def is_acquisition_orientation(self) -> bool:
        return self.get_scroll_index() == 2

    def get_cosines(self) -> list[float]:
        """Row and column direction cosines of the displayed plane in world space."""
        m = self._image_orientation.multiply(self._view_orientation.get_abs())
        row = m.get_column(0).normalized()
        col = m.get_column(1).normalized()
        return list(row.as_tuple()) + list(col.as_tuple())

    def get_plane_orientation(self) -> Matrix33:
        ori = get_orientation_from_cosines(self.get_cosines())
        if ori is None:
            raise ValueError("Degenerate plane cosines")
        return ori

    # --- vectors and offsets

    def get_oriented_vector3d(self, vector: Vector3D) -> Vector3D:
        return Vector3D(*get_oriented_array3d(vector.as_tuple(), self._view_orientation))

    def get_deoriented_vector3d(self, plane_vector: Vector3D) -> Vector3D:
        return Vector3D(*get_deoriented_array3d(plane_vector.as_tuple(), self._view_orientation))

    def get_oriented_index(self, index: Index) -> Index:
        inv = self._view_orientation.get_inverse()
        if inv is None:
            raise ValueError("View orientation is not invertible")
        return inv.get_abs().multiply_index3d(index)

    def get_deoriented_index(self, plane_index: Index) -> Index:
        return self._view_orientation.get_abs().multiply_index3d(plane_index)

    def get_oriented_point(self, point: Point) -> Point:
        oriented = get_oriented_array3d(point.get_3d().as_tuple(), self._view_orientation)
        return point.merge_with_3d(Point3D(*oriented))

    def get_deoriented_point(self, plane_point: Point) -> Point:
        native = get_deoriented_array3d(plane_point.get_3d().as_tuple(), self._view_orientation)
        return plane_point.merge_with_3d(Point3D(*native))

    def get_offset3d_from_plane_offset(self, dx: float, dy: float) -> Vector3D:
        """Plane offset (pixels) to a physical offset along image axes."""
        native = self.get_deoriented_vector3d(Vector3D(dx, dy, 0.0))
        sx, sy, sz = self._geometry.get_spacing().get_3d()
        return Vector3D(native.x * sx, native.y * sy, native.z * sz)

    def get_plane_offset_from_offset3d(self, offset: Vector3D) -> Point2D:
        sx, sy, sz = self._geometry.get_spacing().get_3d()
        pixel = Vector3D(offset.x / sx, offset.y / sy, offset.z / sz)
        plane = self.get_oriented_vector3d(pixel)
        return Point2D(plane.x, plane.y)

    # --- positions

    def get_position_from_plane_point(
        self, point2d: Point2D, k: float, current_position: Point | None = None
    ) -> Point | None:
        """
        World position of plane point (x, y) on scroll value k.

        Dimensions beyond 3D (time) are taken from current_position.
        """
        native = get_deoriented_array3d((point2d.x, point2d.y, k), self._view_orientation)
        extra: tuple[float, ...] = ()
        if current_position is not None and len(current_position) > 3:
            cont = self._geometry.world_to_point(current_position)
            if cont is not None:
                extra = cont.values[3:]
        return self._geometry.point_to_world(Point(tuple(native) + extra))

    def get_plane_position(self, position: Point) -> Point3D | None:
        """Oriented (x, y, scroll) continuous index of a world position."""
        cont = self._geometry.world_to_point(position)
        if cont is None:
            return None
        return Point3D(*get_oriented_array3d(cont.get_3d().as_tuple(), self._view_orientation))

    def get_plane_point_from_position(self, position: Point) -> Point2D | None:
        plane = self.get_plane_position(position)
        if plane is None:
            return None
        return Point2D(plane.x, plane.y)

    def get_image_cosines(self) -> list[float]:
        return get_cosines_from_orientation(self._image_orientation)
