from __future__ import annotations

import logging
from typing import Any, Callable, Sequence

import numpy as np

from annotation.events import EventChannel, PositionChangeEvent
from geometry.matrix import Matrix33
from geometry.plane_helper import PlaneHelper
from geometry.primitives import Index, Point, Point2D, Point3D, Spacing2D, Vector3D, round_half_up
from geometry.volume_geometry import Geometry
from shapes.base import Region

logger = logging.getLogger(__name__)


class VolumeView:
    """
    One oriented view over a caller-owned volume array.

    data is indexed [k, j, i] or, with frames, [t, k, j, i]. The view keeps the
    current world position and provides what annotations need: pixel access
    for quantification and the reference frame of the displayed plane.
    """

    def __init__(
        self,
        geometry: Geometry,
        data: np.ndarray,
        *,
        view_orientation: Matrix33 | None = None,
        modality: str | None = None,
        image_uids: Sequence[str] | None = None,
        sop_class_uid: str | None = None,
        pixel_unit: str | None = None,
    ) -> None:
        if not isinstance(data, np.ndarray):
            raise TypeError("Volume data must be a numpy array")
        if data.ndim not in (3, 4):
            raise ValueError(f"Volume data must be 3D or 4D, got {data.ndim}D")
        self._geometry = geometry
        self._data = data
        self._helper = PlaneHelper(geometry, view_orientation)
        self._modality = modality
        self._image_uids = list(image_uids or [])
        self._sop_class_uid = sop_class_uid
        self._pixel_unit = pixel_unit
        self.events: EventChannel[PositionChangeEvent] = EventChannel()

        start = (0, 0, 0) if data.ndim == 3 else (0, 0, 0, geometry.get_initial_time() or 0)
        position = geometry.index_to_world(Index(start))
        if position is None:
            raise ValueError(f"Geometry has no world position for index {start}")
        self._position = position

    # --- accessors

    def get_geometry(self) -> Geometry:
        return self._geometry

    def get_plane_helper(self) -> PlaneHelper:
        return self._helper

    def get_data(self) -> np.ndarray:
        return self._data

    def get_modality(self) -> str | None:
        return self._modality

    def get_sop_class_uid(self) -> str | None:
        return self._sop_class_uid

    def get_pixel_unit(self) -> str | None:
        return self._pixel_unit

    # --- position

    def get_current_position(self) -> Point:
        return self._position

    def get_current_index(self) -> Index | None:
        return self._geometry.world_to_index(self._position)

    def set_current_position(self, position: Point, *, silent: bool = False) -> bool:
        """Move to a world position; out of bounds positions are refused."""
        index = self._geometry.world_to_index(position)
        if index is None:
            logger.debug("Position %s is out of bounds", position.values)
            return False
        self._position = position
        if not silent:
            self.events.publish(PositionChangeEvent((index.values, position.values)))
        return True

    def set_current_index(self, index: Index, *, silent: bool = False) -> bool:
        position = self._geometry.index_to_world(index)
        if position is None:
            return False
        return self.set_current_position(position, silent=silent)

    def add_event_listener(self, event_type: str, callback: Callable[[Any], Any]) -> None:
        self.events.subscribe(event_type, callback)

    def remove_event_listener(self, event_type: str, callback: Callable[[Any], Any]) -> None:
        self.events.unsubscribe(event_type, callback)

    # --- reference frame

    def get_current_image_uid(self) -> str | None:
        index = self.get_current_index()
        if index is None:
            return None
        k = int(index.values[2])
        if k >= len(self._image_uids):
            return None
        return self._image_uids[k]

    def get_current_frame_number(self) -> int | None:
        if self._data.ndim == 4 and len(self._position) > 3:
            return round_half_up(self._position.values[3])
        return None

    def get_origin_for_image_uid(self, uid: str) -> Point3D | None:
        if uid not in self._image_uids:
            return None
        k = self._image_uids.index(uid)
        world = self._geometry.index_to_world(Index((0, 0, k)))
        return world.get_3d() if world is not None else None

    def is_acquisition_orientation(self) -> bool:
        return self._helper.is_acquisition_orientation()

    def get_cosines(self) -> list[float]:
        return self._helper.get_cosines()

    def get_scroll_dim_index(self) -> int:
        return self._helper.get_scroll_index()

    def get_plane_points(self, position: Point) -> tuple[Point3D, Vector3D, Vector3D] | None:
        """World origin of the displayed plane through position, and its row/column directions."""
        plane = self._helper.get_plane_position(position)
        if plane is None:
            return None
        k = round_half_up(plane.z)
        origin = self._helper.get_position_from_plane_point(Point2D(0.0, 0.0), k, position)
        if origin is None:
            return None
        cosines = self.get_cosines()
        return origin.get_3d(), Vector3D(*cosines[:3]), Vector3D(*cosines[3:])

    def get_position_from_plane_point(self, point: Point2D, k: float, position: Point | None = None) -> Point | None:
        """World position of a plane point; time comes from position, the current one by default."""
        if position is None:
            position = self._position
        return self._helper.get_position_from_plane_point(point, k, position)

    def get_plane_position(self, position: Point) -> Point3D | None:
        return self._helper.get_plane_position(position)

    # --- image access

    def _current_plane(self) -> np.ndarray | None:
        """Pixels of the displayed slice, indexed [y, x] in plane coordinates."""
        index = self.get_current_index()
        if index is None:
            return None
        volume = self._data
        if volume.ndim == 4:
            t = int(index.values[3]) if len(index) > 3 else 0
            volume = volume[t]
        # [k, j, i] -> [i, j, k] then image axes -> plane axes
        ijk = volume.transpose(2, 1, 0)
        view = self._helper.get_view_orientation()
        axes = tuple(int(view.get_col_abs_max(c)["index"]) for c in range(3))
        oriented = ijk.transpose(axes)
        plane = self._helper.get_plane_position(self._position)
        if plane is None:
            return None
        k = round_half_up(plane.z)
        if k < 0 or k >= oriented.shape[2]:
            return None
        return oriented[:, :, k].T

    def get_image_region_values(self, min_point: Point2D, max_point: Point2D) -> list[float]:
        """Values of the inclusive rectangle [min, max], row by row."""
        plane = self._current_plane()
        if plane is None:
            return []
        height, width = plane.shape
        x0 = max(int(min_point.x), 0)
        y0 = max(int(min_point.y), 0)
        x1 = min(int(max_point.x), width - 1)
        y1 = min(int(max_point.y), height - 1)
        if x1 < x0 or y1 < y0:
            return []
        return plane[y0 : y1 + 1, x0 : x1 + 1].astype(float).ravel().tolist()

    def get_image_variable_region_values(self, regions: Sequence[Region]) -> list[float]:
        """Values of inclusive horizontal scanlines ((x0, y), (x1, y))."""
        plane = self._current_plane()
        if plane is None:
            return []
        height, width = plane.shape
        values: list[float] = []
        for (x0, y), (x1, _) in regions:
            y = int(y)
            if y < 0 or y >= height:
                continue
            lo = max(int(x0), 0)
            hi = min(int(x1), width - 1)
            if hi < lo:
                continue
            values.extend(plane[y, lo : hi + 1].astype(float).tolist())
        return values

    def get_2d_spacing(self) -> Spacing2D | None:
        return self._geometry.get_spacing(self._helper.get_view_orientation()).get_2d()

    def can_quantify_image(self) -> bool:
        return bool(np.issubdtype(self._data.dtype, np.number))
