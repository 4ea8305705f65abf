from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from typing import Mapping, Sequence

from geometry.matrix import Matrix33
from geometry.orientation import get_oriented_array3d
from geometry.primitives import Index, Point, Point3D, Size, Spacing, Vector3D, round_half_up

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _GeometryState:
    # time -> origins of that time point; key None is used when no time is set
    time_origins: Mapping[int | None, tuple[Point3D, ...]]
    size: Size
    spacing: Spacing


class Geometry:
    """
    Geometry of one volume: per-slice origins, size, spacing and orientation.

    Slices can be appended while views read the geometry. All mutable state
    lives in one frozen snapshot that is replaced in a single assignment, so a
    reader that grabbed the snapshot sees a consistent (possibly older) list of
    origins and never a half-written one. One appender at a time is assumed.
    """

    def __init__(
        self,
        origins: Sequence[Point3D],
        size: Size,
        spacing: Spacing,
        orientation: Matrix33 | None = None,
        time: int | None = None,
    ) -> None:
        origins = tuple(origins)
        if not origins:
            raise ValueError("Geometry needs at least one origin")
        for o in origins:
            if not isinstance(o, Point3D):
                raise TypeError(f"Geometry origins must be Point3D, got {type(o).__name__}")
        if len(size) < 2 or len(spacing) < 2:
            raise ValueError("Geometry needs at least 2D size and spacing")
        if len(size) != len(spacing):
            raise ValueError(f"Size and spacing length differ ({len(size)} != {len(spacing)})")
        if len(size) == 2:
            size = Size(size.values + (1,))
            spacing = Spacing(spacing.values + (1.0,))
        if len(origins) > size.values[2]:
            raise ValueError(f"More origins ({len(origins)}) than slices ({size.values[2]})")
        if orientation is None:
            orientation = Matrix33.identity()
        if orientation.get_inverse() is None:
            raise ValueError("Geometry orientation must be invertible")

        self._orientation = orientation
        self._initial_time = time
        self._state = _GeometryState(time_origins={time: origins}, size=size, spacing=spacing)

    # --- accessors

    def get_initial_time(self) -> int | None:
        return self._initial_time

    def get_orientation(self) -> Matrix33:
        return self._orientation

    def get_origin(self) -> Point3D:
        return self._state.time_origins[self._initial_time][0]

    def get_origins(self, time: int | None = None) -> tuple[Point3D, ...]:
        return self._origins_at(self._state, time)

    def has_slices_at_time(self, time: int) -> bool:
        return time in self._state.time_origins

    def get_current_num_slices(self, time: int | None = None) -> int:
        return len(self.get_origins(time))

    def get_size(self, view_orientation: Matrix33 | None = None) -> Size:
        size = self._state.size
        if view_orientation is None:
            return size
        oriented = get_oriented_array3d(size.values[:3], view_orientation)
        return Size(tuple(int(round(v)) for v in oriented) + size.values[3:])

    def get_spacing(self, view_orientation: Matrix33 | None = None) -> Spacing:
        spacing = self._state.spacing
        if view_orientation is None:
            return spacing
        oriented = get_oriented_array3d(spacing.values[:3], view_orientation)
        return Spacing(tuple(oriented) + spacing.values[3:])

    def equals(self, rhs: Geometry | None) -> bool:
        if rhs is None:
            return False
        a, b = self._state, rhs._state
        return (
            self._orientation.equals(rhs._orientation)
            and a.size == b.size
            and a.spacing == b.spacing
            and dict(a.time_origins) == dict(b.time_origins)
        )

    # --- appending (single writer)

    def get_slice_index(self, point: Point3D, time: int | None = None) -> int:
        """
        Index at which a slice through point would be inserted.

        Closest origin wins; the slice goes after it when the point lies on the
        positive side of the plane normal.
        """
        origins = self._origins_at(self._state, time)
        closest = min(range(len(origins)), key=lambda i: point.get_distance(origins[i]))
        normal = self._orientation.get_column(2)
        if normal.dot(point.minus(origins[closest])) > 0:
            return closest + 1
        return closest

    def append_origin(self, origin: Point3D, index: int, time: int | None = None) -> None:
        st = self._state
        key = self._initial_time if time is None else time
        origins = list(st.time_origins.get(key, ()))
        if index < 0 or index > len(origins):
            raise ValueError(f"Cannot insert origin at {index}, list has {len(origins)}")
        origins.insert(index, origin)
        time_origins = dict(st.time_origins)
        time_origins[key] = tuple(origins)

        size = st.size
        nk = max(len(o) for o in time_origins.values())
        if nk > size.values[2]:
            vals = list(size.values)
            vals[2] = nk
            size = Size(vals)
        self._state = replace(st, time_origins=time_origins, size=size)

    def append_frame(self, origin: Point3D, time: int) -> None:
        st = self._state
        if time in st.time_origins:
            logger.warning("Frame for time %s already exists, replacing its origins", time)
        time_origins = dict(st.time_origins)
        time_origins[time] = (origin,)

        size_vals = list(st.size.values)
        spacing_vals = list(st.spacing.values)
        if len(size_vals) == 4:
            size_vals[3] += 1
        else:
            size_vals.append(2)
            spacing_vals.append(1.0)
        self._state = _GeometryState(
            time_origins=time_origins, size=Size(size_vals), spacing=Spacing(spacing_vals)
        )

    # --- index <-> world

    def index_to_world(self, index: Index) -> Point | None:
        if len(index) < 3:
            return None
        return self._to_world(index.values)

    def point_to_world(self, point: Point) -> Point | None:
        """Same as index_to_world for a continuous (unrounded) index."""
        if len(point) < 3:
            return None
        return self._to_world(point.values)

    def world_to_point(self, point: Point) -> Point | None:
        """Continuous index of a world point, None if incomparable."""
        if len(point) < 3:
            return None
        st = self._state
        origins = self._origins_at(st, self._time_of(point.values))
        inv = self._orientation.get_inverse()
        if inv is None:
            return None
        p3 = point.get_3d()
        k = self._continuous_slice(origins, p3, st.spacing)
        base = self._origin_on_path(origins, k, st.spacing)
        a, b, _ = inv.multiply_array3d(p3.minus(base).as_tuple())
        sx, sy, _ = st.spacing.get_3d()
        return Point((a / sx, b / sy, k) + point.values[3:])

    def world_to_index(self, point: Point) -> Index | None:
        """Closest voxel index, None when incomparable or out of bounds."""
        p = self.world_to_point(point)
        if p is None:
            return None
        index = Index(tuple(round_half_up(v) for v in p.values))
        if len(index) == len(self._state.size):
            ok = self._state.size.is_in_bounds(index)
        else:
            ok = self._state.size.is_in_bounds(index, range(min(len(index), len(self._state.size))))
        return index if ok else None

    def is_in_bounds(self, point: Point) -> bool:
        return self.world_to_index(point) is not None

    def is_index_in_bounds(self, index: Index, dirs: Sequence[int] | None = None) -> bool:
        return self._state.size.is_in_bounds(index, dirs)

    # --- internals

    def _time_of(self, values: Sequence[float]) -> int | None:
        if len(values) > 3:
            return round_half_up(values[3])
        return None

    def _origins_at(self, st: _GeometryState, time: int | None) -> tuple[Point3D, ...]:
        if time is not None and time in st.time_origins:
            return st.time_origins[time]
        return st.time_origins[self._initial_time]

    def _to_world(self, values: Sequence[float]) -> Point:
        st = self._state
        origins = self._origins_at(st, self._time_of(values))
        i, j, k = float(values[0]), float(values[1]), float(values[2])
        sx, sy, _ = st.spacing.get_3d()
        base = self._origin_on_path(origins, k, st.spacing)
        dx, dy, dz = self._orientation.multiply_array3d((i * sx, j * sy, 0.0))
        return Point((base.x + dx, base.y + dy, base.z + dz) + tuple(float(v) for v in values[3:]))

    def _origin_on_path(self, origins: tuple[Point3D, ...], k: float, spacing: Spacing) -> Point3D:
        """
        Origin of (possibly fractional or out of range) slice k.

        Origins are joined piecewise linearly; outside the list the first or last
        step is extended. A single origin steps by the slice spacing along the
        normal.
        """
        n = len(origins)
        if n == 1:
            sz = spacing.get_3d()[2]
            return origins[0].plus(self._orientation.get_column(2).scaled(k * sz))
        if float(k).is_integer() and 0 <= k < n:
            return origins[int(k)]
        f = min(max(int(math.floor(k)), 0), n - 2)
        step = origins[f + 1].minus(origins[f])
        return origins[f].plus(step.scaled(k - f))

    def _continuous_slice(self, origins: tuple[Point3D, ...], p: Point3D, spacing: Spacing) -> float:
        normal: Vector3D = self._orientation.get_column(2)
        n = len(origins)
        if n == 1:
            sz = spacing.get_3d()[2]
            return normal.dot(p.minus(origins[0])) / sz

        ref = origins[0]
        s = normal.dot(p.minus(ref))
        s_list = [normal.dot(o.minus(ref)) for o in origins]
        c = min(range(n), key=lambda i: abs(s - s_list[i]))
        if c < n - 1 and (s - s_list[c]) * (s_list[c + 1] - s_list[c]) > 0:
            f = c
        elif c > 0:
            f = c - 1
        else:
            f = 0
        denom = s_list[f + 1] - s_list[f]
        if abs(denom) < 1e-12:
            return float(c)
        return f + (s - s_list[f]) / denom
