from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, NamedTuple, Sequence


def is_finite_number(v: Any) -> bool:
    if isinstance(v, bool):
        return False
    try:
        return v is not None and math.isfinite(float(v))
    except (TypeError, ValueError):
        return False


def _check_values(values: Sequence[Any], *, name: str, min_length: int = 1) -> tuple[float, ...]:
    if isinstance(values, (str, bytes)):
        raise TypeError(f"{name} values must be a sequence of numbers")
    try:
        out = tuple(values)
    except TypeError as exc:
        raise TypeError(f"{name} values must be a sequence of numbers") from exc
    if len(out) < min_length:
        raise ValueError(f"{name} needs at least {min_length} value(s), got {len(out)}")
    for v in out:
        if not is_finite_number(v):
            raise ValueError(f"{name} values must be finite numbers, got {v!r}")
    return out


def round_half_up(v: float) -> int:
    """Round half away from the lower neighbour (0.5 -> 1, -0.5 -> 0)."""
    return int(math.floor(float(v) + 0.5))


class Spacing2D(NamedTuple):
    x: float
    y: float


@dataclass(frozen=True)
class Index:
    """Voxel coordinate of any dimension (i, j, k, time, ...)."""

    values: tuple[float, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", _check_values(self.values, name="Index"))

    def __len__(self) -> int:
        return len(self.values)

    def __iter__(self):
        return iter(self.values)

    def get(self, i: int) -> float | None:
        if 0 <= i < len(self.values):
            return self.values[i]
        return None

    def length(self) -> int:
        return len(self.values)

    def can_compare(self, rhs: Index | None) -> bool:
        return rhs is not None and len(rhs) == len(self)

    def compare(self, rhs: Index) -> list[int] | None:
        """Dimensions where the two indices differ, None if incomparable."""
        if not self.can_compare(rhs):
            return None
        return [i for i, (a, b) in enumerate(zip(self.values, rhs.values)) if a != b]

    def add(self, rhs: Index) -> Index:
        if not self.can_compare(rhs):
            raise ValueError("Cannot add indices of different length")
        return Index(tuple(a + b for a, b in zip(self.values, rhs.values)))

    def get_with_new_3d(self, i: float, j: float, k: float) -> Index:
        """Replace the first three values, keep the extra dimensions."""
        return Index((i, j, k) + self.values[3:])

    def get_with_new(self, dim: int, value: float) -> Index:
        vals = list(self.values)
        vals[dim] = value
        return Index(tuple(vals))

    def get_3d(self) -> tuple[float, float, float]:
        vals = self.values + (0,) * max(0, 3 - len(self.values))
        return (vals[0], vals[1], vals[2])

    def to_string(self) -> str:
        return "(" + ",".join(str(v) for v in self.values) + ")"


def index_from_3d(i: float, j: float, k: float, *extra: float) -> Index:
    return Index((i, j, k) + tuple(extra))


@dataclass(frozen=True)
class Point:
    """World coordinate; may carry a 4th (time/frame) component."""

    values: tuple[float, ...]

    def __post_init__(self) -> None:
        vals = _check_values(self.values, name="Point", min_length=2)
        object.__setattr__(self, "values", tuple(float(v) for v in vals))

    def __len__(self) -> int:
        return len(self.values)

    def get(self, i: int) -> float | None:
        if 0 <= i < len(self.values):
            return self.values[i]
        return None

    def get_3d(self) -> Point3D:
        vals = self.values + (0.0,) * max(0, 3 - len(self.values))
        return Point3D(vals[0], vals[1], vals[2])

    def can_compare(self, rhs: Point | None) -> bool:
        return rhs is not None and len(rhs) == len(self)

    def equals(self, rhs: Point | None, tol: float = 0.0) -> bool:
        if not self.can_compare(rhs):
            return False
        return all(abs(a - b) <= tol for a, b in zip(self.values, rhs.values))

    def merge_with_3d(self, p: Point3D) -> Point:
        return Point((p.x, p.y, p.z) + self.values[3:])


@dataclass(frozen=True)
class Point2D:
    x: float
    y: float

    def __post_init__(self) -> None:
        vals = _check_values((self.x, self.y), name="Point2D")
        object.__setattr__(self, "x", float(vals[0]))
        object.__setattr__(self, "y", float(vals[1]))

    def equals(self, rhs: Point2D | None, tol: float = 0.0) -> bool:
        return rhs is not None and abs(self.x - rhs.x) <= tol and abs(self.y - rhs.y) <= tol

    def get_distance(self, rhs: Point2D) -> float:
        return math.hypot(self.x - rhs.x, self.y - rhs.y)

    def translated(self, dx: float, dy: float) -> Point2D:
        return Point2D(self.x + dx, self.y + dy)

    def rounded(self) -> Point2D:
        return Point2D(round_half_up(self.x), round_half_up(self.y))


@dataclass(frozen=True)
class Point3D:
    x: float
    y: float
    z: float

    def __post_init__(self) -> None:
        vals = _check_values((self.x, self.y, self.z), name="Point3D")
        object.__setattr__(self, "x", float(vals[0]))
        object.__setattr__(self, "y", float(vals[1]))
        object.__setattr__(self, "z", float(vals[2]))

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)

    def equals(self, rhs: Point3D | None, tol: float = 0.0) -> bool:
        if rhs is None:
            return False
        return abs(self.x - rhs.x) <= tol and abs(self.y - rhs.y) <= tol and abs(self.z - rhs.z) <= tol

    def get_distance(self, rhs: Point3D) -> float:
        return math.sqrt((self.x - rhs.x) ** 2 + (self.y - rhs.y) ** 2 + (self.z - rhs.z) ** 2)

    def minus(self, rhs: Point3D) -> Vector3D:
        return Vector3D(self.x - rhs.x, self.y - rhs.y, self.z - rhs.z)

    def plus(self, v: Vector3D) -> Point3D:
        return Point3D(self.x + v.x, self.y + v.y, self.z + v.z)


@dataclass(frozen=True)
class Vector3D:
    x: float
    y: float
    z: float

    def __post_init__(self) -> None:
        vals = _check_values((self.x, self.y, self.z), name="Vector3D")
        object.__setattr__(self, "x", float(vals[0]))
        object.__setattr__(self, "y", float(vals[1]))
        object.__setattr__(self, "z", float(vals[2]))

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)

    def norm(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)

    def dot(self, rhs: Vector3D) -> float:
        return self.x * rhs.x + self.y * rhs.y + self.z * rhs.z

    def cross(self, rhs: Vector3D) -> Vector3D:
        return Vector3D(
            self.y * rhs.z - self.z * rhs.y,
            self.z * rhs.x - self.x * rhs.z,
            self.x * rhs.y - self.y * rhs.x,
        )

    def scaled(self, s: float) -> Vector3D:
        return Vector3D(self.x * s, self.y * s, self.z * s)

    def normalized(self) -> Vector3D:
        n = self.norm()
        if n < 1e-12:
            raise ValueError("Cannot normalize a zero vector")
        return self.scaled(1.0 / n)

    def is_codirectional(self, rhs: Vector3D) -> bool:
        """Parallel with the same sense (dot > 0 and cross product ~ 0)."""
        if self.dot(rhs) <= 0:
            return False
        return self.cross(rhs).norm() <= 1e-9 * max(1.0, self.norm() * rhs.norm())

    def equals(self, rhs: Vector3D | None, tol: float = 0.0) -> bool:
        if rhs is None:
            return False
        return abs(self.x - rhs.x) <= tol and abs(self.y - rhs.y) <= tol and abs(self.z - rhs.z) <= tol


class Size:
    """Number of voxels per dimension; all values strictly positive integers."""

    __slots__ = ("_values",)

    def __init__(self, values: Sequence[int]) -> None:
        vals = _check_values(values, name="Size")
        for v in vals:
            if float(v) != int(v) or int(v) <= 0:
                raise ValueError(f"Size values must be positive integers, got {v!r}")
        self._values = tuple(int(v) for v in vals)

    @property
    def values(self) -> tuple[int, ...]:
        return self._values

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Size) and other._values == self._values

    def __hash__(self) -> int:
        return hash(self._values)

    def __repr__(self) -> str:
        return f"Size({list(self._values)})"

    def length(self) -> int:
        return len(self._values)

    def get(self, i: int) -> int | None:
        if 0 <= i < len(self._values):
            return self._values[i]
        return None

    def more_than_one(self, dim: int) -> bool:
        v = self.get(dim)
        return v is not None and v > 1

    def can_scroll(self, dim: int) -> bool:
        return self.more_than_one(dim)

    def get_dim_size(self, dim: int, start: int = 0) -> int:
        """Product of sizes of dimensions [start, dim)."""
        res = 1
        for v in self._values[start:dim]:
            res *= v
        return res

    def get_total_size(self, start: int = 0) -> int:
        return self.get_dim_size(len(self._values), start)

    def get_2d(self) -> tuple[int, int]:
        return (self._values[0], self._values[1] if len(self._values) > 1 else 1)

    def is_in_bounds(self, index: Index | None, dirs: Sequence[int] | None = None) -> bool:
        """True if index is within [0, size-1] along dirs (default: all dims)."""
        if index is None:
            return False
        if dirs is None:
            if len(index) != len(self._values):
                return False
            dirs = range(len(self._values))
        for d in dirs:
            if d < 0 or d >= len(self._values) or d >= len(index):
                return False
            v = index.values[d]
            if v < 0 or v > self._values[d] - 1:
                return False
        return True

    def with_values(self, values: Sequence[int]) -> Size:
        return Size(values)


class Spacing:
    """Physical size of a voxel per dimension; strictly positive."""

    __slots__ = ("_values",)

    def __init__(self, values: Sequence[float]) -> None:
        vals = _check_values(values, name="Spacing")
        for v in vals:
            if float(v) <= 0:
                raise ValueError(f"Spacing values must be strictly positive, got {v!r}")
        self._values = tuple(float(v) for v in vals)

    @property
    def values(self) -> tuple[float, ...]:
        return self._values

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Spacing) and other._values == self._values

    def __hash__(self) -> int:
        return hash(self._values)

    def __repr__(self) -> str:
        return f"Spacing({list(self._values)})"

    def get(self, i: int) -> float | None:
        if 0 <= i < len(self._values):
            return self._values[i]
        return None

    def get_2d(self) -> Spacing2D:
        return Spacing2D(self._values[0], self._values[1] if len(self._values) > 1 else 1.0)

    def get_3d(self) -> tuple[float, float, float]:
        vals = self._values + (1.0,) * max(0, 3 - len(self._values))
        return (vals[0], vals[1], vals[2])


@dataclass(frozen=True)
class NumberRange:
    min: float
    max: float

    def __post_init__(self) -> None:
        _check_values((self.min, self.max), name="NumberRange")
        if self.min > self.max:
            raise ValueError(f"NumberRange min > max ({self.min} > {self.max})")

    def contains(self, v: float) -> bool:
        return self.min <= v <= self.max

    def width(self) -> float:
        return self.max - self.min
