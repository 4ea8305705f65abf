from __future__ import annotations

from typing import Sequence

import numpy as np

from geometry.primitives import Index, Point3D, Vector3D, _check_values, round_half_up

# Determinant below which a matrix is treated as singular.
SINGULAR_EPS = 1e-12


class Matrix33:
    """
    Immutable 3x3 matrix, row-major.

    Backed by a read-only float64 numpy array; every operation returns a new
    instance.
    """

    __slots__ = ("_m",)

    def __init__(self, values: Sequence[float] | np.ndarray) -> None:
        arr = np.asarray(values, dtype=np.float64)
        if arr.size != 9:
            raise ValueError(f"Matrix33 needs 9 values, got {arr.size}")
        _check_values(arr.reshape(9).tolist(), name="Matrix33")
        m = arr.reshape(3, 3).copy()
        m.setflags(write=False)
        self._m = m

    @classmethod
    def identity(cls) -> Matrix33:
        return cls(np.eye(3, dtype=np.float64))

    @property
    def array(self) -> np.ndarray:
        return self._m

    @property
    def values(self) -> tuple[float, ...]:
        return tuple(float(v) for v in self._m.reshape(9))

    def get(self, row: int, col: int) -> float:
        return float(self._m[row, col])

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Matrix33) and bool(np.array_equal(self._m, other._m))

    def __hash__(self) -> int:
        return hash(self.values)

    def __repr__(self) -> str:
        return f"Matrix33({list(self.values)})"

    def equals(self, rhs: Matrix33 | None, p: float = 1e-6) -> bool:
        if rhs is None:
            return False
        return bool(np.all(np.abs(self._m - rhs._m) <= p))

    def get_determinant(self) -> float:
        return float(np.linalg.det(self._m))

    def get_inverse(self) -> Matrix33 | None:
        """Inverse, or None when the matrix is singular."""
        if abs(self.get_determinant()) < SINGULAR_EPS:
            return None
        return Matrix33(np.linalg.inv(self._m))

    def multiply(self, rhs: Matrix33) -> Matrix33:
        return Matrix33(self._m @ rhs._m)

    def get_abs(self) -> Matrix33:
        return Matrix33(np.abs(self._m))

    def transpose(self) -> Matrix33:
        return Matrix33(self._m.T)

    def multiply_array3d(self, a: Sequence[float]) -> tuple[float, float, float]:
        if len(a) != 3:
            raise ValueError(f"Expected a 3 element array, got {len(a)}")
        r = self._m @ np.asarray(a, dtype=np.float64)
        return (float(r[0]), float(r[1]), float(r[2]))

    def multiply_vector3d(self, v: Vector3D) -> Vector3D:
        return Vector3D(*self.multiply_array3d(v.as_tuple()))

    def multiply_point3d(self, p: Point3D) -> Point3D:
        return Point3D(*self.multiply_array3d(p.as_tuple()))

    def multiply_index3d(self, index: Index) -> Index:
        """Multiply the first three values and round; extra dimensions pass through."""
        if len(index) < 3:
            raise ValueError("Cannot multiply an index with less than 3 values")
        r = self.multiply_array3d(index.get_3d())
        return index.get_with_new_3d(*(round_half_up(v) for v in r))

    def get_row_abs_max(self, row: int) -> dict[str, float | int]:
        vals = np.abs(self._m[row, :])
        i = int(np.argmax(vals))
        return {"value": float(vals[i]), "index": i}

    def get_col_abs_max(self, col: int) -> dict[str, float | int]:
        vals = np.abs(self._m[:, col])
        i = int(np.argmax(vals))
        return {"value": float(vals[i]), "index": i}

    def as_one_and_zeros(self) -> Matrix33:
        """
        Keep, per row, only the largest absolute value replaced by its sign (+1/-1).

        Used to snap a nearly axis-aligned orientation onto the closest
        axial/coronal/sagittal one.
        """
        res = np.zeros((3, 3), dtype=np.float64)
        for r in range(3):
            c = int(self.get_row_abs_max(r)["index"])
            res[r, c] = 1.0 if self._m[r, c] >= 0 else -1.0
        return Matrix33(res)

    def get_third_col_major_direction(self) -> int:
        """Row index of the largest absolute value of the third column."""
        return int(self.get_col_abs_max(2)["index"])

    def get_column(self, col: int) -> Vector3D:
        c = self._m[:, col]
        return Vector3D(float(c[0]), float(c[1]), float(c[2]))
