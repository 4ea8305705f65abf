from __future__ import annotations

from enum import Enum
from typing import Sequence

from geometry.matrix import Matrix33
from geometry.primitives import Vector3D

LPS_THRESHOLD = 0.0001


class Orientation(str, Enum):
    AXIAL = "axial"
    CORONAL = "coronal"
    SAGITTAL = "sagittal"


def get_coronal_mat33() -> Matrix33:
    # xzy
    return Matrix33([1, 0, 0, 0, 0, 1, 0, -1, 0])


def get_sagittal_mat33() -> Matrix33:
    # yzx
    return Matrix33([0, 0, -1, 1, 0, 0, 0, -1, 0])


def get_matrix_from_name(name: str) -> Matrix33 | None:
    if name == Orientation.AXIAL.value:
        return Matrix33.identity()
    if name == Orientation.CORONAL.value:
        return get_coronal_mat33()
    if name == Orientation.SAGITTAL.value:
        return get_sagittal_mat33()
    return None


def get_orientation_from_cosines(cosines: Sequence[float] | None) -> Matrix33 | None:
    """Columns are: row cosines, column cosines, their cross product."""
    if cosines is None or len(cosines) != 6:
        return None
    row = Vector3D(cosines[0], cosines[1], cosines[2])
    col = Vector3D(cosines[3], cosines[4], cosines[5])
    normal = row.cross(col)
    return Matrix33(
        [
            row.x, col.x, normal.x,
            row.y, col.y, normal.y,
            row.z, col.z, normal.z,
        ]
    )


def get_cosines_from_orientation(matrix: Matrix33) -> list[float]:
    return [
        matrix.get(0, 0),
        matrix.get(1, 0),
        matrix.get(2, 0),
        matrix.get(0, 1),
        matrix.get(1, 1),
        matrix.get(2, 1),
    ]


def _vector_string_lps(v: Vector3D) -> str:
    ax, ay, az = abs(v.x), abs(v.y), abs(v.z)
    ox = "R" if v.x < 0 else "L"
    oy = "A" if v.y < 0 else "P"
    oz = "I" if v.z < 0 else "S"

    out = ""
    for _ in range(3):
        if ax > LPS_THRESHOLD and ax > ay and ax > az:
            out += ox
            ax = 0.0
        elif ay > LPS_THRESHOLD and ay > ax and ay > az:
            out += oy
            ay = 0.0
        elif az > LPS_THRESHOLD and az > ax and az > ay:
            out += oz
            az = 0.0
        else:
            break
    return out


def get_orientation_string_lps(matrix: Matrix33) -> str:
    """One letter (R/L, A/P, I/S) per column: the direction each axis points to."""
    return "".join(_vector_string_lps(matrix.get_column(c)) for c in range(3))


_LPS_GROUPS: dict[Orientation, tuple[str, ...]] = {
    Orientation.AXIAL: ("LPS", "LAI", "RPI", "RAS", "ALS", "ARI", "PLI", "PRS"),
    Orientation.CORONAL: ("LSA", "LIP", "RSP", "RIA", "ILA", "IRP", "SLP", "SRA"),
    Orientation.SAGITTAL: ("PSL", "PIR", "ASR", "AIL", "IAR", "IPL", "SAL", "SPR"),
}


def get_orientation_name(cosines: Sequence[float] | None) -> str | None:
    """axial, coronal or sagittal for a 6 value image orientation, else None."""
    matrix = get_orientation_from_cosines(cosines)
    if matrix is None:
        return None
    code = get_orientation_string_lps(matrix.as_one_and_zeros())
    for name, codes in _LPS_GROUPS.items():
        if code in codes:
            return name.value
    return None


def get_view_orientation(image_orientation: Matrix33, target_orientation: Matrix33 | None) -> Matrix33:
    """
    Orientation going from target space to image space.

    [Img] -- Oi --> [Real] <-- Ot -- [Target]
    Pi = inv(Oi) * Ot * Pt = Ov * Pt
    """
    if target_orientation is None:
        return Matrix33.identity()
    inv = image_orientation.as_one_and_zeros().get_inverse()
    if inv is None:
        return Matrix33.identity()
    return inv.multiply(target_orientation).get_abs()


def get_target_orientation(image_orientation: Matrix33, view_orientation: Matrix33) -> Matrix33:
    """Orientation going from target space to real space: Ot = Oi * Ov."""
    simple = image_orientation.as_one_and_zeros()
    target = simple.multiply(view_orientation)
    if simple.get_abs().equals(get_coronal_mat33().get_abs()):
        target = target.get_abs()
    return target


def get_oriented_array3d(array3d: Sequence[float], orientation: Matrix33) -> tuple[float, float, float]:
    """Project a native array into an oriented frame: abs(inv(O)) * a."""
    inv = orientation.get_inverse()
    if inv is None:
        raise ValueError("Cannot orient with a singular matrix")
    return inv.get_abs().multiply_array3d(array3d)


def get_deoriented_array3d(array3d: Sequence[float], orientation: Matrix33) -> tuple[float, float, float]:
    """Back from an oriented frame to native: abs(O) * a."""
    return orientation.get_abs().multiply_array3d(array3d)
