from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Sequence

from geometry.primitives import Point3D

if TYPE_CHECKING:
    from annotation.annotation import Annotation
    from annotation.reference import ReferenceFrame

logger = logging.getLogger(__name__)

DEFAULT_PRECISION = 2


def _round(v: float, precision: int) -> float:
    # + 0.0 turns -0.0 into 0.0
    return round(float(v), precision) + 0.0


@dataclass(frozen=True)
class PositionKey:
    """
    Plane position of a group of annotations.

    cosines is None for planes parallel to the acquisition plane, so native
    and reformatted planes never share a key.
    """

    origin: tuple[float, float, float]
    cosines: tuple[float, ...] | None = None

    def to_string(self) -> str:
        text = "-".join(f"{v}" for v in self.origin)
        if self.cosines is not None:
            text += "_" + "-".join(f"{v}" for v in self.cosines)
        return text


def make_position_key(
    origin: Point3D, cosines: Sequence[float] | None = None, precision: int = DEFAULT_PRECISION
) -> PositionKey:
    rounded_cos = None if cosines is None else tuple(_round(c, precision) for c in cosines)
    return PositionKey(
        origin=(_round(origin.x, precision), _round(origin.y, precision), _round(origin.z, precision)),
        cosines=rounded_cos,
    )


def key_for_annotation(annotation: Annotation, precision: int = DEFAULT_PRECISION) -> PositionKey | None:
    if annotation.plane_origin is None:
        return None
    cosines = None
    if annotation.plane_points is not None:
        row, col = annotation.plane_points
        cosines = row.as_tuple() + col.as_tuple()
    return make_position_key(annotation.plane_origin, cosines, precision)


def key_for_view(view: ReferenceFrame, precision: int = DEFAULT_PRECISION) -> PositionKey | None:
    plane = view.get_plane_points(view.get_current_position())
    if plane is None:
        return None
    origin, row, col = plane
    cosines = None if view.is_acquisition_orientation() else row.as_tuple() + col.as_tuple()
    return make_position_key(origin, cosines, precision)


@dataclass
class PositionGroup:
    key: PositionKey
    annotation_ids: list[str] = field(default_factory=list)
    visible: bool = False


class PositionGroups:
    """
    Partition of one volume's annotations by plane position.

    Groups are created on first insertion for a key and only their visibility
    flag changes when the view position moves.
    """

    def __init__(self, precision: int = DEFAULT_PRECISION) -> None:
        self.precision = int(precision)
        self._groups: dict[PositionKey, PositionGroup] = {}
        self._key_of: dict[str, PositionKey] = {}
        self._current: PositionKey | None = None

    def get_current_key(self) -> PositionKey | None:
        return self._current

    def get_groups(self) -> list[PositionGroup]:
        return list(self._groups.values())

    def get_group(self, key: PositionKey) -> PositionGroup | None:
        return self._groups.get(key)

    def get_key(self, annotation_id: str) -> PositionKey | None:
        return self._key_of.get(annotation_id)

    def add(self, annotation: Annotation) -> PositionKey | None:
        key = key_for_annotation(annotation, self.precision)
        if key is None:
            logger.warning("Annotation %s has no plane origin, cannot index its position", annotation.id)
            return None
        if annotation.id in self._key_of:
            self.remove(annotation.id)
        group = self._groups.get(key)
        if group is None:
            group = PositionGroup(key=key, visible=(key == self._current))
            self._groups[key] = group
        group.annotation_ids.append(annotation.id)
        self._key_of[annotation.id] = key
        return key

    def remove(self, annotation_id: str) -> bool:
        key = self._key_of.pop(annotation_id, None)
        if key is None:
            return False
        group = self._groups[key]
        group.annotation_ids.remove(annotation_id)
        return True

    def update(self, annotation: Annotation) -> PositionKey | None:
        """Re-index an annotation whose plane changed."""
        key = key_for_annotation(annotation, self.precision)
        if key is not None and self._key_of.get(annotation.id) == key:
            return key
        return self.add(annotation)

    def activate(self, view: ReferenceFrame) -> PositionKey | None:
        """Show the group at the view's position, hide all the others."""
        key = key_for_view(view, self.precision)
        self.activate_key(key)
        return key

    def activate_key(self, key: PositionKey | None) -> None:
        self._current = key
        for k, group in self._groups.items():
            group.visible = k == key

    def is_visible(self, annotation_id: str) -> bool:
        key = self._key_of.get(annotation_id)
        return key is not None and self._groups[key].visible

    def get_active_ids(self) -> list[str]:
        if self._current is None:
            return []
        group = self._groups.get(self._current)
        return list(group.annotation_ids) if group is not None else []

    def clear(self) -> None:
        self._groups.clear()
        self._key_of.clear()
