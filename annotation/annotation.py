from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Sequence
from uuid import uuid4

from annotation.text import get_flags, replace_flags, select_text_expr
from drawing.factories.base import ShapeFactory
from drawing.registry import get_factory
from geometry.primitives import Point, Point2D, Point3D, Vector3D
from shapes.base import ImageAccess, Quantification
from shapes.circle import Circle
from shapes.ellipse import Ellipse
from shapes.line import Line
from shapes.protractor import Protractor
from shapes.rectangle import Rectangle
from shapes.roi import ROI

if TYPE_CHECKING:
    from annotation.reference import ReferenceFrame

logger = logging.getLogger(__name__)

Shape = Circle | Ellipse | Line | Protractor | Rectangle | ROI

# Changing any of these invalidates the cached quantification.
QUANTIFICATION_KEYS = ("math_shape", "text_expr")

# Tolerance when comparing stored plane directions with a view's cosines.
PLANE_DIRECTION_TOL = 1e-6


def new_uid() -> str:
    return str(uuid4())


@dataclass
class Annotation:
    """
    One measurement: a 2D shape bound to an image slice.

    Plain data plus a link to the view it was drawn on. Bind it once with
    init(), then change it through commands so undo/redo stays exact.
    """

    id: str = field(default_factory=new_uid)
    tracking_uid: str = field(default_factory=new_uid)
    referenced_sop_class_uid: str | None = None
    referenced_sop_instance_uid: str | None = None
    referenced_frame_number: int | None = None
    math_shape: Shape | None = None
    reference_points: tuple[Point2D, ...] | None = None
    colour: str | None = None
    quantification: Quantification | None = None
    text_expr: str = ""
    label_position: Point2D | None = None
    plane_origin: Point3D | None = None
    # row and column directions of a non acquisition plane
    plane_points: tuple[Vector3D, Vector3D] | None = None
    meta: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self._view: ReferenceFrame | None = None
        self._initialized = False

    # --- binding

    def init(self, view: ReferenceFrame) -> bool:
        """Bind to the current slice of view; only the first call has an effect."""
        if self._initialized:
            logger.warning("Annotation %s is already initialised, ignoring init", self.id)
            return False
        self._initialized = True
        self._view = view

        self.referenced_sop_instance_uid = view.get_current_image_uid()
        self.referenced_sop_class_uid = view.get_sop_class_uid()
        self.referenced_frame_number = view.get_current_frame_number()
        self._bind_plane(view, overwrite=True)
        return True

    def set_view_controller(self, view: ReferenceFrame) -> None:
        """Attach a view to an annotation that was created elsewhere (e.g. decoded)."""
        self._view = view
        self._initialized = True
        if self.referenced_sop_instance_uid is None:
            self.referenced_sop_instance_uid = view.get_current_image_uid()
        if self.referenced_sop_class_uid is None:
            self.referenced_sop_class_uid = view.get_sop_class_uid()
        if self.plane_origin is None:
            self._bind_plane(view, overwrite=False)

    def _bind_plane(self, view: ReferenceFrame, *, overwrite: bool) -> None:
        if self.referenced_sop_instance_uid is not None:
            self.plane_origin = view.get_origin_for_image_uid(self.referenced_sop_instance_uid)
        acquisition = view.is_acquisition_orientation()
        if acquisition and self.plane_origin is not None:
            return
        plane = view.get_plane_points(view.get_current_position())
        if plane is None:
            return
        origin, row, col = plane
        self.plane_origin = origin
        if not acquisition and (overwrite or self.plane_points is None):
            self.plane_points = (row, col)

    def get_view_controller(self) -> ReferenceFrame | None:
        return self._view

    def is_initialized(self) -> bool:
        return self._initialized

    # --- queries

    def is_compatible_view(self, view: ReferenceFrame) -> bool:
        """
        True if the view displays planes parallel to this annotation's plane.

        Only directions are compared, so the answer does not depend on the
        view's current slice.
        """
        if self.plane_points is None:
            return view.is_acquisition_orientation()
        cosines = list(view.get_cosines())
        if len(cosines) != 6:
            return False
        row = Vector3D(*cosines[:3])
        col = Vector3D(*cosines[3:])
        return self.plane_points[0].equals(row, PLANE_DIRECTION_TOL) and self.plane_points[1].equals(
            col, PLANE_DIRECTION_TOL
        )

    def get_centroid(self) -> Point | None:
        """World position of the shape centroid on the bound slice."""
        if self.math_shape is None or self._view is None or self.plane_origin is None:
            return None
        values: tuple[float, ...] = self.plane_origin.as_tuple()
        if self.referenced_frame_number is not None:
            values += (float(self.referenced_frame_number),)
        # bound slice and frame, whatever the view currently shows
        reference = Point(values)
        plane = self._view.get_plane_position(reference)
        if plane is None:
            return None
        return self._view.get_position_from_plane_point(self.math_shape.get_centroid(), plane.z, reference)

    def get_text(self) -> str:
        return replace_flags(self.text_expr, self.quantification)

    def set_text_expr(self, label_text: Mapping[str, str]) -> None:
        modality = self._view.get_modality() if self._view is not None else None
        self.text_expr = select_text_expr(label_text, modality)

    def update_quantification(self) -> None:
        """Recompute quantification from the shape and the bound view."""
        if self.math_shape is None or self._view is None:
            return
        image = self._view if isinstance(self._view, ImageAccess) else None
        self.quantification = self.math_shape.quantify(image, get_flags(self.text_expr))

    def get_factory(self, custom_factories: Sequence[ShapeFactory] | None = None) -> ShapeFactory | None:
        return get_factory(self.math_shape, custom_factories)

    # --- property snapshots (used by commands)

    def get_props(self, keys: Iterable[str]) -> dict[str, Any]:
        return {k: getattr(self, k) for k in keys}

    def set_props(self, props: Mapping[str, Any]) -> None:
        names = {f.name for f in fields(self)}
        for key, value in props.items():
            if key not in names:
                raise KeyError(f"Unknown annotation property: {key}")
            setattr(self, key, value)

    def get_state(self) -> dict[str, Any]:
        """All data fields, for comparisons and serialisation."""
        return {f.name: getattr(self, f.name) for f in fields(self)}
