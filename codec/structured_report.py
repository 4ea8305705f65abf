from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Mapping, Sequence

from annotation.annotation import Annotation, Shape
from annotation.group import AnnotationGroup
from codec.sr_models import (
    COLOUR,
    IMAGE_REGION,
    MEASUREMENT_GROUP,
    PATH,
    QUANTIFICATION_CODES,
    REFERENCE_GEOMETRY,
    REFERENCE_POINTS,
    SHORT_LABEL,
    SOURCE_IMAGE,
    TRACKING_IDENTIFIER,
    CodedConcept,
    ContentItem,
    GraphicType,
    ImageReference,
    MeasuredValue,
    ReferencedSeries,
    RelationshipType,
    SpatialCoordinate,
    SpatialCoordinate3D,
    StructuredReport,
    ValueType,
    get_quantification_name,
    get_unit,
    get_unit_code,
)
from geometry.primitives import Point2D, Point3D, Vector3D
from shapes.circle import Circle
from shapes.ellipse import Ellipse
from shapes.line import Line
from shapes.protractor import Protractor
from shapes.rectangle import Rectangle
from shapes.roi import ROI

logger = logging.getLogger(__name__)

# Basic Text SR Storage
BASIC_TEXT_SR_SOP_CLASS_UID = "1.2.840.10008.5.1.4.1.1.88.11"
# Explicit VR Little Endian
EXPLICIT_VR_LITTLE_ENDIAN = "1.2.840.10008.1.2.1"

META_KEYS = ("StudyInstanceUID", "Modality", "PatientName", "PatientID", "PatientBirthDate", "PatientSex")


# --- shapes <-> spatial coordinates


def _flatten(points: Sequence[Point2D]) -> list[float]:
    data: list[float] = []
    for p in points:
        data.extend((p.x, p.y))
    return data


def _pairs(data: Sequence[float]) -> list[Point2D]:
    return [Point2D(data[i], data[i + 1]) for i in range(0, len(data) - 1, 2)]


def get_scoord_from_shape(shape: Shape) -> SpatialCoordinate:
    if isinstance(shape, Line):
        return SpatialCoordinate(graphic_type=GraphicType.POLYLINE, graphic_data=_flatten(shape.get_points()))
    if isinstance(shape, Protractor):
        return SpatialCoordinate(graphic_type=GraphicType.POLYLINE, graphic_data=_flatten(shape.points))
    if isinstance(shape, Rectangle):
        corners = shape.get_corners()
        return SpatialCoordinate(graphic_type=GraphicType.POLYLINE, graphic_data=_flatten(corners + corners[:1]))
    if isinstance(shape, ROI):
        points = list(shape.points)
        return SpatialCoordinate(graphic_type=GraphicType.POLYLINE, graphic_data=_flatten(points + points[:1]))
    if isinstance(shape, Circle):
        c = shape.center
        return SpatialCoordinate(graphic_type=GraphicType.CIRCLE, graphic_data=[c.x, c.y, c.x + shape.radius, c.y])
    if isinstance(shape, Ellipse):
        c, a, b = shape.center, shape.a, shape.b
        horizontal = [c.x - a, c.y, c.x + a, c.y]
        vertical = [c.x, c.y - b, c.x, c.y + b]
        # major axis first
        data = horizontal + vertical if a >= b else vertical + horizontal
        return SpatialCoordinate(graphic_type=GraphicType.ELLIPSE, graphic_data=data)
    raise TypeError(f"No spatial coordinate for shape {type(shape).__name__}")


def _is_axis_aligned_box(points: Sequence[Point2D]) -> bool:
    p0, p1, p2, p3 = points[:4]
    return p0.y == p1.y and p1.x == p2.x and p2.y == p3.y and p3.x == p0.x and p0.x != p1.x and p1.y != p2.y


def get_shape_from_scoord(scoord: SpatialCoordinate) -> Shape | None:
    """Math shape for a spatial coordinate, None when it describes no shape."""
    points = _pairs(scoord.graphic_data)
    if scoord.graphic_type is GraphicType.CIRCLE:
        center, edge = points
        return Circle(center, center.get_distance(edge))
    if scoord.graphic_type is GraphicType.ELLIPSE:
        axis0 = Line(points[0], points[1])
        axis1 = Line(points[2], points[3])
        center = axis0.get_midpoint()
        if axis0.get_delta_y() == 0:
            return Ellipse(center, axis0.get_length() / 2, axis1.get_length() / 2)
        return Ellipse(center, axis1.get_length() / 2, axis0.get_length() / 2)
    if scoord.graphic_type is GraphicType.POLYLINE:
        if len(points) == 2:
            return Line(points[0], points[1])
        closed = len(points) > 2 and points[0] == points[-1]
        if closed:
            if len(points) == 5 and _is_axis_aligned_box(points):
                return Rectangle(points[0], points[2])
            return ROI.from_points(points[:-1])
        if len(points) == 3:
            return Protractor.from_points(points)
        return ROI.from_points(points)
    return None


# --- content items


def _item(
    value_type: ValueType, relationship: RelationshipType, concept: CodedConcept, **value: Any
) -> ContentItem:
    return ContentItem(value_type=value_type, relationship_type=relationship, concept_name_code=concept, **value)


def _annotation_to_item(annotation: Annotation) -> ContentItem | None:
    if annotation.math_shape is None:
        logger.warning("Annotation %s has no shape, not exported", annotation.id)
        return None
    children: list[ContentItem] = [
        _item(
            ValueType.IMAGE,
            RelationshipType.SELECTED_FROM,
            SOURCE_IMAGE,
            image=ImageReference(
                referenced_sop_class_uid=annotation.referenced_sop_class_uid or "",
                referenced_sop_instance_uid=annotation.referenced_sop_instance_uid,
                referenced_frame_number=annotation.referenced_frame_number,
            ),
        ),
        _item(ValueType.UIDREF, RelationshipType.HAS_PROPERTIES, TRACKING_IDENTIFIER, uid=annotation.id),
    ]

    label = _item(ValueType.TEXT, RelationshipType.HAS_PROPERTIES, SHORT_LABEL, text_value=annotation.text_expr)
    if annotation.label_position is not None:
        label.content_sequence.append(
            _item(
                ValueType.SCOORD,
                RelationshipType.HAS_PROPERTIES,
                REFERENCE_POINTS,
                scoord=SpatialCoordinate(
                    graphic_type=GraphicType.POINT,
                    graphic_data=[annotation.label_position.x, annotation.label_position.y],
                ),
            )
        )
    children.append(label)

    if annotation.colour is not None:
        children.append(_item(ValueType.TEXT, RelationshipType.HAS_PROPERTIES, COLOUR, text_value=annotation.colour))

    if annotation.reference_points:
        children.append(
            _item(
                ValueType.SCOORD,
                RelationshipType.HAS_PROPERTIES,
                REFERENCE_POINTS,
                scoord=SpatialCoordinate(
                    graphic_type=GraphicType.MULTIPOINT, graphic_data=_flatten(annotation.reference_points)
                ),
            )
        )

    if annotation.plane_points is not None:
        data: list[float] = []
        if annotation.plane_origin is not None:
            data.extend(annotation.plane_origin.as_tuple())
        for v in annotation.plane_points:
            data.extend(v.as_tuple())
        children.append(
            _item(
                ValueType.SCOORD3D,
                RelationshipType.HAS_PROPERTIES,
                REFERENCE_GEOMETRY,
                scoord3d=SpatialCoordinate3D(graphic_type=GraphicType.MULTIPOINT, graphic_data=data),
            )
        )

    for name, q in (annotation.quantification or {}).items():
        concept = QUANTIFICATION_CODES.get(name)
        value = q.get("value") if isinstance(q, Mapping) else None
        if concept is None or value is None:
            logger.warning("Quantification %s cannot be exported", name)
            continue
        children.append(
            _item(
                ValueType.NUM,
                RelationshipType.CONTAINS,
                concept,
                measured_value=MeasuredValue(numeric_value=float(value), measurement_units_code=get_unit_code(q.get("unit"))),
            )
        )

    concept = PATH if isinstance(annotation.math_shape, Line) else IMAGE_REGION
    item = _item(ValueType.SCOORD, RelationshipType.CONTAINS, concept, scoord=get_scoord_from_shape(annotation.math_shape))
    item.content_sequence.extend(children)
    return item


def _item_to_annotation(item: ContentItem) -> Annotation | None:
    if item.scoord is None:
        raise ValueError("SCOORD item without spatial coordinates")
    shape = get_shape_from_scoord(item.scoord)
    if shape is None:
        logger.warning("Cannot map %s spatial coordinate to a shape", item.scoord.graphic_type.value)
        return None
    annotation = Annotation(math_shape=shape)

    for sub in item.content_sequence:
        if sub.value_type is ValueType.IMAGE and SOURCE_IMAGE.matches(sub.concept_name_code):
            if sub.image is None:
                raise ValueError("Source image item without an image reference")
            annotation.referenced_sop_instance_uid = sub.image.referenced_sop_instance_uid
            annotation.referenced_sop_class_uid = sub.image.referenced_sop_class_uid or None
            annotation.referenced_frame_number = sub.image.referenced_frame_number
        elif sub.value_type is ValueType.UIDREF and TRACKING_IDENTIFIER.matches(sub.concept_name_code):
            annotation.id = str(sub.uid)
        elif sub.value_type is ValueType.TEXT and SHORT_LABEL.matches(sub.concept_name_code):
            annotation.text_expr = sub.text_value or ""
            for label_item in sub.content_sequence:
                if label_item.scoord is not None and REFERENCE_POINTS.matches(label_item.concept_name_code):
                    x, y = label_item.scoord.graphic_data[:2]
                    annotation.label_position = Point2D(x, y)
        elif sub.value_type is ValueType.TEXT and COLOUR.matches(sub.concept_name_code):
            annotation.colour = sub.text_value
        elif (
            sub.value_type is ValueType.SCOORD
            and REFERENCE_POINTS.matches(sub.concept_name_code)
            and sub.scoord is not None
            and sub.scoord.graphic_type is GraphicType.MULTIPOINT
        ):
            annotation.reference_points = tuple(_pairs(sub.scoord.graphic_data))
        elif sub.value_type is ValueType.SCOORD3D and REFERENCE_GEOMETRY.matches(sub.concept_name_code):
            if sub.scoord3d is None:
                raise ValueError("Reference geometry item without 3D coordinates")
            data = sub.scoord3d.graphic_data
            if len(data) == 9:
                annotation.plane_origin = Point3D(*data[:3])
                data = data[3:]
            if len(data) == 6:
                annotation.plane_points = (Vector3D(*data[:3]), Vector3D(*data[3:]))
            else:
                logger.warning("Unexpected reference geometry of %d values", len(data))
        elif sub.value_type is ValueType.NUM:
            name = get_quantification_name(sub.concept_name_code)
            if name is None:
                logger.warning("Unknown quantification concept %s", sub.concept_name_code)
                continue
            if sub.measured_value is None:
                raise ValueError(f"Measurement {name} without a measured value")
            if annotation.quantification is None:
                annotation.quantification = {}
            annotation.quantification[name] = {
                "value": sub.measured_value.numeric_value,
                "unit": get_unit(sub.measured_value.measurement_units_code),
            }
    return annotation


# --- public api


def create(structured: Mapping[str, Any] | StructuredReport) -> AnnotationGroup:
    """
    Build an annotation group from a structured report.

    Raises pydantic.ValidationError on malformed input. Annotations come back
    unbound; attach a view with Annotation.set_view_controller.
    """
    report = structured if isinstance(structured, StructuredReport) else StructuredReport.model_validate(structured)
    if report.ConceptNameCodeSequence is None:
        logger.warning("Report has no root concept name code")
    elif not MEASUREMENT_GROUP.matches(report.ConceptNameCodeSequence):
        logger.warning("Report root is not a measurement group: %s", report.ConceptNameCodeSequence.meaning)

    annotations: list[Annotation] = []
    for item in report.ContentSequence:
        if item.value_type is not ValueType.SCOORD:
            continue
        annotation = _item_to_annotation(item)
        if annotation is not None:
            annotations.append(annotation)
    group = AnnotationGroup(annotations)

    for key in META_KEYS:
        group.set_meta_value(key, getattr(report, key))
    if report.ReferencedSeriesSequence:
        group.set_meta_value(
            "ReferencedSeriesSequence",
            [{"SeriesInstanceUID": s.SeriesInstanceUID} for s in report.ReferencedSeriesSequence],
        )
    return group


def to_dicom(
    group: AnnotationGroup, extra_tags: Mapping[str, Any] | None = None, *, now: datetime | None = None
) -> dict[str, Any]:
    """Structured report (DICOM keyword -> value) for a group; extra_tags win over computed tags."""
    tags: dict[str, Any] = {k: v for k, v in group.get_meta().items() if v is not None}
    tags["TransferSyntaxUID"] = EXPLICIT_VR_LITTLE_ENDIAN
    tags["SOPClassUID"] = BASIC_TEXT_SR_SOP_CLASS_UID
    tags["MediaStorageSOPClassUID"] = BASIC_TEXT_SR_SOP_CLASS_UID
    tags["CompletionFlag"] = "PARTIAL"
    tags["VerificationFlag"] = "UNVERIFIED"

    now = now or datetime.now()
    tags["ContentDate"] = now.strftime("%Y%m%d")
    tags["ContentTime"] = now.strftime("%H%M%S")

    items = [i for i in (_annotation_to_item(a) for a in group.get_list()) if i is not None]
    if items:
        tags["ValueType"] = ValueType.CONTAINER
        tags["ConceptNameCodeSequence"] = MEASUREMENT_GROUP
        tags["ContentSequence"] = items

    for key, value in (extra_tags or {}).items():
        if key in tags:
            logger.debug("Overwriting tag %s", key)
        tags[key] = value

    series = tags.get("ReferencedSeriesSequence")
    if series is not None:
        tags["ReferencedSeriesSequence"] = [ReferencedSeries.model_validate(s) for s in series]

    report = StructuredReport.model_validate(tags)
    return report.model_dump(mode="json", exclude_none=True)
