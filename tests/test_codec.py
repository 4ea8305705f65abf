import json
import logging
from datetime import datetime

import pytest
from pydantic import ValidationError

from annotation.annotation import Annotation
from annotation.group import AnnotationGroup
from codec.sr_models import ContentItem, GraphicType, SpatialCoordinate, StructuredReport, ValueType
from codec.structured_report import (
    BASIC_TEXT_SR_SOP_CLASS_UID,
    create,
    get_scoord_from_shape,
    get_shape_from_scoord,
    to_dicom,
)
from geometry.primitives import Point2D, Point3D, Vector3D
from shapes.circle import Circle
from shapes.ellipse import Ellipse
from shapes.line import Line
from shapes.protractor import Protractor
from shapes.rectangle import Rectangle
from shapes.roi import ROI

NOW = datetime(2024, 5, 6, 7, 8, 9)


def _annotation(shape, **kwargs) -> Annotation:
    kwargs.setdefault("referenced_sop_class_uid", "1.2.840.10008.5.1.4.1.1.2")
    kwargs.setdefault("referenced_sop_instance_uid", "1.2.3.4.5")
    return Annotation(math_shape=shape, **kwargs)


def _round_trip(*annotations: Annotation) -> AnnotationGroup:
    report = to_dicom(AnnotationGroup(annotations), now=NOW)
    # must survive a trip through plain JSON
    return create(json.loads(json.dumps(report)))


def _assert_same(decoded: Annotation, original: Annotation) -> None:
    for key in (
        "id",
        "math_shape",
        "reference_points",
        "colour",
        "quantification",
        "text_expr",
        "label_position",
        "plane_points",
        "referenced_sop_class_uid",
        "referenced_sop_instance_uid",
        "referenced_frame_number",
    ):
        assert getattr(decoded, key) == getattr(original, key), key


@pytest.mark.parametrize(
    "shape",
    [
        Line(Point2D(0, 0), Point2D(3, 4)),
        Circle(Point2D(10, 10), 3),
        Ellipse(Point2D(10, 10), 4, 2),
        Ellipse(Point2D(10, 10), 2, 5),
        Rectangle(Point2D(1, 2), Point2D(5, 6)),
        ROI((Point2D(0, 0), Point2D(4, 0), Point2D(2, 3))),
        Protractor((Point2D(0, 0), Point2D(5, 0), Point2D(5, 5))),
    ],
)
def test_shape_round_trip(shape):
    original = _annotation(shape)
    (decoded,) = _round_trip(original).get_list()
    assert decoded.math_shape == shape


def test_full_annotation_round_trip():
    circle = _annotation(
        Circle(Point2D(10, 10), 3),
        reference_points=(Point2D(10, 10), Point2D(13, 10)),
        colour="#ff0000",
        text_expr="{surface} {mean}",
        label_position=Point2D(7, 13),
        referenced_frame_number=2,
        quantification={
            "surface": {"value": 0.2827, "unit": "cm2"},
            "mean": {"value": 3.5, "unit": None},
            "stdDev": {"value": 1.25, "unit": "HU"},
        },
    )
    ruler = _annotation(
        Line(Point2D(0, 0), Point2D(3, 4)),
        text_expr="{length}",
        quantification={"length": {"value": 5.0, "unit": "mm"}},
    )
    protractor = _annotation(
        Protractor((Point2D(0, 0), Point2D(5, 0), Point2D(5, 5))),
        quantification={"angle": {"value": 45.0, "unit": "degree"}},
    )

    decoded = _round_trip(circle, ruler, protractor).get_list()
    assert [a.id for a in decoded] == [circle.id, ruler.id, protractor.id]
    for d, o in zip(decoded, (circle, ruler, protractor)):
        _assert_same(d, o)
        assert not d.is_initialized()


def test_oblique_plane_geometry_round_trip():
    coronal = _annotation(
        Circle(Point2D(3, 2), 1),
        plane_origin=Point3D(0.0, 5.0, 0.0),
        plane_points=(Vector3D(1.0, 0.0, 0.0), Vector3D(0.0, 0.0, 1.0)),
    )
    axial = _annotation(Circle(Point2D(3, 2), 1), plane_origin=Point3D(0.0, 0.0, 2.0))
    a, b = _round_trip(coronal, axial).get_list()

    assert a.plane_origin == Point3D(0.0, 5.0, 0.0)
    assert a.plane_points == coronal.plane_points
    # acquisition planes are found again through the referenced image
    assert b.plane_origin is None
    assert b.plane_points is None


def test_unknown_quantification_is_not_exported(caplog):
    a = _annotation(Circle(Point2D(1, 1), 1), quantification={"volume": {"value": 1.0, "unit": "ml"}})
    with caplog.at_level(logging.WARNING):
        (decoded,) = _round_trip(a).get_list()
    assert decoded.quantification is None
    assert "cannot be exported" in caplog.text


def test_report_header():
    group = AnnotationGroup([_annotation(Circle(Point2D(1, 1), 1))])
    group.set_meta_value("StudyInstanceUID", "1.2.3")
    group.set_meta_value("Modality", "CT")
    group.set_meta_value("ReferencedSeriesSequence", [{"SeriesInstanceUID": "9.9"}])
    report = to_dicom(group, now=NOW)

    assert report["SOPClassUID"] == BASIC_TEXT_SR_SOP_CLASS_UID
    assert report["CompletionFlag"] == "PARTIAL"
    assert report["VerificationFlag"] == "UNVERIFIED"
    assert report["ContentDate"] == "20240506"
    assert report["ContentTime"] == "070809"
    assert report["ValueType"] == "CONTAINER"
    assert report["ConceptNameCodeSequence"]["value"] == "125007"
    assert report["StudyInstanceUID"] == "1.2.3"
    assert len(report["ContentSequence"]) == 1

    decoded = create(report)
    assert decoded.get_meta_value("Modality") == "CT"
    assert decoded.get_meta_value("StudyInstanceUID") == "1.2.3"
    assert decoded.get_meta_value("ReferencedSeriesSequence") == [{"SeriesInstanceUID": "9.9"}]


def test_extra_tags_override_computed_ones():
    report = to_dicom(
        AnnotationGroup(), {"CompletionFlag": "COMPLETE", "SeriesDescription": "reads"}, now=NOW
    )
    assert report["CompletionFlag"] == "COMPLETE"
    assert report["SeriesDescription"] == "reads"
    assert report["ContentSequence"] == []
    assert "ValueType" not in report
    assert create(report).get_length() == 0


def test_malformed_report_is_rejected():
    with pytest.raises(ValidationError):
        create({"ContentSequence": [{"value_type": "SCOORD"}]})
    with pytest.raises(ValidationError):
        create(
            {
                "ContentSequence": [
                    {"value_type": "SCOORD", "scoord": {"graphic_type": "CIRCLE", "graphic_data": [0, 0, 1, 1, 2, 2]}}
                ]
            }
        )
    with pytest.raises(ValidationError):
        SpatialCoordinate(graphic_type=GraphicType.POLYLINE, graphic_data=[0.0, float("nan")])


def test_point_coordinates_map_to_no_shape(caplog):
    assert get_shape_from_scoord(SpatialCoordinate(graphic_type=GraphicType.POINT, graphic_data=[1, 2])) is None
    report = {
        "ContentSequence": [
            {"value_type": "SCOORD", "scoord": {"graphic_type": "POINT", "graphic_data": [1, 2]}},
            {"value_type": "TEXT", "text_value": "free text"},
        ]
    }
    with caplog.at_level(logging.WARNING):
        assert create(report).get_length() == 0
    assert "Cannot map POINT" in caplog.text


def test_polyline_decoding_rules():
    square = get_scoord_from_shape(ROI((Point2D(0, 0), Point2D(2, 0), Point2D(2, 2), Point2D(0, 2))))
    # a closed axis aligned box reads back as a rectangle
    assert get_shape_from_scoord(square) == Rectangle(Point2D(0, 0), Point2D(2, 2))
    open_line = SpatialCoordinate(graphic_type=GraphicType.POLYLINE, graphic_data=[0, 0, 1, 1, 2, 0, 3, 1])
    assert get_shape_from_scoord(open_line) == ROI((Point2D(0, 0), Point2D(1, 1), Point2D(2, 0), Point2D(3, 1)))


def test_shape_without_coordinates_is_refused():
    with pytest.raises(TypeError):
        get_scoord_from_shape(object())


def test_unvalidated_item_without_coordinates_raises_value_error():
    # model_construct skips validation
    item = ContentItem.model_construct(value_type=ValueType.SCOORD, scoord=None, content_sequence=[])
    report = StructuredReport.model_construct(ContentSequence=[item])
    with pytest.raises(ValueError, match="without spatial coordinates"):
        create(report)
