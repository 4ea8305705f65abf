import logging

import numpy as np
import pytest

from annotation.annotation import Annotation
from annotation.events import (
    ANNOTATION_ADD,
    ANNOTATION_REMOVE,
    ANNOTATION_UPDATE,
    EDITABLE_CHANGE,
    AnnotationEvent,
    EventChannel,
)
from annotation.group import AnnotationGroup
from annotation.text import get_flags, replace_flags, select_text_expr
from geometry.orientation import get_coronal_mat33, get_view_orientation
from geometry.primitives import Index, Point2D, Point3D, Size, Spacing, Vector3D
from geometry.volume_geometry import Geometry
from imaging.volume_view import VolumeView
from shapes.circle import Circle
from shapes.line import Line

UIDS = ["uid0", "uid1", "uid2", "uid3"]


def _geometry() -> Geometry:
    origins = [Point3D(0.0, 0.0, float(k)) for k in range(4)]
    return Geometry(origins, Size([10, 10, 4]), Spacing([1.0, 1.0, 1.0]))


def _view(coronal: bool = False, modality=None) -> VolumeView:
    g = _geometry()
    orientation = get_view_orientation(g.get_orientation(), get_coronal_mat33()) if coronal else None
    data = np.arange(400, dtype=np.int16).reshape(4, 10, 10)
    return VolumeView(g, data, view_orientation=orientation, image_uids=UIDS, modality=modality, sop_class_uid="1.2.3")


def test_text_flags():
    assert get_flags("{length} and {surface}") == ["length", "surface"]
    assert get_flags("") == []
    values = {"length": {"value": 12.346, "unit": "mm"}, "angle": {"value": None, "unit": None}}
    assert replace_flags("L={length}", values) == "L=12.35 mm"
    assert replace_flags("{angle} {other}", values) == "{angle} {other}"
    assert replace_flags("{length}", None) == "{length}"


def test_select_text_expr():
    texts = {"*": "{surface}", "MR": "{mean}"}
    assert select_text_expr(texts, "MR") == "{mean}"
    assert select_text_expr(texts, "CT") == "{surface}"
    assert select_text_expr({}, "CT") == ""


def test_init_binds_acquisition_slice():
    view = _view()
    view.set_current_index(Index((0, 0, 2)))
    a = Annotation(math_shape=Circle(Point2D(5, 5), 2))
    assert a.init(view)

    assert a.referenced_sop_instance_uid == "uid2"
    assert a.referenced_sop_class_uid == "1.2.3"
    assert a.plane_origin == Point3D(0.0, 0.0, 2.0)
    assert a.plane_points is None
    assert a.is_compatible_view(view)
    assert not a.is_compatible_view(_view(coronal=True))


def test_init_only_once(caplog):
    view = _view()
    a = Annotation(math_shape=Circle(Point2D(5, 5), 2))
    assert a.init(view)
    view.set_current_index(Index((0, 0, 3)))
    with caplog.at_level(logging.WARNING):
        assert not a.init(view)
    assert a.referenced_sop_instance_uid == "uid0"
    assert "already initialised" in caplog.text


def test_init_on_reformatted_view_stores_plane_directions():
    view = _view(coronal=True)
    view.set_current_index(Index((0, 5, 0)))
    a = Annotation(math_shape=Line(Point2D(1, 1), Point2D(4, 1)))
    a.init(view)

    assert a.plane_origin == Point3D(0.0, 5.0, 0.0)
    assert a.plane_points == (Vector3D(1, 0, 0), Vector3D(0, 0, 1))

    # compatibility ignores the slice
    other = _view(coronal=True)
    other.set_current_index(Index((0, 8, 0)))
    assert a.is_compatible_view(other)
    assert not a.is_compatible_view(_view())


def test_quantification_and_text():
    view = _view()
    a = Annotation(math_shape=Line(Point2D(0, 0), Point2D(3, 4)))
    a.init(view)
    a.set_text_expr({"*": "{length}"})
    a.update_quantification()
    assert a.quantification == {"length": {"value": pytest.approx(5.0), "unit": "mm"}}
    assert a.get_text() == "5.00 mm"


def test_text_expr_follows_modality():
    view = _view(modality="MR")
    a = Annotation(math_shape=Circle(Point2D(5, 5), 2))
    a.init(view)
    a.set_text_expr({"*": "{surface}", "MR": "{mean}"})
    assert a.text_expr == "{mean}"


def test_centroid_is_world_position():
    view = _view()
    view.set_current_index(Index((0, 0, 1)))
    a = Annotation(math_shape=Circle(Point2D(3, 4), 2))
    a.init(view)
    centroid = a.get_centroid()
    assert centroid is not None
    assert centroid.values == pytest.approx((3.0, 4.0, 1.0))


def _view_with_frames() -> VolumeView:
    g = Geometry([Point3D(0.0, 0.0, 0.0), Point3D(0.0, 0.0, 1.0)], Size([10, 10, 2]), Spacing([1.0, 1.0, 1.0]), time=0)
    g.append_frame(Point3D(0.0, 0.0, 0.0), 1)
    return VolumeView(g, np.zeros((2, 2, 10, 10)), image_uids=["u0", "u1"])


def test_centroid_keeps_bound_frame_after_scrolling_time():
    view = _view_with_frames()
    view.set_current_index(Index((0, 0, 1, 0)))
    a = Annotation(math_shape=Circle(Point2D(3, 4), 2))
    a.init(view)
    assert a.referenced_frame_number == 0

    view.set_current_index(Index((0, 0, 1, 1)))
    centroid = a.get_centroid()
    assert centroid is not None
    assert centroid.values == pytest.approx((3.0, 4.0, 1.0, 0.0))

    b = Annotation(math_shape=Circle(Point2D(3, 4), 2))
    b.init(view)
    view.set_current_index(Index((0, 0, 0, 0)))
    centroid = b.get_centroid()
    assert centroid is not None
    assert centroid.values == pytest.approx((3.0, 4.0, 1.0, 1.0))


def test_set_props_rejects_unknown_keys():
    a = Annotation()
    a.set_props({"colour": "#ff0000"})
    assert a.colour == "#ff0000"
    with pytest.raises(KeyError):
        a.set_props({"not_a_field": 1})


def test_group_events_and_order():
    group = AnnotationGroup()
    seen = []
    for event_type in (ANNOTATION_ADD, ANNOTATION_UPDATE, ANNOTATION_REMOVE):
        group.add_event_listener(event_type, lambda e: seen.append((e.type, e.data.id, e.keys)))

    a, b, c = Annotation(), Annotation(), Annotation()
    assert group.add(a)
    assert group.add(c)
    assert group.add(b, 1)
    assert [x.id for x in group.get_list()] == [a.id, b.id, c.id]
    assert not group.add(a)

    assert group.update(b, ["colour"])
    assert group.remove(b.id) == 1
    assert group.remove("missing") is None
    assert seen == [
        (ANNOTATION_ADD, a.id, None),
        (ANNOTATION_ADD, c.id, None),
        (ANNOTATION_ADD, b.id, None),
        (ANNOTATION_UPDATE, b.id, ("colour",)),
        (ANNOTATION_REMOVE, b.id, None),
    ]


def test_group_update_refreshes_quantification_for_shape_keys():
    view = _view()
    group = AnnotationGroup()
    a = Annotation(math_shape=Line(Point2D(0, 0), Point2D(3, 4)))
    a.init(view)
    group.add(a)

    a.math_shape = Line(Point2D(0, 0), Point2D(6, 8))
    group.update(a, ["colour"])
    assert a.quantification is None
    group.update(a, ["math_shape"])
    assert a.quantification["length"]["value"] == pytest.approx(10.0)


def test_group_editable_flag():
    group = AnnotationGroup()
    events = []
    group.add_event_listener(EDITABLE_CHANGE, lambda e: events.append(e.data))
    assert group.is_editable()
    group.set_editable(False)
    group.set_editable(False)
    group.set_editable(True)
    assert events == [False, True]


def test_group_meta():
    group = AnnotationGroup(meta={"Modality": "CT"})
    group.set_meta_value("PatientID", "p1")
    assert group.has_meta("Modality")
    assert group.get_meta_value("PatientID") == "p1"
    assert group.find_meta(lambda k, v: k.startswith("Pat")) == {"PatientID": "p1"}


def test_event_channel_survives_failing_listener(caplog):
    channel = EventChannel()
    calls = []

    def boom(event):
        raise RuntimeError("listener failure")

    channel.subscribe(ANNOTATION_ADD, boom)
    channel.subscribe(ANNOTATION_ADD, calls.append)
    event = AnnotationEvent(ANNOTATION_ADD, Annotation())
    with caplog.at_level(logging.WARNING):
        channel.publish(event)
    assert calls == [event]
    assert "raised" in caplog.text
    assert channel.unsubscribe(ANNOTATION_ADD, boom)
    assert not channel.unsubscribe(ANNOTATION_ADD, boom)
