import numpy as np
import pytest

from annotation.group import AnnotationGroup
from commands.annotation_commands import RemoveAnnotationCommand, UpdateAnnotationCommand
from commands.undo_stack import UndoStack
from drawing.draw_layer import DrawLayer
from drawing.nodes import ANCHOR, LABEL
from editing.bounds import ContainerBounds, DeleteTarget
from editing.drag_session import DragState, Editor
from editing.draw_tool import DrawTool
from geometry.primitives import Point2D, Point3D, Size, Spacing
from geometry.volume_geometry import Geometry
from imaging.volume_view import VolumeView
from shapes.circle import Circle


def _setup():
    g = Geometry([Point3D(0.0, 0.0, 0.0)], Size([20, 20, 1]), Spacing([1.0, 1.0, 1.0]))
    view = VolumeView(g, np.ones((1, 20, 20), dtype=np.int16))
    group = AnnotationGroup()
    stack = UndoStack()
    layer = DrawLayer(group)
    editor = Editor(group, stack, ContainerBounds(20, 20), layer=layer, delete_target=DeleteTarget(Point2D(10, 1)))
    tool = DrawTool(group, stack, view)
    annotation = tool.create("circle", [Point2D(10, 10), Point2D(13, 10)])
    assert annotation is not None
    return group, stack, layer, editor, annotation


def test_anchor_drag_emits_one_command():
    group, stack, layer, editor, a = _setup()
    original_shape = a.math_shape
    original_quant = a.quantification

    session = editor.start_anchor_drag(a, "right")
    assert session is not None and session.state is DragState.DRAGGING
    for x in (14, 15, 16, 15):
        session.move(Point2D(x, 10))
        assert stack.get_stack_size() == 1
    assert a.math_shape == Circle(Point2D(10, 10), 5)
    anchors = {n.id: n for n in layer.get_node(a.id).find(ANCHOR)}
    assert anchors["right"].attrs["x"] == 15

    command = session.end()
    assert isinstance(command, UpdateAnnotationCommand)
    assert session.state is DragState.COMMITTED
    assert stack.get_stack_size() == 2
    assert command.get_name() == "Change-circle"

    stack.undo()
    assert a.math_shape == original_shape
    assert a.quantification == original_quant
    stack.redo()
    assert a.math_shape == Circle(Point2D(10, 10), 5)


def test_anchor_drag_is_clamped_to_container():
    group, stack, layer, editor, a = _setup()
    session = editor.start_anchor_drag(a, "right")
    session.move(Point2D(40, 10))
    assert a.math_shape == Circle(Point2D(10, 10), 10)
    session.end()


def test_unknown_anchor_is_refused():
    group, stack, layer, editor, a = _setup()
    assert editor.start_anchor_drag(a, "topLeft") is None
    assert not editor.is_dragging(a.id)


def test_shape_drag_translates_and_clamps():
    group, stack, layer, editor, a = _setup()
    session = editor.start_shape_drag(a)
    assert session.move(2, 3) == (2, 3)
    # right edge at 15, container width 20
    assert session.move(100, 0) == (5, 0)
    assert a.math_shape.center == Point2D(17, 13)
    assert a.reference_points[0] == Point2D(17, 13)

    command = session.end(Point2D(19, 19))
    assert isinstance(command, UpdateAnnotationCommand)
    assert command.get_name() == "Move-circle"
    stack.undo()
    assert a.math_shape.center == Point2D(10, 10)
    assert a.reference_points[0] == Point2D(10, 10)


def test_drop_on_delete_target_removes():
    group, stack, layer, editor, a = _setup()
    session = editor.start_shape_drag(a)
    session.move(-1, -1)
    command = session.end(Point2D(10, 1))

    assert isinstance(command, RemoveAnnotationCommand)
    assert group.find(a.id) is None
    assert layer.get_node(a.id) is None
    assert a.math_shape.center == Point2D(10, 10)

    stack.undo()
    assert group.index_of(a.id) == 0
    assert layer.get_node(a.id) is not None


def test_cancel_restores_and_records_nothing():
    group, stack, layer, editor, a = _setup()
    before = a.get_state()
    session = editor.start_anchor_drag(a, "top")
    session.move(Point2D(10, 2))
    assert a.math_shape != before["math_shape"]
    session.cancel()

    assert session.state is DragState.CANCELLED
    assert a.get_state() == before
    assert stack.get_stack_size() == 1
    with pytest.raises(RuntimeError):
        session.move(Point2D(10, 3))


def test_one_drag_per_annotation():
    group, stack, layer, editor, a = _setup()
    first = editor.start_shape_drag(a)
    assert first is not None
    assert editor.start_shape_drag(a) is None
    assert editor.start_label_drag(a) is None
    assert first.end() is None
    assert editor.start_shape_drag(a) is not None


def test_no_drag_when_not_editable():
    group, stack, layer, editor, a = _setup()
    group.set_editable(False)
    assert editor.start_shape_drag(a) is None
    assert editor.start_anchor_drag(a, "left") is None


def test_label_drag():
    group, stack, layer, editor, a = _setup()
    session = editor.start_label_drag(a)
    # default label position of the circle is (cx - r, cy + r)
    session.move(2, -3)
    assert a.label_position == Point2D(9, 10)
    assert layer.get_node(a.id).find_one(LABEL).attrs["x"] == 9

    command = session.end()
    assert command.get_keys() == ("label_position",)
    stack.undo()
    assert a.label_position is None


def test_bounds():
    bounds = ContainerBounds(10, 5)
    assert bounds.contains(Point2D(10, 5))
    assert not bounds.contains(Point2D(-1, 0))
    assert bounds.clamp_point(Point2D(12, -3)) == Point2D(10, 0)
    assert bounds.clamp_translation([Point2D(1, 1), Point2D(8, 4)], 5, -5) == (2, -1)
    with pytest.raises(ValueError):
        ContainerBounds(0, 5)
    assert DeleteTarget(Point2D(5, 5)).is_over(Point2D(9, 1))
