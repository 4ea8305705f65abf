import numpy as np
import pytest

from annotation.annotation import Annotation
from annotation.events import DRAW_CHANGE, DRAW_CREATE, DRAW_DELETE, DRAW_MOVE
from annotation.group import AnnotationGroup
from commands.annotation_commands import AddAnnotationCommand, RemoveAnnotationCommand, UpdateAnnotationCommand
from commands.base import InvalidCommandError
from commands.segment_commands import (
    SEGMENT_DELETE,
    SEGMENT_REDRAW,
    ChangeSegmentColourCommand,
    DeleteSegmentCommand,
)
from commands.undo_stack import REDO, UNDO, UNDO_ADD, UNDO_REMOVE, UndoStack
from geometry.primitives import Point2D, Point3D, Size, Spacing
from geometry.volume_geometry import Geometry
from imaging.mask import MaskSegment, SegmentMask
from imaging.volume_view import VolumeView
from shapes.circle import Circle
from shapes.line import Line


def _view() -> VolumeView:
    g = Geometry([Point3D(0.0, 0.0, 0.0)], Size([20, 20, 1]), Spacing([0.5, 0.5, 1.0]))
    data = np.arange(400, dtype=np.float32).reshape(1, 20, 20)
    return VolumeView(g, data)


def _annotation(shape=None) -> Annotation:
    a = Annotation(math_shape=shape or Circle(Point2D(10, 10), 3), text_expr="{surface} {mean}")
    a.init(_view())
    a.update_quantification()
    return a


def _group_ids(group: AnnotationGroup) -> list[str]:
    return [a.id for a in group.get_list()]


def test_add_and_undo_restore_state():
    group = AnnotationGroup()
    a = _annotation()
    before = a.get_state()
    events = []
    cmd = AddAnnotationCommand(a, group)
    cmd.on_execute = events.append
    cmd.on_undo = events.append

    cmd.execute()
    assert _group_ids(group) == [a.id]
    cmd.undo()
    assert _group_ids(group) == []
    assert a.get_state() == before
    assert [e.type for e in events] == [DRAW_CREATE, DRAW_DELETE]
    assert cmd.get_name() == "Draw-circle"


def test_remove_undo_puts_annotation_back_in_place():
    group = AnnotationGroup()
    a, b, c = _annotation(), _annotation(), _annotation()
    for x in (a, b, c):
        group.add(x)

    cmd = RemoveAnnotationCommand(b, group)
    assert cmd.is_valid()
    for _ in range(2):
        cmd.execute()
        assert _group_ids(group) == [a.id, c.id]
        cmd.undo()
        assert _group_ids(group) == [a.id, b.id, c.id]


def test_update_chained_execute_undo_is_symmetric():
    group = AnnotationGroup()
    a = _annotation()
    group.add(a)
    before = a.get_state()
    new_shape = Circle(Point2D(8, 8), 5)
    cmd = UpdateAnnotationCommand(a, {"math_shape": a.math_shape}, {"math_shape": new_shape}, group)

    for _ in range(3):
        cmd.execute()
        assert a.math_shape == new_shape
        assert a.quantification["surface"]["value"] != before["quantification"]["surface"]["value"]
        cmd.undo()
        assert a.get_state() == before


def test_update_event_and_name():
    group = AnnotationGroup()
    a = _annotation(Line(Point2D(0, 0), Point2D(4, 0)))
    group.add(a)
    events = []
    move = UpdateAnnotationCommand(
        a, {"math_shape": a.math_shape}, {"math_shape": a.math_shape.translated(1, 1)}, group, is_move=True
    )
    move.on_execute = events.append
    move.execute()
    change = UpdateAnnotationCommand(a, {"colour": None}, {"colour": "#00ff00"}, group)
    change.on_execute = events.append
    change.execute()

    assert move.get_name() == "Move-line"
    assert change.get_name() == "Change-line"
    assert change.get_keys() == ("colour",)
    assert [e.type for e in events] == [DRAW_MOVE, DRAW_CHANGE]


def test_update_key_mismatch_rejected():
    with pytest.raises(ValueError):
        UpdateAnnotationCommand(Annotation(), {"colour": None}, {"text_expr": ""}, AnnotationGroup())


def test_invalid_commands_raise():
    group = AnnotationGroup()
    with pytest.raises(InvalidCommandError):
        AddAnnotationCommand(Annotation(), group).execute()

    outsider = _annotation()
    remove = RemoveAnnotationCommand(outsider, group)
    assert not remove.is_valid()
    with pytest.raises(InvalidCommandError):
        remove.execute()

    update = UpdateAnnotationCommand(outsider, {}, {}, group)
    assert not update.is_valid()
    with pytest.raises(InvalidCommandError):
        update.execute()


def test_silent_command_skips_callback():
    group = AnnotationGroup()
    events = []
    cmd = AddAnnotationCommand(_annotation(), group, silent=True)
    cmd.on_execute = events.append
    cmd.execute()
    assert events == []
    assert group.get_length() == 1


def test_undo_stack_linear_history():
    group = AnnotationGroup()
    stack = UndoStack()
    seen = []
    for event_type in (UNDO_ADD, UNDO, REDO, UNDO_REMOVE):
        stack.add_event_listener(event_type, lambda e: seen.append((e.type, e.command_name)))

    a, b = _annotation(), _annotation()
    for x in (a, b):
        cmd = AddAnnotationCommand(x, group)
        cmd.execute()
        stack.add(cmd)
    assert stack.get_stack_size() == 2
    assert stack.get_current_stack_index() == 2
    assert not stack.can_redo()

    assert stack.undo()
    assert _group_ids(group) == [a.id]
    assert stack.redo()
    assert _group_ids(group) == [a.id, b.id]

    assert stack.undo()
    assert stack.undo()
    assert not stack.undo()
    assert group.get_length() == 0

    # a new command drops the redo branch
    c = _annotation()
    cmd = AddAnnotationCommand(c, group)
    cmd.execute()
    stack.add(cmd)
    assert stack.get_stack_size() == 1
    assert not stack.can_redo()
    assert not stack.redo()

    assert not stack.remove("Delete-circle")
    assert stack.remove("Draw-circle")
    assert stack.get_stack_size() == 0
    assert seen[:3] == [(UNDO_ADD, "Draw-circle"), (UNDO_ADD, "Draw-circle"), (UNDO, "Draw-circle")]
    assert seen[-1] == (UNDO_REMOVE, "Draw-circle")


def _mask() -> SegmentMask:
    data = np.zeros((2, 3, 3), dtype=np.uint8)
    data[0, 0, :] = 1
    data[1, 2, 2] = 2
    return SegmentMask(data, [MaskSegment(1, "liver", display_value=1), MaskSegment(2, "spleen", display_value=2)])


def test_delete_segment_and_undo():
    mask = _mask()
    original = mask.data.copy()
    segment = mask.get_segment(1)
    events = []
    cmd = DeleteSegmentCommand(mask, segment)
    cmd.on_execute = events.append
    cmd.on_undo = events.append
    assert cmd.is_valid()

    cmd.execute()
    assert not np.any(mask.data == 1)
    assert [s.number for s in mask.get_segments()] == [2]
    cmd.undo()
    assert np.array_equal(mask.data, original)
    assert [s.number for s in mask.get_segments()] == [1, 2]
    assert [e.type for e in events] == [SEGMENT_DELETE, SEGMENT_REDRAW]


def test_change_segment_colour_and_undo():
    mask = _mask()
    segment = mask.get_segment(2)
    cmd = ChangeSegmentColourCommand(mask, segment, 5)
    cmd.execute()
    assert mask.data[1, 2, 2] == 5
    assert segment.display_value == 5
    assert mask.mask_has_segment(1)
    cmd.undo()
    assert mask.data[1, 2, 2] == 2
    assert segment.display_value == 2


def test_segment_command_on_unpainted_segment_is_invalid():
    mask = _mask()
    segment = MaskSegment(3, display_value=3)
    mask.add_segment(segment)
    assert not DeleteSegmentCommand(mask, segment).is_valid()
    with pytest.raises(InvalidCommandError):
        ChangeSegmentColourCommand(mask, segment, 4).execute()


def test_rgb_mask_offsets():
    data = np.zeros((2, 2, 3), dtype=np.uint8)
    data[0, 1] = (255, 0, 0)
    segment = MaskSegment(1, display_rgb_value=(255, 0, 0))
    mask = SegmentMask(data, [segment], rgb=True)
    assert mask.get_offsets((255, 0, 0)).tolist() == [1]

    cmd = ChangeSegmentColourCommand(mask, segment, (0, 255, 0))
    cmd.execute()
    assert tuple(mask.data[0, 1]) == (0, 255, 0)
    assert segment.display_rgb_value == (0, 255, 0)
    cmd.undo()
    assert tuple(mask.data[0, 1]) == (255, 0, 0)

    with pytest.raises(ValueError):
        SegmentMask(np.zeros((2, 2), dtype=np.uint8), rgb=True)
