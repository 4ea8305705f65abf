from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from commands.base import Command
from imaging.mask import MaskSegment, SegmentColour, SegmentMask

SEGMENT_COLOUR_CHANGE = "changemasksegmentcolour"
SEGMENT_DELETE = "masksegmentdelete"
SEGMENT_REDRAW = "masksegmentredraw"


@dataclass(frozen=True)
class SegmentEvent:
    type: str
    segment_number: int
    value: tuple[Any, ...] | None = None


class ChangeSegmentColourCommand(Command):
    def __init__(
        self, mask: SegmentMask, segment: MaskSegment, new_colour: SegmentColour, *, silent: bool = False
    ) -> None:
        super().__init__(silent=silent)
        self.mask = mask
        self.segment = segment
        self.new_colour = new_colour
        self.previous_colour = segment.get_display_colour()
        self._offsets = mask.get_offsets(self.previous_colour)

    def get_name(self) -> str:
        return "Change-segment-colour"

    def is_valid(self) -> bool:
        return self._offsets.size != 0

    def _apply(self) -> None:
        self.mask.set_at_offsets(self._offsets, self.new_colour)
        self.segment.set_display_colour(self.new_colour)

    def _revert(self) -> None:
        self.mask.set_at_offsets(self._offsets, self.previous_colour)
        self.segment.set_display_colour(self.previous_colour)

    def _execute_event(self) -> SegmentEvent:
        return SegmentEvent(SEGMENT_COLOUR_CHANGE, self.segment.number, (self.new_colour,))

    def _undo_event(self) -> SegmentEvent:
        return SegmentEvent(SEGMENT_COLOUR_CHANGE, self.segment.number, (self.previous_colour,))


class DeleteSegmentCommand(Command):
    """Erase a segment's pixels and drop it from the segment list."""

    def __init__(self, mask: SegmentMask, segment: MaskSegment, *, silent: bool = False) -> None:
        super().__init__(silent=silent)
        self.mask = mask
        self.segment = segment
        self._colour = segment.get_display_colour()
        self._offsets = mask.get_offsets(self._colour)
        self._index: int | None = None

    def get_name(self) -> str:
        return "Delete-segment"

    def is_valid(self) -> bool:
        return self._offsets.size != 0

    def _apply(self) -> None:
        self.mask.set_at_offsets(self._offsets, self.mask.get_background())
        index = self.mask.remove_segment(self.segment.number)
        if index is not None:
            self._index = index

    def _revert(self) -> None:
        self.mask.set_at_offsets(self._offsets, self._colour)
        if not self.mask.has_segment(self.segment.number):
            self.mask.add_segment(self.segment, self._index)

    def _execute_event(self) -> SegmentEvent:
        return SegmentEvent(SEGMENT_DELETE, self.segment.number)

    def _undo_event(self) -> SegmentEvent:
        return SegmentEvent(SEGMENT_REDRAW, self.segment.number)
