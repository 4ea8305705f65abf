from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence, Union

import numpy as np

logger = logging.getLogger(__name__)

RGB = tuple[int, int, int]
BLACK: RGB = (0, 0, 0)

SegmentColour = Union[int, RGB]


@dataclass
class MaskSegment:
    number: int
    label: str = ""
    algorithm_type: str = "MANUAL"
    # monochrome masks use display_value, colour masks display_rgb_value
    display_value: int | None = None
    display_rgb_value: RGB | None = None

    def get_display_colour(self) -> SegmentColour:
        if self.display_rgb_value is not None:
            return self.display_rgb_value
        if self.display_value is None:
            raise ValueError(f"Segment {self.number} has no display value")
        return self.display_value

    def set_display_colour(self, colour: SegmentColour) -> None:
        if isinstance(colour, (int, np.integer)):
            self.display_value = int(colour)
        else:
            self.display_rgb_value = tuple(int(c) for c in colour)  # type: ignore[assignment]


class SegmentMask:
    """
    Labelled mask over a caller-owned numpy array plus its segment list.

    Offsets are flat pixel offsets into the C ordered array, so a command can
    remember where a colour was painted and restore it exactly.
    """

    def __init__(self, data: np.ndarray, segments: Sequence[MaskSegment] | None = None, *, rgb: bool = False) -> None:
        if not isinstance(data, np.ndarray):
            raise TypeError("Mask data must be a numpy array")
        if not data.flags.c_contiguous:
            raise ValueError("Mask data must be C contiguous")
        if rgb and (data.ndim < 2 or data.shape[-1] != 3):
            raise ValueError(f"RGB mask needs a trailing axis of size 3, got shape {data.shape}")
        self._data = data
        self._rgb = bool(rgb)
        self._segments: list[MaskSegment] = list(segments or [])

    @property
    def data(self) -> np.ndarray:
        return self._data

    def is_rgb(self) -> bool:
        return self._rgb

    def _flat(self) -> np.ndarray:
        if self._rgb:
            return self._data.reshape(-1, 3)
        return self._data.reshape(-1)

    def get_offsets(self, colour: SegmentColour) -> np.ndarray:
        flat = self._flat()
        if self._rgb:
            return np.flatnonzero(np.all(flat == np.asarray(colour, dtype=flat.dtype), axis=1))
        return np.flatnonzero(flat == colour)

    def set_at_offsets(self, offsets: np.ndarray, colour: SegmentColour) -> None:
        flat = self._flat()
        if self._rgb:
            flat[offsets] = np.asarray(colour, dtype=flat.dtype)
        else:
            flat[offsets] = colour

    def get_background(self) -> SegmentColour:
        return BLACK if self._rgb else 0

    # --- segments

    def get_segments(self) -> list[MaskSegment]:
        return list(self._segments)

    def get_segment(self, number: int) -> MaskSegment | None:
        for segment in self._segments:
            if segment.number == number:
                return segment
        return None

    def has_segment(self, number: int) -> bool:
        return self.get_segment(number) is not None

    def mask_has_segment(self, number: int) -> bool:
        """True if the segment's colour is painted somewhere in the mask."""
        segment = self.get_segment(number)
        if segment is None:
            return False
        return self.get_offsets(segment.get_display_colour()).size != 0

    def add_segment(self, segment: MaskSegment, index: int | None = None) -> None:
        if self.has_segment(segment.number):
            logger.warning("Segment %s is already in the mask", segment.number)
            return
        if index is None:
            self._segments.append(segment)
        else:
            self._segments.insert(index, segment)

    def remove_segment(self, number: int) -> int | None:
        """Remove a segment by number; returns its former index."""
        for i, segment in enumerate(self._segments):
            if segment.number == number:
                del self._segments[i]
                return i
        logger.warning("Segment %s is not in the mask", number)
        return None
