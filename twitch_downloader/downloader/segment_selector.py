"""Narrows a segment list to the whole segments covering a time window."""

from __future__ import annotations

from datetime import timedelta
from typing import List, Optional, Sequence

from ..models import Segment

ZERO = timedelta(0)


class RangeError(ValueError):
    """Raised when a requested ``[start, end)`` window is invalid or unsatisfiable."""

    def __init__(self, reason: str, total_duration: Optional[timedelta] = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.total_duration = total_duration


def select_range(segments: Sequence[Segment], start: timedelta, end: timedelta) -> List[Segment]:
    """Returns the contiguous segments overlapping ``[start, end)``.

    ``start == end == 0`` keeps every segment and ``end == 0`` means "until
    the end of the video". Segments are never trimmed: one that merely
    overlaps the window is kept whole.
    """

    if start < ZERO or end < ZERO:
        raise RangeError("negative timestamp")
    if start >= end and end != ZERO:
        raise RangeError("end not after start")
    if start == ZERO and end == ZERO:
        return list(segments)

    selected: List[Segment] = []
    segment_start = ZERO
    for segment in segments:
        if end != ZERO and segment_start >= end:
            break
        segment_end = segment_start + segment.duration
        if segment_end > start:
            selected.append(segment)
        segment_start = segment_end

    if not selected:
        total = sum((segment.duration for segment in segments), ZERO)
        raise RangeError(f"requested range is outside the video (duration {total})", total_duration=total)
    return selected
