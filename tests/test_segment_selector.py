"""Tests for selecting the segments that cover a time window."""

from __future__ import annotations

from datetime import timedelta

import pytest

from twitch_downloader.downloader.m3u8_parser import parse_media
from twitch_downloader.downloader.segment_selector import RangeError, select_range
from twitch_downloader.models import Segment


def seconds(value: float) -> timedelta:
    return timedelta(seconds=value)


@pytest.fixture
def segments() -> list[Segment]:
    playlist = parse_media(
        "#EXTM3U\n#EXT-X-TARGETDURATION:15\n#EXT-X-MEDIA-SEQUENCE:2\n"
        "#EXTINF:11.5,\n0.ts\n#EXTINF:13\n1.ts\n#EXT-X-ENDLIST\n"
    )
    return playlist.segments


@pytest.fixture
def ten_segments() -> list[Segment]:
    return [Segment(duration=seconds(10), number=index, url=f"{index}.ts") for index in range(10)]


def test_no_trimming_returns_everything(segments: list[Segment]) -> None:
    """Test that a zero window keeps the list unchanged."""
    assert select_range(segments, seconds(0), seconds(0)) == segments


def test_window_overlapping_both_segments(segments: list[Segment]) -> None:
    """Test that partially overlapped segments are kept whole."""
    assert select_range(segments, seconds(5), seconds(20)) == segments


def test_start_beyond_duration(segments: list[Segment]) -> None:
    """Test that a window past the end reports the total duration."""
    with pytest.raises(RangeError) as exc_info:
        select_range(segments, seconds(30), seconds(0))
    assert exc_info.value.total_duration == seconds(24.5)
    assert "0:00:24.500000" in str(exc_info.value)


def test_open_ended_window(ten_segments: list[Segment]) -> None:
    """Test that end == 0 selects until the end of the video."""
    selected = select_range(ten_segments, seconds(35), seconds(0))
    assert [segment.number for segment in selected] == [3, 4, 5, 6, 7, 8, 9]


def test_window_inside_video(ten_segments: list[Segment]) -> None:
    """Test that only segments intersecting the window are selected."""
    selected = select_range(ten_segments, seconds(20), seconds(40))
    assert [segment.number for segment in selected] == [2, 3]

    selected = select_range(ten_segments, seconds(19.999), seconds(40.001))
    assert [segment.number for segment in selected] == [1, 2, 3, 4]


def test_window_at_start(ten_segments: list[Segment]) -> None:
    """Test a window starting at zero with a bounded end."""
    selected = select_range(ten_segments, seconds(0), seconds(5))
    assert [segment.number for segment in selected] == [0]


def test_selection_is_contiguous_and_ordered(ten_segments: list[Segment]) -> None:
    """Test that the selection is a contiguous slice of the input."""
    selected = select_range(ten_segments, seconds(12), seconds(71))
    first = ten_segments.index(selected[0])
    assert selected == ten_segments[first : first + len(selected)]


@pytest.mark.parametrize(
    ("start", "end"),
    [(-1, 0), (0, -1), (-5, -1), (-1, 10)],
)
def test_negative_timestamps(ten_segments: list[Segment], start: float, end: float) -> None:
    """Test that negative timestamps are rejected."""
    with pytest.raises(RangeError, match="negative timestamp") as exc_info:
        select_range(ten_segments, seconds(start), seconds(end))
    assert exc_info.value.total_duration is None


@pytest.mark.parametrize(("start", "end"), [(20, 10), (10, 10)])
def test_end_not_after_start(ten_segments: list[Segment], start: float, end: float) -> None:
    """Test that end must be after start when it is set."""
    with pytest.raises(RangeError, match="end not after start"):
        select_range(ten_segments, seconds(start), seconds(end))


def test_invalid_window_fails_before_traversal() -> None:
    """Test that argument validation happens before the segments are touched."""

    class Untouchable:
        def __iter__(self):
            raise AssertionError("segments must not be traversed")

    with pytest.raises(RangeError):
        select_range(Untouchable(), seconds(10), seconds(5))
    with pytest.raises(RangeError):
        select_range(Untouchable(), seconds(-1), seconds(5))


def test_window_outside_empty_list() -> None:
    """Test that an empty playlist cannot satisfy a window."""
    with pytest.raises(RangeError) as exc_info:
        select_range([], seconds(1), seconds(2))
    assert exc_info.value.total_duration == timedelta(0)


def test_window_after_end_with_bounded_end(ten_segments: list[Segment]) -> None:
    """Test a bounded window that lies entirely past the video."""
    with pytest.raises(RangeError) as exc_info:
        select_range(ten_segments, seconds(200), seconds(300))
    assert exc_info.value.total_duration == seconds(100)
