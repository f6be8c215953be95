"""Tools for parsing HLS master and media playlists into structured models.

Both parsers are a single forward pass over the playlist lines. Tag lines
update a small pending state that is consumed by the next URI line. No
network access happens here; callers fetch the text themselves.
"""

from __future__ import annotations

import math
import re
from datetime import timedelta
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Dict, List, Optional, Tuple
from urllib.parse import urljoin

from ..models import Alternative, MasterPlaylist, MediaPlaylist, PlaylistType, Segment, Variant

HEADER_TAG = "#EXTM3U"
ATTRIBUTE_PATTERN = re.compile(r'([A-Z0-9-]+)=("[^"]*"|[^,]*)')


class ParseError(ValueError):
    """Raised when playlist text is malformed or incomplete."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


def parse_master(text: str | bytes) -> MasterPlaylist:
    """Parses master playlist text into its variants and alternatives."""

    lines = _playlist_lines(text)
    variants: List[Variant] = []
    seen_media: List[Alternative] = []
    pending_media: List[Alternative] = []
    stream_inf: Optional[Dict[str, str]] = None

    for line_no, line in lines:
        if line.startswith("#EXT-X-MEDIA:"):
            attrs = _parse_attributes(line.split(":", 1)[1])
            name = attrs.get("NAME")
            if not name:
                continue
            alternative = Alternative(name=name, group_id=attrs.get("GROUP-ID"))
            seen_media.append(alternative)
            pending_media.append(alternative)
        elif line.startswith("#EXT-X-STREAM-INF:"):
            stream_inf = _parse_attributes(line.split(":", 1)[1])
        elif line.startswith("#"):
            continue
        else:
            if stream_inf is None:
                raise ParseError(f"line {line_no}: variant URI {line!r} without #EXT-X-STREAM-INF")
            variants.append(_build_variant(line, line_no, stream_inf, seen_media, pending_media, len(variants)))
            pending_media = []
            stream_inf = None

    return MasterPlaylist(variants=variants)


def parse_media(text: str | bytes, base_url: Optional[str] = None) -> MediaPlaylist:
    """Parses media playlist text into ordered segments.

    Segment numbers are derived from ``#EXT-X-MEDIA-SEQUENCE`` plus the
    segment's position. When ``base_url`` is given, relative segment URIs are
    resolved against it.
    """

    lines = _playlist_lines(text)
    target_duration = timedelta(0)
    playlist_type = PlaylistType.UNSPECIFIED
    sequence = 0
    ended = False
    segments: List[Segment] = []

    pending_duration: Optional[timedelta] = None
    pending_title: Optional[str] = None
    pending_discontinuity = False

    for line_no, line in lines:
        if not line.startswith("#"):
            if pending_duration is None:
                raise ParseError(f"line {line_no}: segment URI {line!r} without #EXTINF")
            segments.append(
                Segment(
                    duration=pending_duration,
                    number=sequence + len(segments),
                    url=urljoin(base_url, line) if base_url else line,
                    title=pending_title,
                    discontinuity=pending_discontinuity,
                )
            )
            pending_duration = None
            pending_title = None
            pending_discontinuity = False
            continue

        tag, _, value = line.partition(":")
        if tag == "#EXT-X-TARGETDURATION":
            target_duration = _parse_duration(value, line_no)
        elif tag == "#EXT-X-PLAYLIST-TYPE":
            playlist_type = _parse_playlist_type(value)
        elif tag == "#EXT-X-MEDIA-SEQUENCE":
            if segments:
                raise ParseError(f"line {line_no}: #EXT-X-MEDIA-SEQUENCE after the first segment")
            sequence = _parse_int(value, line_no)
        elif tag == "#EXTINF":
            duration, _, title = value.partition(",")
            pending_duration = _parse_duration(duration, line_no)
            pending_title = title.strip() or None
        elif tag == "#EXT-X-DISCONTINUITY":
            pending_discontinuity = True
        elif tag == "#EXT-X-ENDLIST":
            ended = True

    return MediaPlaylist(
        target_duration=target_duration,
        type=playlist_type,
        sequence=sequence,
        ended=ended,
        segments=segments,
    )


def _playlist_lines(text: str | bytes) -> List[Tuple[int, str]]:
    if isinstance(text, (bytes, bytearray)):
        text = bytes(text).decode("utf-8-sig")
    text = text.lstrip("\ufeff")

    lines = []
    for line_no, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.strip()
        if line:
            lines.append((line_no, line))

    if not lines or not lines[0][1].startswith(HEADER_TAG):
        raise ParseError(f"missing {HEADER_TAG} header")
    return lines[1:]


def _parse_attributes(value: str) -> Dict[str, str]:
    attrs: Dict[str, str] = {}
    for key, raw in ATTRIBUTE_PATTERN.findall(value):
        attrs[key] = raw[1:-1] if len(raw) >= 2 and raw.startswith('"') and raw.endswith('"') else raw
    return attrs


def _parse_duration(value: str, line_no: int) -> timedelta:
    """Parses integer or fractional seconds, keeping millisecond precision."""

    try:
        seconds = Decimal(value.strip())
    except InvalidOperation:
        raise ParseError(f"line {line_no}: invalid duration {value!r}") from None
    if not seconds.is_finite() or seconds < 0:
        raise ParseError(f"line {line_no}: invalid duration {value!r}")
    try:
        millis = (seconds * 1000).quantize(Decimal(1), rounding=ROUND_HALF_UP)
        return timedelta(milliseconds=int(millis))
    except ArithmeticError:
        raise ParseError(f"line {line_no}: invalid duration {value!r}") from None


def _parse_int(value: str, line_no: int) -> int:
    try:
        return int(value.strip())
    except ValueError:
        raise ParseError(f"line {line_no}: invalid integer {value!r}") from None


def _parse_playlist_type(value: str) -> PlaylistType:
    try:
        return PlaylistType(value.strip().upper())
    except ValueError:
        return PlaylistType.UNSPECIFIED


def _build_variant(
    url: str,
    line_no: int,
    stream_inf: Dict[str, str],
    seen_media: List[Alternative],
    pending_media: List[Alternative],
    index: int,
) -> Variant:
    bandwidth = _parse_int(stream_inf["BANDWIDTH"], line_no) if "BANDWIDTH" in stream_inf else None
    frame_rate = None
    if "FRAME-RATE" in stream_inf:
        try:
            frame_rate = float(stream_inf["FRAME-RATE"])
        except ValueError:
            raise ParseError(f"line {line_no}: invalid FRAME-RATE {stream_inf['FRAME-RATE']!r}") from None
        if not math.isfinite(frame_rate) or frame_rate < 0:
            raise ParseError(f"line {line_no}: invalid FRAME-RATE {stream_inf['FRAME-RATE']!r}")
    resolution = stream_inf.get("RESOLUTION")
    codecs = stream_inf.get("CODECS")

    video_group = stream_inf.get("VIDEO")
    if video_group:
        alternatives = [alt for alt in seen_media if alt.group_id == video_group]
    else:
        alternatives = list(pending_media)
    if not alternatives:
        label = _synthesize_label(resolution, frame_rate, codecs, bandwidth, index)
        alternatives = [Alternative(name=label, group_id=video_group)]

    return Variant(
        url=url,
        alternatives=alternatives,
        bandwidth=bandwidth,
        resolution=resolution,
        frame_rate=frame_rate,
        codecs=codecs,
    )


def _synthesize_label(
    resolution: Optional[str],
    frame_rate: Optional[float],
    codecs: Optional[str],
    bandwidth: Optional[int],
    index: int,
) -> str:
    if resolution and "x" in resolution:
        height = resolution.lower().split("x", 1)[1]
        if frame_rate:
            return f"{height}p{round(frame_rate)}"
        return f"{height}p"
    if codecs and all(codec.strip().startswith("mp4a") for codec in codecs.split(",")):
        return "audio_only"
    if bandwidth:
        return f"{bandwidth // 1000}k"
    return f"variant{index}"
