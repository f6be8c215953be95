"""Tests for wiring playlists, range selection and the merger together."""

from __future__ import annotations

import io
from datetime import timedelta
from typing import Callable, Dict, List

import pytest

from twitch_downloader.downloader.segment_selector import RangeError
from twitch_downloader.downloader.video_downloader import QualityNotFound, VideoDownloader
from twitch_downloader.models import ClipQuality

MASTER = b"""#EXTM3U
#EXT-X-MEDIA:TYPE=VIDEO,GROUP-ID="chunked",NAME="1080p60",AUTOSELECT=YES,DEFAULT=YES
#EXT-X-STREAM-INF:BANDWIDTH=8534030,RESOLUTION=1920x1080,VIDEO="chunked",FRAME-RATE=60.000
https://vod.example.com/abc/chunked/index-dvr.m3u8
#EXT-X-MEDIA:TYPE=VIDEO,GROUP-ID="audio_only",NAME="Audio Only",AUTOSELECT=NO,DEFAULT=NO
#EXT-X-STREAM-INF:BANDWIDTH=160000,CODECS="mp4a.40.2",VIDEO="audio_only"
https://vod.example.com/abc/audio_only/index-dvr.m3u8
"""

MEDIA = b"""#EXTM3U
#EXT-X-TARGETDURATION:10
#EXT-X-PLAYLIST-TYPE:VOD
#EXT-X-MEDIA-SEQUENCE:0
#EXTINF:10.000,
0.ts
#EXTINF:10.000,
1.ts
#EXTINF:10.000,
2.ts
#EXTINF:4.500,
3.ts
#EXT-X-ENDLIST
"""


class FakeApi:
    def __init__(self) -> None:
        self.signed: List[str] = []

    def master_playlist(self, vod_id: str) -> bytes:
        return MASTER

    def clip_qualities(self, slug: str) -> List[ClipQuality]:
        return [
            ClipQuality(quality="1080", frame_rate=60, source_url="https://clips.example.com/1080.mp4"),
            ClipQuality(quality="720", frame_rate=30, source_url="https://clips.example.com/720.mp4"),
        ]

    def signed_clip_url(self, source_url: str, slug: str) -> str:
        url = f"{source_url}?sig=s&token=t"
        self.signed.append(url)
        return url


class FakeHttpClient:
    def __init__(self, bodies: Dict[str, bytes]) -> None:
        self._bodies = bodies
        self.opened: List[str] = []

    def fetch_bytes(self, url: str) -> bytes:
        return self._bodies[url]

    def provider(self, url: str) -> Callable[[], io.BytesIO]:
        def open_stream() -> io.BytesIO:
            self.opened.append(url)
            return io.BytesIO(self._bodies[url])

        return open_stream


@pytest.fixture
def http_client() -> FakeHttpClient:
    base = "https://vod.example.com/abc/chunked/"
    bodies = {f"{base}index-dvr.m3u8": MEDIA}
    bodies.update({f"{base}{index}.ts": f"<seg{index}>".encode() for index in range(4)})
    bodies["https://clips.example.com/720.mp4?sig=s&token=t"] = b"clip-bytes"
    return FakeHttpClient(bodies)


@pytest.fixture
def downloader(http_client: FakeHttpClient) -> VideoDownloader:
    return VideoDownloader(http_client, FakeApi())


def test_qualities(downloader: VideoDownloader) -> None:
    """Test listing the qualities of a VOD."""
    assert downloader.qualities("1") == ["1080p60", "Audio Only"]


def test_download_full_vod(downloader: VideoDownloader, http_client: FakeHttpClient) -> None:
    """Test that a full download yields every segment in order."""
    merger = downloader.download("1", "1080p60")
    assert merger.total_chunks() == 4
    assert http_client.opened == []

    assert merger.read() == b"<seg0><seg1><seg2><seg3>"
    assert http_client.opened[0] == "https://vod.example.com/abc/chunked/0.ts"


def test_download_range(downloader: VideoDownloader) -> None:
    """Test that only segments overlapping the window are downloaded."""
    merger = downloader.download("1", "1080p60", start=timedelta(seconds=15), end=timedelta(seconds=25))
    assert merger.read() == b"<seg1><seg2>"


def test_download_range_outside_video(downloader: VideoDownloader) -> None:
    """Test that an unsatisfiable window reports the VOD duration."""
    with pytest.raises(RangeError) as exc_info:
        downloader.download("1", "1080p60", start=timedelta(minutes=5))
    assert exc_info.value.total_duration == timedelta(seconds=34.5)


def test_download_unknown_quality(downloader: VideoDownloader) -> None:
    """Test that an unknown quality lists the available ones."""
    with pytest.raises(QualityNotFound) as exc_info:
        downloader.download("1", "4k")
    assert exc_info.value.available == ["1080p60", "Audio Only"]
    assert "1080p60" in str(exc_info.value)


def test_clip_qualities(downloader: VideoDownloader) -> None:
    """Test listing clip qualities by label."""
    assert downloader.clip_qualities("Slug") == ["1080p60", "720p30"]


def test_download_clip(downloader: VideoDownloader, http_client: FakeHttpClient) -> None:
    """Test that a clip is a single signed source."""
    merger = downloader.download_clip("Slug", "720p30")
    assert merger.total_chunks() == 1
    assert merger.read() == b"clip-bytes"
    assert http_client.opened == ["https://clips.example.com/720.mp4?sig=s&token=t"]


def test_download_clip_unknown_quality(downloader: VideoDownloader) -> None:
    """Test that clip quality lookup is by label."""
    with pytest.raises(QualityNotFound):
        downloader.download_clip("Slug", "720")
