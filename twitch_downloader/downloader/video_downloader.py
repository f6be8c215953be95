"""Sets up VOD and clip downloads as lazily-read merged streams."""

from __future__ import annotations

import logging
import threading
from datetime import timedelta
from typing import List, Optional

from ..api.twitch_api import TwitchAPI
from ..models import ClipQuality
from ..utils.http_client import HttpClient
from .m3u8_parser import parse_master, parse_media
from .merger import SegmentMerger
from .segment_selector import select_range


class QualityNotFound(LookupError):
    """Raised when the requested quality is not offered for a video."""

    def __init__(self, quality: str, available: List[str]) -> None:
        super().__init__(f"quality {quality} not found (available: {', '.join(available) or 'none'})")
        self.quality = quality
        self.available = available


class VideoDownloader:
    """Resolves a quality to segment URLs and wraps them in a :class:`SegmentMerger`.

    Nothing is downloaded here apart from playlists: segment bodies are
    fetched while the returned merger is being read.
    """

    def __init__(self, http_client: HttpClient, api: TwitchAPI) -> None:
        self._http_client = http_client
        self._api = api

    def qualities(self, vod_id: str) -> List[str]:
        master = parse_master(self._api.master_playlist(vod_id))
        return master.qualities()

    def clip_qualities(self, slug: str) -> List[str]:
        return [quality.label for quality in self._api.clip_qualities(slug)]

    def download(
        self,
        vod_id: str,
        quality: str,
        start: timedelta = timedelta(0),
        end: timedelta = timedelta(0),
        cancel_event: Optional[threading.Event] = None,
    ) -> SegmentMerger:
        master = parse_master(self._api.master_playlist(vod_id))
        variant = master.find_variant(quality)
        if variant is None:
            raise QualityNotFound(quality, master.qualities())

        logging.debug("Fetching media playlist %s", variant.url)
        media = parse_media(self._http_client.fetch_bytes(variant.url), base_url=variant.url)
        segments = select_range(media.segments, start, end)
        logging.info(
            "Selected %s of %s segments (%s of %s)",
            len(segments),
            len(media.segments),
            sum((segment.duration for segment in segments), timedelta(0)),
            media.total_duration,
        )
        providers = [self._http_client.provider(segment.url) for segment in segments]
        return SegmentMerger(providers, cancel_event=cancel_event)

    def download_clip(
        self,
        slug: str,
        quality: str,
        cancel_event: Optional[threading.Event] = None,
    ) -> SegmentMerger:
        qualities = self._api.clip_qualities(slug)
        selected = _find_clip_quality(qualities, quality)
        if selected is None:
            raise QualityNotFound(quality, [item.label for item in qualities])

        source_url = self._api.signed_clip_url(selected.source_url, slug)
        return SegmentMerger([self._http_client.provider(source_url)], cancel_event=cancel_event)


def _find_clip_quality(qualities: List[ClipQuality], label: str) -> Optional[ClipQuality]:
    for quality in qualities:
        if quality.label == label:
            return quality
    return None
