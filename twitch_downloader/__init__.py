"""Download Twitch VODs and clips delivered over HLS."""

from .api import InvalidVideoURL, TwitchAPI, TwitchAPIError
from .downloader import (
    DownloadCancelled,
    ParseError,
    QualityNotFound,
    RangeError,
    SegmentMerger,
    VideoDownloader,
    parse_master,
    parse_media,
    select_range,
)
from .utils import AuthenticationError, FetchError, HttpClient

__all__ = [
    "parse_master",
    "parse_media",
    "select_range",
    "SegmentMerger",
    "VideoDownloader",
    "TwitchAPI",
    "HttpClient",
    "ParseError",
    "RangeError",
    "FetchError",
    "AuthenticationError",
    "TwitchAPIError",
    "InvalidVideoURL",
    "QualityNotFound",
    "DownloadCancelled",
]
