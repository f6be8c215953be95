"""Playlist parsing, range selection, and merged segment downloads."""

from .m3u8_parser import ParseError, parse_master, parse_media
from .merger import DownloadCancelled, ReaderState, SegmentMerger, SourceProvider
from .progress import ProgressBar, ProgressReader, ProgressSnapshot, format_bytes
from .segment_selector import RangeError, select_range
from .video_downloader import QualityNotFound, VideoDownloader

__all__ = [
    "ParseError",
    "parse_master",
    "parse_media",
    "RangeError",
    "select_range",
    "SegmentMerger",
    "SourceProvider",
    "ReaderState",
    "DownloadCancelled",
    "ProgressReader",
    "ProgressSnapshot",
    "ProgressBar",
    "format_bytes",
    "VideoDownloader",
    "QualityNotFound",
]
