"""Data models for playlists, segments, and video metadata."""

from .playlist_models import Alternative, MasterPlaylist, MediaPlaylist, PlaylistType, Segment, Variant
from .video_models import ClipQuality, VideoInfo

__all__ = [
    "Alternative",
    "Variant",
    "MasterPlaylist",
    "PlaylistType",
    "Segment",
    "MediaPlaylist",
    "ClipQuality",
    "VideoInfo",
]
