"""Pydantic models that describe parsed HLS master and media playlists."""

from datetime import timedelta
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class Alternative(BaseModel):
    """A labeled rendition of a variant, e.g. ``720p60`` or ``audio_only``."""

    model_config = ConfigDict(frozen=True)

    name: str
    group_id: Optional[str] = None


class Variant(BaseModel):
    """One ``#EXT-X-STREAM-INF`` entry and the media playlist it points to."""

    model_config = ConfigDict(frozen=True)

    url: str
    alternatives: List[Alternative]
    bandwidth: Optional[int] = None
    resolution: Optional[str] = None
    frame_rate: Optional[float] = None
    codecs: Optional[str] = None


class MasterPlaylist(BaseModel):
    """Top-level playlist listing the available quality variants."""

    model_config = ConfigDict(frozen=True)

    variants: List[Variant]

    def qualities(self) -> List[str]:
        return [alt.name for variant in self.variants for alt in variant.alternatives]

    def find_variant(self, name: str) -> Optional[Variant]:
        """Returns the first variant owning an alternative called ``name``."""

        for variant in self.variants:
            for alt in variant.alternatives:
                if alt.name == name:
                    return variant
        return None


class PlaylistType(str, Enum):
    EVENT = "EVENT"
    VOD = "VOD"
    LIVE = "LIVE"
    UNSPECIFIED = ""


class Segment(BaseModel):
    """A single media segment; ``number`` is derived from the media sequence."""

    model_config = ConfigDict(frozen=True)

    duration: timedelta
    number: int
    url: str
    title: Optional[str] = None
    discontinuity: bool = False


class MediaPlaylist(BaseModel):
    """Ordered segments of one variant, in playback order."""

    model_config = ConfigDict(frozen=True)

    target_duration: timedelta = timedelta(0)
    type: PlaylistType = PlaylistType.UNSPECIFIED
    sequence: int = 0
    ended: bool = False
    segments: List[Segment]

    @property
    def total_duration(self) -> timedelta:
        return sum((segment.duration for segment in self.segments), timedelta(0))
