"""Models for VOD and clip metadata returned by the Twitch API."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class VideoInfo(BaseModel):
    """Minimal metadata needed to name a download."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    is_clip: bool = False


class ClipQuality(BaseModel):
    """One entry of a clip's ``videoQualities`` list."""

    model_config = ConfigDict(frozen=True)

    quality: str
    frame_rate: int
    source_url: str

    @property
    def label(self) -> str:
        return f"{self.quality}p{self.frame_rate}"
