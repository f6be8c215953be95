"""API client for Twitch VOD and clip metadata, access tokens and playlists."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Tuple
from urllib.parse import quote, urlencode, urlparse

from ..models import ClipQuality, VideoInfo
from ..utils.http_client import HttpClient

USHER_VOD_URL = "https://usher.ttvnw.net/vod/{vod_id}.m3u8"
TWITCH_HOSTS = {"twitch.tv", "www.twitch.tv", "m.twitch.tv"}

VOD_TOKEN_QUERY = (
    "query PlaybackAccessToken_Template($login: String!, $isLive: Boolean!, $vodID: ID!, "
    "$isVod: Boolean!, $playerType: String!) {"
    "  streamPlaybackAccessToken(channelName: $login, params: {platform: \"web\", "
    "playerBackend: \"mediaplayer\", playerType: $playerType}) @include(if: $isLive) {"
    "    value    signature    __typename  }"
    "  videoPlaybackAccessToken(id: $vodID, params: {platform: \"web\", "
    "playerBackend: \"mediaplayer\", playerType: $playerType}) @include(if: $isVod) {"
    "    value    signature    __typename  }"
    "}"
)
VIDEO_METADATA_HASH = "226edb3e692509f727fd56821f5653c05740242c82b0388883e0c0e75dcbf687"
CLIP_ACCESS_HASH = "36b89d2507fce29e5ca551df756d27c1cfe079e2609642b4390aa4c35796eb11"
CLIP_INFO_QUERY = "query ClipMetadata($slug: ID!) { clip(slug: $slug) { title } }"


class TwitchAPIError(Exception):
    """Raised when the Twitch API answers with missing or unexpected data."""


class InvalidVideoURL(ValueError):
    """Raised when a URL is neither a Twitch VOD nor a clip link."""


def parse_vod_id(value: str) -> str:
    """Extracts the VOD id from ``https://www.twitch.tv/videos/<id>`` or a bare id."""

    value = value.strip()
    if value.isdigit():
        return value
    parsed = urlparse(value)
    if parsed.hostname not in TWITCH_HOSTS:
        raise InvalidVideoURL(f"URL host is not twitch.tv: {parsed.hostname}")
    if not parsed.path.startswith("/videos/"):
        raise InvalidVideoURL("URL path does not contain /videos/")
    vod_id = parsed.path.rstrip("/").rsplit("/", 1)[-1]
    if not vod_id.isdigit():
        raise InvalidVideoURL(f"Invalid VOD id in URL: {vod_id}")
    return vod_id


def parse_clip_slug(value: str) -> str:
    """Extracts the slug from ``clips.twitch.tv/<slug>`` or ``twitch.tv/<channel>/clip/<slug>``."""

    parsed = urlparse(value.strip())
    hostname = parsed.hostname or ""
    if not hostname.endswith("twitch.tv"):
        raise InvalidVideoURL(f"URL host is not twitch.tv: {hostname}")
    parts = [part for part in parsed.path.split("/") if part]
    if hostname == "clips.twitch.tv" and len(parts) == 1:
        return parts[0]
    if len(parts) >= 3 and parts[-2] == "clip":
        return parts[-1]
    raise InvalidVideoURL("URL path does not contain a clip slug")


class TwitchAPI:
    """Wraps the GQL and usher endpoints needed to download VODs and clips."""

    def __init__(self, http_client: HttpClient, client_id: str) -> None:
        self._client = http_client
        self._client_id = client_id

    def vod_token(self, vod_id: str) -> Tuple[str, str]:
        payload = {
            "operationName": "PlaybackAccessToken_Template",
            "query": VOD_TOKEN_QUERY,
            "variables": {"isLive": False, "login": "", "isVod": True, "vodID": vod_id, "playerType": "site"},
        }
        data = self._gql(payload, f"VOD token for {vod_id}")
        token = (data.get("data") or {}).get("videoPlaybackAccessToken") or {}
        if not token.get("value") or not token.get("signature"):
            raise TwitchAPIError(f"No playback access token returned for VOD {vod_id}")
        return token["value"], token["signature"]

    def master_playlist(self, vod_id: str) -> bytes:
        """Returns the raw master playlist of a VOD, signed with a fresh access token."""

        token, sig = self.vod_token(vod_id)
        query = urlencode(
            {
                "nauth": token,
                "nauthsig": sig,
                "allow_audio_only": "true",
                "allow_source": "true",
                "player": "twitchweb",
            }
        )
        url = f"{USHER_VOD_URL.format(vod_id=vod_id)}?{query}"
        try:
            return self._client.fetch_bytes(url)
        except Exception as exc:
            logging.error("Failed to fetch master playlist for VOD %s: %s", vod_id, exc)
            raise

    def vod_info(self, vod_id: str) -> VideoInfo:
        payload = {
            "operationName": "VideoMetadata",
            "variables": {"channelLogin": "", "videoID": vod_id},
            "extensions": {"persistedQuery": {"version": 1, "sha256Hash": VIDEO_METADATA_HASH}},
        }
        data = self._gql(payload, f"metadata for VOD {vod_id}")
        video = (data.get("data") or {}).get("video")
        if not video:
            raise TwitchAPIError(f"VOD {vod_id} not found")
        return VideoInfo(id=vod_id, title=video.get("title") or vod_id)

    def clip_info(self, slug: str) -> VideoInfo:
        data = self._gql({"query": CLIP_INFO_QUERY, "variables": {"slug": slug}}, f"metadata for clip {slug}")
        clip = (data.get("data") or {}).get("clip")
        if not clip:
            raise TwitchAPIError(f"Clip {slug} not found")
        return VideoInfo(id=slug, title=clip.get("title") or slug, is_clip=True)

    def clip_qualities(self, slug: str) -> List[ClipQuality]:
        clip = self._clip_access(slug)
        qualities = []
        for entry in clip.get("videoQualities") or []:
            source_url = entry.get("sourceURL")
            if not source_url:
                logging.debug("Skipping clip quality without source: %s", entry)
                continue
            qualities.append(
                ClipQuality(
                    quality=str(entry.get("quality") or ""),
                    frame_rate=round(float(entry.get("frameRate") or 0)),
                    source_url=source_url,
                )
            )
        return qualities

    def clip_token(self, slug: str) -> Tuple[str, str]:
        clip = self._clip_access(slug)
        token = clip.get("playbackAccessToken") or {}
        if not token.get("value") or not token.get("signature"):
            raise TwitchAPIError(f"No playback access token returned for clip {slug}")
        return token["value"], token["signature"]

    def signed_clip_url(self, source_url: str, slug: str) -> str:
        token, sig = self.clip_token(slug)
        separator = "&" if "?" in source_url else "?"
        return f"{source_url}{separator}sig={sig}&token={quote(token, safe='')}"

    def _clip_access(self, slug: str) -> Dict[str, Any]:
        payload = {
            "operationName": "VideoAccessToken_Clip",
            "variables": {"slug": slug},
            "extensions": {"persistedQuery": {"version": 1, "sha256Hash": CLIP_ACCESS_HASH}},
        }
        data = self._gql(payload, f"access token for clip {slug}")
        clip = (data.get("data") or {}).get("clip")
        if not clip:
            raise TwitchAPIError(f"Clip {slug} not found")
        return clip

    def _gql(self, payload: Dict[str, Any], what: str) -> Dict[str, Any]:
        try:
            data = self._client.post_gql(payload, self._client_id)
        except Exception as exc:
            logging.error("Failed to fetch %s: %s", what, exc)
            raise
        if not isinstance(data, dict):
            raise TwitchAPIError(f"Unexpected response while fetching {what}")
        if data.get("errors"):
            message = "; ".join(str(err.get("message", err)) for err in data["errors"] if isinstance(err, dict))
            raise TwitchAPIError(f"Twitch API error while fetching {what}: {message or data['errors']}")
        return data
