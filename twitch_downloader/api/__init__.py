"""API layer for Twitch VOD and clip metadata, tokens, and playlists."""

from .twitch_api import InvalidVideoURL, TwitchAPI, TwitchAPIError, parse_clip_slug, parse_vod_id

__all__ = ["TwitchAPI", "TwitchAPIError", "InvalidVideoURL", "parse_vod_id", "parse_clip_slug"]
