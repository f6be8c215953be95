"""Filesystem helpers for preparing output folders and safe filenames."""

from __future__ import annotations

import os
import re
from pathlib import Path

INVALID_FILENAME_CHARS = re.compile(r"[\\/:*?\"<>|]")


def sanitize_filename(value: str, default: str = "file") -> str:
    """Removes characters that are invalid on most filesystems."""

    sanitized = INVALID_FILENAME_CHARS.sub("", value or "").strip()
    return sanitized or default


def ensure_directory(path: str) -> str:
    """Creates a directory (and its parents) if needed."""

    Path(path).mkdir(parents=True, exist_ok=True)
    return path


def build_output_path(output: str | None, title: str, quality: str) -> str:
    """Returns the file to write a download to.

    ``output`` may be a full path, a directory (trailing separator) or empty.
    Without a file name the download is named ``"<title> (<quality>).mp4"``,
    with an ``mp4a`` extension for audio-only qualities.
    """

    directory, filename = os.path.split(output or "")
    if not filename:
        extension = "mp4a" if "audio" in quality.lower() else "mp4"
        filename = f"{sanitize_filename(title, default='video')} ({sanitize_filename(quality)}).{extension}"
    return os.path.join(directory, filename)
