from __future__ import annotations

import argparse
import logging
import os
import re
import shutil
import sys
import threading
from datetime import timedelta
from typing import Any, Callable

from dotenv import load_dotenv

from .api.twitch_api import InvalidVideoURL, TwitchAPI, parse_clip_slug, parse_vod_id
from .downloader.merger import SegmentMerger
from .downloader.progress import ProgressBar, ProgressReader
from .downloader.video_downloader import VideoDownloader
from .utils.file_utils import build_output_path, ensure_directory
from .utils.http_client import HttpClient

load_dotenv()

DEFAULT_CLIENT_ID = "kimne78kx3ncx6brgo4mv6wki5h1ko"
COPY_CHUNK_SIZE = 1 << 16
DURATION_PATTERN = re.compile(r"^(?:(?P<h>\d+)h)?(?:(?P<m>\d+)m)?(?:(?P<s>\d+(?:\.\d+)?)s)?$")


def _env(name: str, convert: Callable[[str], Any] = str, default: Any = None) -> Any:
    """Reads a setting from the environment, falling back to ``default`` when unset or invalid."""

    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return convert(raw)
    except ValueError:
        logging.warning("Ignoring invalid %s=%r", name, raw)
        return default


def _flag(value: str) -> bool:
    return value.lower() in {"1", "true", "yes", "on"}


def _duration_arg(value: str) -> timedelta:
    """Accepts ``1h23m45s``, ``90s``, ``1:02:03``, ``2:30`` or plain seconds."""

    value = value.strip()
    try:
        if ":" in value:
            parts = [float(part) for part in value.split(":")]
            if len(parts) > 3:
                raise ValueError(value)
            seconds = 0.0
            for part in parts:
                seconds = seconds * 60 + part
            return timedelta(seconds=seconds)
        return timedelta(seconds=float(value))
    except ValueError:
        pass

    match = DURATION_PATTERN.match(value)
    if not value or not match:
        raise argparse.ArgumentTypeError(f"invalid duration: {value!r} (examples: 1h23m45s, 90s, 1:02:03)")
    return timedelta(
        hours=int(match.group("h") or 0),
        minutes=int(match.group("m") or 0),
        seconds=float(match.group("s") or 0),
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Download Twitch VODs and clips.")
    parser.add_argument(
        "--vod",
        default=_env("TWITCH_VOD"),
        help='The ID or absolute URL of the VOD or clip to download, e.g. https://www.twitch.tv/videos/12345',
    )
    parser.add_argument(
        "-q",
        "--quality",
        default=_env("TWITCH_QUALITY"),
        help="Quality to download. Omit to print the available qualities.",
    )
    parser.add_argument("-o", "--output", default=_env("TWITCH_OUTPUT"), help="Path where the video is written")
    parser.add_argument(
        "--start",
        type=_duration_arg,
        default=timedelta(0),
        help="Start of the part of the VOD to download, e.g. 1h23m45s",
    )
    parser.add_argument(
        "--end",
        type=_duration_arg,
        default=timedelta(0),
        help="End of the part of the VOD to download, e.g. 1h34m56s",
    )
    parser.add_argument(
        "--client-id",
        default=_env("TWITCH_CLIENT_ID", default=DEFAULT_CLIENT_ID),
        help="Twitch API client id",
    )
    parser.add_argument("--timeout", type=int, default=_env("TWITCH_TIMEOUT", int, 10), help="HTTP timeout in seconds")
    parser.add_argument(
        "--deadline",
        type=float,
        default=None,
        help="Abort the download after this many seconds",
    )
    parser.add_argument("--verbose", action="store_true", default=_env("TWITCH_VERBOSE", _flag, False), help="Enable debug logging")
    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.vod:
        parser.error("--vod is required")
    return args


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )


def resolve_video(value: str) -> tuple[str, bool]:
    """Returns ``(id, is_clip)`` for a VOD id/URL or a clip URL."""

    try:
        return parse_vod_id(value), False
    except InvalidVideoURL:
        return parse_clip_slug(value), True


def write_download(merger: SegmentMerger, output_path: str) -> bool:
    """Drains ``merger`` into a new file; removes the partial file on failure."""

    ensure_directory(os.path.dirname(os.path.abspath(output_path)) or ".")
    try:
        handle = open(output_path, "xb")
    except OSError as exc:
        logging.error("Cannot create file %s: %s", output_path, exc)
        return False

    logging.info("Downloading: %s", output_path)
    bar = ProgressBar(description=os.path.basename(output_path))
    try:
        with handle, merger, ProgressReader(merger, bar) as reader:
            shutil.copyfileobj(reader, handle, COPY_CHUNK_SIZE)
            bar(reader.snapshot())
    except (Exception, KeyboardInterrupt) as exc:
        bar.close()
        logging.error("Writing to file %s failed: %s", output_path, str(exc) or type(exc).__name__)
        if os.path.exists(output_path):
            os.remove(output_path)
        return False

    bar.close()
    logging.info("Done %s", output_path)
    return True


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose)

    try:
        video_id, is_clip = resolve_video(args.vod)
    except InvalidVideoURL as exc:
        logging.error("%s", exc)
        return 1
    kind = "Clip" if is_clip else "VOD"

    with HttpClient(timeout=args.timeout) as http_client:
        api = TwitchAPI(http_client, args.client_id)
        video_downloader = VideoDownloader(http_client, api)

        try:
            info = api.clip_info(video_id) if is_clip else api.vod_info(video_id)
        except Exception as exc:
            logging.error("Retrieving video information for %s %s failed: %s", kind, video_id, exc)
            return 1

        if not args.quality:
            try:
                if is_clip:
                    qualities = video_downloader.clip_qualities(video_id)
                else:
                    qualities = video_downloader.qualities(video_id)
            except Exception as exc:
                logging.error("Retrieving qualities for %s %s failed: %s", kind, video_id, exc)
                return 1
            print(info.title)
            print("\n".join(qualities))
            return 0

        cancel_event = threading.Event()
        timer = None
        if args.deadline:
            timer = threading.Timer(args.deadline, cancel_event.set)
            timer.daemon = True
            timer.start()

        try:
            try:
                if is_clip:
                    merger = video_downloader.download_clip(video_id, args.quality, cancel_event=cancel_event)
                else:
                    merger = video_downloader.download(
                        video_id,
                        args.quality,
                        start=args.start,
                        end=args.end,
                        cancel_event=cancel_event,
                    )
            except Exception as exc:
                logging.error("Retrieving stream for %s %s failed: %s", kind, video_id, exc)
                return 1

            output_path = build_output_path(args.output, info.title, args.quality)
            return 0 if write_download(merger, output_path) else 1
        finally:
            if timer is not None:
                timer.cancel()


if __name__ == "__main__":
    sys.exit(main())
