"""Progress reporting for merged downloads."""

from __future__ import annotations

import io
import time
from typing import Callable, Optional

from pydantic import BaseModel, ConfigDict
from tqdm import tqdm

from .merger import SegmentMerger

BYTE_UNITS = "KMGTPE"


class ProgressSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    bytes_per_second: float
    total_bytes: int
    percent: int


def format_bytes(size: float) -> str:
    """Renders a byte count with binary units, e.g. ``1.5 KB``."""

    unit = 1024
    if size < unit:
        return f"{int(size)} B"
    div, exp = unit, 0
    while size / div >= unit and exp < len(BYTE_UNITS) - 1:
        div *= unit
        exp += 1
    return f"{size / div:.1f} {BYTE_UNITS[exp]}B"


class ProgressReader(io.RawIOBase):
    """Wraps a :class:`SegmentMerger` and reports throughput on an interval.

    Reads are forwarded untouched. At most once per ``interval`` seconds a
    :class:`ProgressSnapshot` is handed to ``on_progress``. Percent comes
    from the merger's started chunk count, so it leads the bytes actually
    written by up to one segment.
    """

    def __init__(
        self,
        merger: SegmentMerger,
        on_progress: Callable[[ProgressSnapshot], None],
        interval: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__()
        self._merger = merger
        self._on_progress = on_progress
        self._interval = interval
        self._clock = clock
        self._window_start = clock()
        self._window_bytes = 0
        self.total_bytes = 0

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        size = self._merger.readinto(buffer)
        self._window_bytes += size
        self.total_bytes += size

        now = self._clock()
        elapsed = now - self._window_start
        if elapsed >= self._interval:
            self._on_progress(self.snapshot(elapsed))
            self._window_start = now
            self._window_bytes = 0
        return size

    def percent(self) -> int:
        total = self._merger.total_chunks()
        if total == 0:
            return 100
        return min(100, round(self._merger.chunks_started() * 100 / total))

    def snapshot(self, elapsed: Optional[float] = None) -> ProgressSnapshot:
        if elapsed is None:
            elapsed = self._clock() - self._window_start
        rate = self._window_bytes / elapsed if elapsed > 0 else 0.0
        return ProgressSnapshot(bytes_per_second=rate, total_bytes=self.total_bytes, percent=self.percent())


class ProgressBar:
    """Renders snapshots as a tqdm bar scaled to 100%."""

    def __init__(self, description: str = "Downloading") -> None:
        self._bar = tqdm(total=100, desc=description, unit="%", bar_format="{desc}: {percentage:3.0f}%|{bar}| {postfix}")

    def __call__(self, snapshot: ProgressSnapshot) -> None:
        self._bar.update(snapshot.percent - self._bar.n)
        self._bar.set_postfix_str(f"{format_bytes(snapshot.bytes_per_second)}/s {format_bytes(snapshot.total_bytes)}")

    def close(self) -> None:
        self._bar.close()
