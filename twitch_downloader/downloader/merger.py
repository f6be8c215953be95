"""Sequential reader that merges many byte sources into one stream.

Sources are opened lazily and strictly in order: the next provider is only
invoked once the current source has been read to its end and closed, so at
most one source is open at any time.
"""

from __future__ import annotations

import io
import threading
from enum import Enum
from typing import BinaryIO, Callable, List, Optional, Sequence

SourceProvider = Callable[[], BinaryIO]


class DownloadCancelled(Exception):
    """Raised by reads after the merger's cancel event was set."""


class ReaderState(Enum):
    IDLE = "idle"
    STREAMING = "streaming"
    FAILED = "failed"
    DONE = "done"


class SegmentMerger(io.RawIOBase):
    """Exposes an ordered list of source providers as one readable stream.

    A failure to open or read a source is sticky: the same exception is
    raised by every later read and no further provider is invoked.
    """

    def __init__(self, providers: Sequence[SourceProvider], cancel_event: Optional[threading.Event] = None) -> None:
        super().__init__()
        self._providers: List[SourceProvider] = list(providers)
        self._cancel_event = cancel_event
        self._index = 0
        self._current: Optional[BinaryIO] = None
        self._error: Optional[BaseException] = None
        self.state = ReaderState.IDLE

    def total_chunks(self) -> int:
        return len(self._providers)

    def chunks_started(self) -> int:
        """Number of providers invoked so far, not the number fully read."""

        return self._index

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        if self.closed:
            raise ValueError("I/O operation on closed merger")
        view = memoryview(buffer).cast("B")
        if not len(view):
            return 0
        while True:
            if self.state is ReaderState.FAILED:
                raise self._error
            if self.state is ReaderState.DONE:
                return 0
            if self._cancel_event is not None and self._cancel_event.is_set():
                self._fail(DownloadCancelled(f"download cancelled after {self._index} of {len(self._providers)} chunks"))
                raise self._error

            if self._current is None:
                if self._index >= len(self._providers):
                    self.state = ReaderState.DONE
                    return 0
                self._open_next()
                continue

            try:
                data = self._current.read(len(view))
            except Exception as exc:
                self._abort(exc)
                raise
            if not data:
                self._release_current()
                continue
            size = len(data)
            view[:size] = data
            return size

    def close(self) -> None:
        if self.closed:
            return
        try:
            source, self._current = self._current, None
            if source is not None:
                source.close()
        finally:
            if self.state is not ReaderState.FAILED:
                self.state = ReaderState.DONE
            super().close()

    def _open_next(self) -> None:
        provider = self._providers[self._index]
        self._index += 1
        try:
            self._current = provider()
        except Exception as exc:
            self._fail(exc)
            raise
        self.state = ReaderState.STREAMING

    def _release_current(self) -> None:
        source, self._current = self._current, None
        self.state = ReaderState.IDLE
        try:
            source.close()
        except Exception as exc:
            self._fail(exc)
            raise

    def _abort(self, exc: BaseException) -> None:
        source, self._current = self._current, None
        self._fail(exc)
        try:
            source.close()
        except Exception:  # pragma: no cover - the read error takes precedence
            pass

    def _fail(self, exc: BaseException) -> None:
        self._error = exc
        self.state = ReaderState.FAILED
