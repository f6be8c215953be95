"""Shared HTTP helpers for the Twitch GQL API and CDN resources."""

from __future__ import annotations

import functools
import io
import logging
from typing import Any, BinaryIO, Callable, Dict, Optional

import requests
from urllib3.exceptions import HTTPError as Urllib3HTTPError

GQL_URL = "https://gql.twitch.tv/gql"

USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)

API_HEADERS: Dict[str, str] = {
    "accept": "*/*",
    "user-agent": USER_AGENT,
}

CDN_HEADERS: Dict[str, str] = {
    "user-agent": USER_AGENT,
    "accept": "*/*",
}


class AuthenticationError(Exception):
    """Raised when the Twitch API rejects the client id."""


class FetchError(Exception):
    """Raised when a resource cannot be fetched: non-2xx status or transport failure."""

    def __init__(self, url: str, status_code: Optional[int] = None, cause: Optional[BaseException] = None) -> None:
        if status_code is not None:
            message = f"{status_code}: {url}"
        else:
            message = f"{url}: {cause}"
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.cause = cause


class ResponseStream(io.RawIOBase):
    """Readable body of a streaming response; transport errors become :class:`FetchError`."""

    def __init__(self, url: str, response: requests.Response) -> None:
        super().__init__()
        self.url = url
        self._response = response
        self._response.raw.decode_content = True
        self._pending = b""

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        view = memoryview(buffer).cast("B")
        if not len(view):
            return 0
        if self._pending:
            data, self._pending = self._pending, b""
        else:
            try:
                data = self._response.raw.read(len(view))
            except (Urllib3HTTPError, requests.RequestException, OSError) as exc:
                raise FetchError(self.url, cause=exc) from exc
        # decoded reads may return more than requested
        data, self._pending = data[: len(view)], data[len(view) :]
        size = len(data)
        view[:size] = data
        return size

    def close(self) -> None:
        if not self.closed:
            self._response.close()
        super().close()


class HttpClient:
    """Handles API and CDN requests with proper headers and a shared timeout."""

    def __init__(self, timeout: int = 10) -> None:
        self.timeout = timeout
        self._api_session = requests.Session()
        self._api_session.headers.update(API_HEADERS)
        self._cdn_session = requests.Session()
        self._cdn_session.headers.update(CDN_HEADERS)

    def post_gql(self, payload: Any, client_id: str) -> Any:
        """POST a GQL payload with the ``Client-Id`` header and return the decoded JSON."""

        try:
            response = self._api_session.post(
                GQL_URL,
                json=payload,
                headers={"Client-Id": client_id},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:  # pragma: no cover - network errors
            logging.error("HTTP POST to %s failed: %s", GQL_URL, exc)
            raise FetchError(GQL_URL, cause=exc) from exc

        if response.status_code in {401, 403}:
            logging.error("Authentication failed (status %s).", response.status_code)
            raise AuthenticationError(f"Twitch API rejected client id (status {response.status_code})")
        if not 200 <= response.status_code < 300:
            logging.error("GQL request failed with status %s", response.status_code)
            raise FetchError(GQL_URL, status_code=response.status_code)

        try:
            return response.json()
        except ValueError as exc:
            logging.error("GQL response is not valid JSON: %s", exc)
            raise FetchError(GQL_URL, cause=exc) from exc

    def fetch_bytes(self, url: str) -> bytes:
        """Fetch a CDN resource fully into memory (e.g., an m3u8 playlist)."""

        try:
            response = self._cdn_session.get(url, timeout=self.timeout)
        except requests.RequestException as exc:  # pragma: no cover - network errors
            logging.error("CDN download of %s failed: %s", url, exc)
            raise FetchError(url, cause=exc) from exc
        if not 200 <= response.status_code < 300:
            logging.error("CDN download of %s returned status %s", url, response.status_code)
            raise FetchError(url, status_code=response.status_code)
        return response.content

    def fetch_text(self, url: str) -> str:
        return self.fetch_bytes(url).decode("utf-8-sig")

    def open_stream(self, url: str) -> BinaryIO:
        """Open a streaming GET; the caller owns and must close the returned stream."""

        try:
            response = self._cdn_session.get(url, stream=True, timeout=self.timeout)
        except requests.RequestException as exc:
            logging.debug("Opening %s failed: %s", url, exc)
            raise FetchError(url, cause=exc) from exc
        if not 200 <= response.status_code < 300:
            response.close()
            raise FetchError(url, status_code=response.status_code)
        return ResponseStream(url, response)

    def provider(self, url: str) -> Callable[[], BinaryIO]:
        """Defers :meth:`open_stream` until the returned callable is invoked."""

        return functools.partial(self.open_stream, url)

    def close(self) -> None:
        self._api_session.close()
        self._cdn_session.close()

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()
