"""Utility helpers for HTTP and filesystem operations."""

from .file_utils import build_output_path, ensure_directory, sanitize_filename
from .http_client import AuthenticationError, FetchError, HttpClient

__all__ = [
    "HttpClient",
    "FetchError",
    "AuthenticationError",
    "ensure_directory",
    "sanitize_filename",
    "build_output_path",
]
