"""Shared HTTP helpers used by the descriptor parser and the resource cache.

Encapsulates request/timeout error handling and gives ``file:`` and
``http(s):`` URLs a common streaming interface so callers never branch on the
scheme themselves.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
import sys
from email.utils import parsedate_to_datetime
from typing import Any, BinaryIO, Optional
from urllib.parse import urlsplit
from urllib.request import url2pathname

import requests

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer

logger = logging.getLogger(__name__)

# Exit code used when a fatal request fails in a CLI context.
CONNECTION_ERROR_EXIT = 2


def _default_headers(headers: Optional[dict]) -> dict:
    merged = {"User-Agent": Constants.USER_AGENT}
    if headers:
        merged.update(headers)
    return merged


def _request(method: str, url: str, *, context: str, fatal: bool, **kwargs: Any) -> requests.Response:
    """Perform a request with consistent error handling and DEBUG traces."""
    safe_target = safe_url(url)
    kwargs["headers"] = _default_headers(kwargs.get("headers"))
    with Timer() as t:
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP request",
                extra=extra_context(
                    event="http_request",
                    component="http_client",
                    action=method,
                    target=safe_target,
                    context=context,
                ),
            )
        try:
            res = requests.request(method, url, timeout=Constants.REQUEST_TIMEOUT, **kwargs)
        except requests.Timeout:
            if not fatal:
                raise
            logger.error(
                "%s request timed out after %s seconds",
                context,
                Constants.REQUEST_TIMEOUT,
            )
            sys.exit(CONNECTION_ERROR_EXIT)
        except requests.RequestException as exc:  # includes ConnectionError
            if not fatal:
                raise
            logger.error("%s connection error: %s", context, exc)
            sys.exit(CONNECTION_ERROR_EXIT)

        if is_debug_enabled(logger):
            logger.debug(
                "HTTP response",
                extra=extra_context(
                    event="http_response",
                    component="http_client",
                    action=method,
                    outcome="success" if res.ok else "handled_non_2xx",
                    status_code=res.status_code,
                    duration_ms=t.duration_ms(),
                    target=safe_target,
                    context=context,
                ),
            )
        return res


def safe_get(url: str, *, context: str, fatal: bool = True, **kwargs: Any) -> requests.Response:
    """Perform a GET request.

    Args:
        url: Target URL.
        context: Human-readable source tag for logs (e.g., "descriptor").
        fatal: When True, connection failures are logged and the process exits;
            when False the requests exception propagates to the caller.
        **kwargs: Passed through to requests.request.

    Returns:
        requests.Response: The HTTP response object.
    """
    return _request("GET", url, context=context, fatal=fatal, **kwargs)


def safe_head(url: str, *, context: str, fatal: bool = True, **kwargs: Any) -> requests.Response:
    """Perform a HEAD request following redirects; see safe_get for arguments."""
    kwargs.setdefault("allow_redirects", True)
    return _request("HEAD", url, context=context, fatal=fatal, **kwargs)


def is_file_url(url: str) -> bool:
    """Return True for ``file:`` URLs."""
    return urlsplit(url).scheme.lower() == "file"


def file_url_to_path(url: str) -> str:
    """Convert a ``file:`` URL into a local filesystem path."""
    parts = urlsplit(url)
    return url2pathname(parts.path)


def path_to_file_url(path: str) -> str:
    """Convert a local path into an absolute ``file:`` URL."""
    return Path(os.path.abspath(path)).as_uri()


def parse_http_date(value: Optional[str]) -> int:
    """Parse an HTTP date header into epoch milliseconds; 0 when absent or malformed."""
    if not value:
        return 0
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return 0
    if parsed is None:
        return 0
    return int(parsed.timestamp() * 1000)


def file_last_modified(path: str) -> int:
    """Filesystem modification time in epoch milliseconds; 0 if the file is missing."""
    try:
        return int(os.stat(path).st_mtime_ns // 1_000_000)
    except OSError:
        return 0


def probe_last_modified(url: str) -> int:
    """Return the remote modification time of url in epoch milliseconds.

    ``file:`` URLs are stat'ed directly. Everything else gets a HEAD request and
    its Last-Modified header is parsed. Zero means the time is unknown.

    Raises:
        requests.RequestException: if the HEAD request fails.
    """
    if is_file_url(url):
        return file_last_modified(file_url_to_path(url))
    res = safe_head(url, context="probe", fatal=False)
    try:
        if not res.ok:
            return 0
        return parse_http_date(res.headers.get("Last-Modified"))
    finally:
        res.close()


class RemoteStream:
    """A readable byte stream over a remote resource plus its response metadata."""

    def __init__(
        self,
        raw: BinaryIO,
        *,
        content_length: int = -1,
        last_modified: int = 0,
        content_type: Optional[str] = None,
        response: Optional[requests.Response] = None,
    ) -> None:
        self._raw = raw
        self._response = response
        self.content_length = content_length
        self.last_modified = last_modified
        self.content_type = content_type

    def read(self, size: int = -1) -> bytes:
        if self._response is not None:
            return self._raw.read(size, decode_content=True)  # type: ignore[call-arg]
        return self._raw.read(size)

    def close(self) -> None:
        if self._response is not None:
            self._response.close()
        else:
            self._raw.close()

    def __enter__(self) -> "RemoteStream":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def _content_length(value: Optional[str]) -> int:
    try:
        return int(value) if value is not None else -1
    except ValueError:
        return -1


def open_remote(url: str, *, context: str = "fetch") -> RemoteStream:
    """Open a full read of url.

    Raises:
        OSError: for unreadable ``file:`` URLs.
        requests.RequestException: for failed or non-2xx HTTP requests.
    """
    if is_file_url(url):
        path = file_url_to_path(url)
        fh = open(path, "rb")  # pylint: disable=consider-using-with
        return RemoteStream(
            fh,
            content_length=os.fstat(fh.fileno()).st_size,
            last_modified=file_last_modified(path),
        )

    res = safe_get(url, context=context, fatal=False, stream=True)
    if not res.ok:
        res.close()
        raise requests.HTTPError(f"{res.status_code} {res.reason} for {safe_url(url)}", response=res)
    return RemoteStream(
        res.raw,
        content_length=_content_length(res.headers.get("Content-Length")),
        last_modified=parse_http_date(res.headers.get("Last-Modified")),
        content_type=res.headers.get("Content-Type"),
        response=res,
    )
