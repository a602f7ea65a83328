"""Local, updatable copy of one referenced artifact."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import threading
import time
from typing import BinaryIO

import requests

from common.http_client import open_remote, probe_last_modified
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer
from constants import Constants
from launcher.reference import Reference

from .errors import CacheException

logger = logging.getLogger(__name__)


@dataclass
class TransferStatistics:
    """Progress of the current (or last) transfer, readable from any thread."""

    content_length: int = 0
    transfer_amount: int = 0
    transfer_rate: int = 0
    updating: bool = False

    def reset(self) -> None:
        self.content_length = 0
        self.transfer_amount = 0
        self.transfer_rate = 0


class CachedResource:
    """Base class for cached resources.

    ``update()`` copies the remote bytes into the backing store when the
    remote copy is newer. Only one update runs per resource at a time; an
    abort request is honoured between chunks and leaves the resource purged.
    Subclasses provide the backing store.
    """

    def __init__(self, ref: Reference):
        self._reference = ref
        self._last_modified = 0
        self._actual_length = 0
        self._stats = TransferStatistics()
        self._abort = threading.Event()
        self._update_lock = threading.Lock()

    @property
    def reference(self) -> Reference:
        return self._reference

    @property
    def last_modified(self) -> int:
        """Modification time of the cached copy in epoch milliseconds, 0 if none."""
        return self._last_modified

    def length(self) -> int:
        return self._actual_length

    def expected_length(self) -> int:
        return self._stats.content_length

    def transfer_amount(self) -> int:
        return self._stats.transfer_amount

    def transfer_rate(self) -> int:
        """Bytes per second over the current transfer."""
        return self._stats.transfer_rate

    def is_updating(self) -> bool:
        return self._stats.updating

    def abort_update(self) -> None:
        """Ask an in-flight update to stop before its next chunk."""
        self._abort.set()

    def get_bytes(self) -> bytes:
        """Return the cached bytes.

        Raises:
            CacheException: if the cached copy cannot be read.
        """
        try:
            with self.open_cache_input_stream() as fh:
                return fh.read()
        except OSError as exc:
            raise CacheException(f"Error getting bytes from cache: {exc}") from exc

    def _remote_last_modified(self) -> int:
        return probe_last_modified(self._reference.url)

    def update(self) -> bool:
        """Refresh the cached copy from its source.

        Returns:
            True when new bytes were committed; False when the copy was
            already current, the source time is unknown, or the transfer
            failed or was aborted (the resource is then purged).
        """
        url = self._reference.url
        with self._update_lock:
            try:
                remote = self._remote_last_modified()
            except (requests.RequestException, OSError) as exc:
                logger.warning("Unable to check %s: %s", safe_url(url), exc)
                return False

            if remote == 0 or remote <= self._last_modified:
                if is_debug_enabled(logger):
                    logger.debug(
                        "Resource current",
                        extra=extra_context(
                            event="resource_probe",
                            component="cache",
                            outcome="unchanged",
                            target=safe_url(url),
                            remote_modified=remote,
                            cached_modified=self._last_modified,
                        ),
                    )
                return False

            aborted = self._transfer(url)
            if aborted:
                self.purge()
                return False

            self._last_modified = remote
            self._actual_length = self._stats.transfer_amount
            self._committed()
            return True

    def _transfer(self, url: str) -> bool:
        """Copy the remote bytes into the backing store; return True if aborted or failed."""
        stats = self._stats
        stats.reset()
        self._abort.clear()
        aborted = False
        with Timer() as t:
            try:
                with open_remote(url, context="resource") as stream, self._open_cache_output_stream() as out:
                    stats.content_length = stream.content_length
                    stats.updating = True
                    start = time.monotonic()
                    while True:
                        if self._abort.is_set():
                            aborted = True
                            break
                        chunk = stream.read(Constants.CHUNK_SIZE)
                        if not chunk:
                            break
                        out.write(chunk)
                        secs = max(1, int(time.monotonic() - start))
                        stats.transfer_amount += len(chunk)
                        stats.transfer_rate = stats.transfer_amount // secs
            except (requests.RequestException, OSError) as exc:
                logger.warning("Transfer of %s failed: %s", safe_url(url), exc)
                aborted = True
            finally:
                stats.updating = False

        if is_debug_enabled(logger):
            logger.debug(
                "Resource transfer",
                extra=extra_context(
                    event="resource_transfer",
                    component="cache",
                    outcome="aborted" if aborted else "success",
                    target=safe_url(url),
                    bytes=stats.transfer_amount,
                    duration_ms=t.duration_ms(),
                ),
            )
        return aborted

    def _committed(self) -> None:
        """Hook run inside the update lock after new bytes are committed."""

    def resource_cache_name(self) -> str:
        raise NotImplementedError

    def open_cache_input_stream(self) -> BinaryIO:
        raise NotImplementedError

    def _open_cache_output_stream(self) -> BinaryIO:
        raise NotImplementedError

    def purge(self) -> None:
        """Reset statistics and forget the cached copy."""
        self._stats.reset()
        self._last_modified = 0
        self._actual_length = 0

    def __eq__(self, other: object) -> bool:
        if isinstance(other, CachedResource):
            return self._reference == other._reference
        if isinstance(other, Reference):
            return self._reference == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._reference)

    def __repr__(self) -> str:
        return f"{type(self).__name__}[{self._reference.url},modified={self._last_modified},length={self._actual_length}]"
