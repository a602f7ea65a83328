"""Cache stored in a directory tree, one directory per (vendor, title)."""

from __future__ import annotations

import logging
import os
import threading
from typing import TYPE_CHECKING, Dict, List, Optional

from constants import Constants
from launcher.gestalt import RuntimeEnvironment

from .base import Cache, CacheEntry, create_entry_key
from .errors import CacheError, CacheException
from .events import CacheEventType
from .file_entry import FileCacheEntry, read_entry_identity, unescape_dir_name

if TYPE_CHECKING:
    from launcher.descriptor import Descriptor

logger = logging.getLogger(__name__)


def default_cache_directory(env: Optional[RuntimeEnvironment] = None) -> str:
    """Configured cache directory, else the platform default."""
    if Constants.CACHE_DIR:
        return os.path.expanduser(Constants.CACHE_DIR)
    env = env or RuntimeEnvironment.current()
    home = os.path.expanduser("~")
    if env.is_macosx():
        return os.path.join(home, "Library", "Caches", "OpenJNLP")
    return os.path.join(home, ".jnlp", "cache")


def _usable_dir(path: str) -> bool:
    return os.path.isdir(path) and os.access(path, os.R_OK | os.W_OK | os.X_OK)


class FileCache(Cache):
    """A cache rooted at a directory; entries live under ``<directory>/app``.

    Raises:
        CacheError: if the directory cannot be created, read or written.
    """

    def __init__(self, directory: str):
        super().__init__()
        self._base = os.path.abspath(os.path.expanduser(directory))
        self._app_dir = os.path.join(self._base, Constants.APP_DIR_NAME)
        try:
            os.makedirs(self._app_dir, exist_ok=True)
        except OSError as exc:
            raise CacheError(f"Invalid cache at {self._base}: {exc}") from exc
        for path in (self._base, self._app_dir):
            if not _usable_dir(path):
                raise CacheError(f"Invalid cache at {path}")

        self._entries: Dict[str, FileCacheEntry] = {}
        self._lock = threading.Lock()
        self._load_entries()

    @classmethod
    def default(cls) -> "FileCache":
        """A new cache at the configured or platform default directory."""
        return cls(default_cache_directory())

    @property
    def directory(self) -> str:
        return self._base

    def _load_entries(self) -> None:
        for vendor_name in sorted(os.listdir(self._app_dir)):
            vendor_dir = os.path.join(self._app_dir, vendor_name)
            if not os.path.isdir(vendor_dir):
                continue
            for title_name in sorted(os.listdir(vendor_dir)):
                entry_dir = os.path.join(vendor_dir, title_name)
                if not os.path.isdir(entry_dir):
                    continue
                identity = read_entry_identity(entry_dir)
                if identity is None:
                    identity = (unescape_dir_name(vendor_name), unescape_dir_name(title_name))
                self._establish(*identity)
        logger.debug("Loaded %d cache entries from %s", len(self._entries), self._app_dir)

    def entries(self) -> List[CacheEntry]:
        with self._lock:
            return list(self._entries.values())

    def establish_entry(self, descriptor: "Descriptor") -> FileCacheEntry:
        """Return the entry for the descriptor's default vendor and title, creating it once.

        Raises:
            CacheException: if the descriptor has no information or no vendor/title.
        """
        info = descriptor.information
        if info is None or info.default_vendor is None or info.default_title is None:
            raise CacheException("unable to define descriptor in cache")
        entry = self._establish(info.default_vendor, info.default_title)
        entry.descriptor = descriptor
        return entry

    def _establish(self, vendor: str, title: str) -> FileCacheEntry:
        key = create_entry_key(vendor, title)
        entry = self._entries.get(key)
        if entry is not None:
            return entry
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                return entry
            entry = FileCacheEntry(self, self._app_dir, vendor, title)
            self._entries[key] = entry
        logger.debug("Established cache entry %s", key)
        self._fire(CacheEventType.ENTRY_ADDED, entry)
        return entry

    def remove_entry(self, entry: CacheEntry) -> bool:
        """Forget entry and delete its directory tree."""
        with self._lock:
            current = self._entries.get(entry.key)
            if current is None or current is not entry:
                return False
            del self._entries[entry.key]
        current.delete_tree()
        self._fire(CacheEventType.ENTRY_REMOVED, current)
        return True

    def __repr__(self) -> str:
        return f"FileCache[{self._base}]"
