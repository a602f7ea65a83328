"""Cached resource stored as a plain file inside an entry's resource directory."""

from __future__ import annotations

import logging
import os
import shutil
from typing import BinaryIO, List, Optional
from urllib.parse import unquote, urlsplit
import zipfile

from common.http_client import file_last_modified
from launcher.reference import NativelibReference, Reference

from .errors import CacheException
from .resource import CachedResource

logger = logging.getLogger(__name__)


def cache_name(url: str) -> str:
    """File name a URL is cached under: the final segment of its path."""
    path = unquote(urlsplit(url).path)
    name = path.rsplit("/", 1)[-1]
    return name or "index"


def _remove(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as exc:
        logger.warning("Unable to delete %s: %s", path, exc)


def _top_level_members(archive: zipfile.ZipFile) -> List[zipfile.ZipInfo]:
    """Archive members that are plain files at the archive root."""
    return [info for info in archive.infolist() if not info.is_dir() and "/" not in info.filename]


class FileCachedResource(CachedResource):
    """A resource kept in ``<resource_dir>/<final URL segment>``.

    Native library jars are additionally unpacked (top-level files only)
    into the library directory after every successful update.
    """

    def __init__(
        self,
        ref: Reference,
        resource_dir: str,
        library_dir: Optional[str] = None,
        last_modified: Optional[int] = None,
    ):
        super().__init__(ref)
        self._resource_dir = resource_dir
        self._library_dir = library_dir
        if library_dir is not None:
            os.makedirs(library_dir, exist_ok=True)
        os.makedirs(resource_dir, exist_ok=True)
        self._cache_file = os.path.join(resource_dir, self.resource_cache_name())

        if os.path.isfile(self._cache_file):
            self._actual_length = os.path.getsize(self._cache_file)
            if last_modified is None:
                self._last_modified = file_last_modified(self._cache_file)
            else:
                self._last_modified = last_modified
                self._touch()

    @property
    def cache_file(self) -> str:
        return self._cache_file

    @property
    def resource_dir(self) -> str:
        return self._resource_dir

    @property
    def library_dir(self) -> Optional[str]:
        return self._library_dir

    def is_nativelib(self) -> bool:
        return isinstance(self._reference, NativelibReference)

    def resource_cache_name(self) -> str:
        return cache_name(self._reference.url)

    def open_cache_input_stream(self) -> BinaryIO:
        try:
            return open(self._cache_file, "rb")  # pylint: disable=consider-using-with
        except OSError as exc:
            raise CacheException(f"Error creating input stream from cache: {exc}") from exc

    def _open_cache_output_stream(self) -> BinaryIO:
        return open(self._cache_file, "wb")  # pylint: disable=consider-using-with

    def _touch(self) -> None:
        """Stamp the cached file with the recorded modification time."""
        if self._last_modified <= 0:
            return
        ns = self._last_modified * 1_000_000
        try:
            os.utime(self._cache_file, ns=(ns, ns))
        except OSError as exc:
            logger.debug("Unable to set modification time of %s: %s", self._cache_file, exc)

    def _committed(self) -> None:
        self._touch()
        if self.is_nativelib() and self._library_dir is not None:
            self._extract_libraries()

    def library_files(self) -> List[str]:
        """Paths the native library jar unpacks into."""
        if not self.is_nativelib() or self._library_dir is None:
            return []
        try:
            with zipfile.ZipFile(self._cache_file) as archive:
                return [os.path.join(self._library_dir, info.filename) for info in _top_level_members(archive)]
        except (OSError, zipfile.BadZipFile):
            return []

    def _extract_libraries(self) -> None:
        try:
            with zipfile.ZipFile(self._cache_file) as archive:
                for info in _top_level_members(archive):
                    target = os.path.join(self._library_dir, info.filename)
                    with archive.open(info) as src, open(target, "wb") as dst:
                        shutil.copyfileobj(src, dst)
                    logger.debug("Extracted native library %s", target)
        except (OSError, zipfile.BadZipFile) as exc:
            logger.warning("Unable to extract native libraries from %s: %s", self._cache_file, exc)

    def purge(self) -> None:
        super().purge()
        for path in self.library_files():
            _remove(path)
        _remove(self._cache_file)
