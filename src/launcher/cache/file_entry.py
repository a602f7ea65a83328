"""File-backed cache entry.

Layout under ``<app>/<vendor>/<title>/``::

    entry.xml     metadata and tracked resources
    Resources/    cached resource files, one per URL
    Libraries/    files unpacked from native library jars

The record is rewritten in full after every change, and re-read whenever
its modification time moves past the last read or write made here.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
import threading
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple
from urllib.parse import quote, unquote
import xml.etree.ElementTree as ET
import zipfile

from constants import Constants
from launcher.reference import NativelibReference, Reference

from .base import CacheEntry
from .events import ResourceEventType
from .file_resource import FileCachedResource, cache_name
from .resource import CachedResource

if TYPE_CHECKING:
    from .file_cache import FileCache

logger = logging.getLogger(__name__)

MANIFEST_PATH = "META-INF/MANIFEST.MF"

_TAG_ENTRY = "entry"
_TAG_META = "meta"
_TAG_RESOURCE = "resource"
_TAG_NATIVELIB = "nativelib"


def escape_dir_name(name: str) -> str:
    """Make name safe to use as a single directory name."""
    escaped = quote(name, safe=" ")
    if escaped in ("", ".", ".."):
        escaped = escaped.replace(".", "%2E") or "%00"
    return escaped


def unescape_dir_name(name: str) -> str:
    return "" if name == "%00" else unquote(name)


def read_entry_identity(entry_dir: str) -> Optional[Tuple[str, str]]:
    """(vendor, title) recorded in an entry directory's record, if readable."""
    path = os.path.join(entry_dir, Constants.ENTRY_RECORD_NAME)
    try:
        root = ET.parse(path).getroot()
    except (OSError, ET.ParseError):
        return None
    vendor = root.get("vendor")
    title = root.get("title")
    if root.tag != _TAG_ENTRY or vendor is None or title is None:
        return None
    return vendor, title


def parse_manifest(text: str) -> Dict[str, str]:
    """Main attributes of a jar manifest; continuation lines start with a space."""
    attrs: Dict[str, str] = {}
    last_key: Optional[str] = None
    for line in text.splitlines():
        if not line.strip():
            break
        if line.startswith(" ") and last_key is not None:
            attrs[last_key] += line[1:]
            continue
        key, sep, value = line.partition(":")
        if not sep:
            continue
        last_key = key.strip()
        attrs[last_key] = value.strip()
    return attrs


class FileCacheEntry(CacheEntry):
    """A cache entry persisted as a directory tree."""

    def __init__(self, cache: "FileCache", entry_base: str, vendor: str, title: str):
        super().__init__(vendor, title)
        self._cache = cache
        self._entry_dir = os.path.join(entry_base, escape_dir_name(vendor), escape_dir_name(title))
        self._resource_dir = os.path.join(self._entry_dir, Constants.RESOURCE_DIR_NAME)
        self._library_dir = os.path.join(self._entry_dir, Constants.LIBRARY_DIR_NAME)
        self._record_path = os.path.join(self._entry_dir, Constants.ENTRY_RECORD_NAME)
        self._record_mtime_ns = 0
        self._meta: Dict[str, str] = {}
        self._resources: Dict[str, FileCachedResource] = {}
        self._lock = threading.RLock()

        os.makedirs(self._resource_dir, exist_ok=True)
        with self._lock:
            if os.path.isfile(self._record_path):
                self._read_record()
            else:
                self._write_record()

    @property
    def cache(self) -> "FileCache":
        return self._cache

    @property
    def entry_dir(self) -> str:
        return self._entry_dir

    @property
    def resource_dir(self) -> str:
        return self._resource_dir

    @property
    def library_dir(self) -> str:
        return self._library_dir

    @property
    def record_path(self) -> str:
        return self._record_path

    # persistence

    def _check_record(self) -> None:
        try:
            mtime_ns = os.stat(self._record_path).st_mtime_ns
        except OSError:
            return
        if mtime_ns > self._record_mtime_ns:
            self._read_record()

    def _new_resource(self, ref: Reference, last_modified: Optional[int] = None) -> FileCachedResource:
        return FileCachedResource(ref, self._resource_dir, self._library_dir, last_modified)

    def _read_record(self) -> None:
        try:
            root = ET.parse(self._record_path).getroot()
            mtime_ns = os.stat(self._record_path).st_mtime_ns
        except (OSError, ET.ParseError) as exc:
            logger.warning("Unable to read cache record %s: %s", self._record_path, exc)
            return
        if root.tag != _TAG_ENTRY:
            logger.warning("Unexpected root <%s> in cache record %s", root.tag, self._record_path)
            return

        meta: Dict[str, str] = {}
        resources: Dict[str, FileCachedResource] = {}
        for child in root:
            if child.tag == _TAG_META:
                name = child.get("name")
                if name is not None:
                    meta[name] = child.text or ""
            elif child.tag in (_TAG_RESOURCE, _TAG_NATIVELIB):
                href = child.get("href")
                try:
                    modtime = int(child.get("modtime", "0"))
                except ValueError:
                    logger.warning("Bad modtime for %s in %s", href, self._record_path)
                    continue
                if not href:
                    continue
                native = child.tag == _TAG_NATIVELIB
                current = self._resources.get(href)
                if current is not None and current.is_nativelib() == native:
                    resources[href] = current
                    continue
                ref = NativelibReference(href) if native else Reference(href)
                resources[href] = self._new_resource(ref, modtime)
            else:
                logger.debug("Ignoring <%s> in cache record %s", child.tag, self._record_path)

        self._meta = meta
        self._resources = resources
        self._record_mtime_ns = mtime_ns
        logger.debug("Read cache record %s (%d resources)", self._record_path, len(resources))

    def _write_record(self) -> None:
        root = ET.Element(_TAG_ENTRY, {"vendor": self.vendor, "title": self.title})
        for key, value in self._meta.items():
            ET.SubElement(root, _TAG_META, {"name": key}).text = value
        for href, resource in self._resources.items():
            tag = _TAG_NATIVELIB if resource.is_nativelib() else _TAG_RESOURCE
            ET.SubElement(root, tag, {"href": href, "modtime": str(resource.last_modified)})
        ET.indent(root)

        fd, tmp_path = tempfile.mkstemp(prefix=".entry-", suffix=".tmp", dir=self._entry_dir)
        try:
            with os.fdopen(fd, "wb") as fh:
                ET.ElementTree(root).write(fh, encoding="utf-8", xml_declaration=True)
            os.replace(tmp_path, self._record_path)
            self._record_mtime_ns = os.stat(self._record_path).st_mtime_ns
        except OSError as exc:
            logger.error("Unable to write cache record %s: %s", self._record_path, exc)
            try:
                os.remove(tmp_path)
            except OSError:
                pass

    # metadata

    def get_meta_info(self, key: str) -> Optional[str]:
        with self._lock:
            self._check_record()
            return self._meta.get(key)

    def set_meta_info(self, key: str, value: Optional[str]) -> Optional[str]:
        with self._lock:
            self._check_record()
            if value is None:
                previous = self._meta.pop(key, None)
            else:
                previous = self._meta.get(key)
                self._meta[key] = value
            self._write_record()
            return previous

    def is_launchable(self) -> bool:
        with self._lock:
            self._check_record()
            return Constants.METAKEY_DESCRIPTOR in self._meta

    # resources

    def is_resource_cached(self, ref: Reference) -> bool:
        with self._lock:
            self._check_record()
            return ref.url in self._resources

    def add_resource_ex(self, ref: Optional[Reference], force_check: bool = False) -> Tuple[bool, bool]:
        if ref is None or not ref.url:
            return False, False

        added = False
        with self._lock:
            self._check_record()
            resource = self._resources.get(ref.url)
            if resource is None:
                resource = self._new_resource(ref)
                self._resources[ref.url] = resource
                added = True
                self._write_record()
        if added:
            self._fire(ResourceEventType.ADDED, resource)

        updated = False
        if force_check or not resource.reference.is_lazy():
            updated = self._update_resource(resource)

        if added and not updated:
            self._cache.fire_entry_updated(self)
        return added, updated

    def _update_resource(self, resource: FileCachedResource) -> bool:
        """Run the resource update, then persist and notify if bytes changed."""
        self._fire(ResourceEventType.UPDATING, resource)
        updated = resource.update()
        if updated:
            with self._lock:
                self._write_record()
            self._fire(ResourceEventType.UPDATED, resource)
            self._cache.fire_entry_updated(self)
        return updated

    def remove_resource(self, ref: Reference) -> bool:
        with self._lock:
            self._check_record()
            resource = self._resources.pop(ref.url, None)
            if resource is None:
                return False
            resource.purge()
            self._write_record()
        self._fire(ResourceEventType.REMOVED, resource)
        self._cache.fire_entry_updated(self)
        return True

    def cached_resources(self) -> List[CachedResource]:
        with self._lock:
            self._check_record()
            return list(self._resources.values())

    def get_resource(self, ref: Reference, update: bool = False) -> Optional[CachedResource]:
        with self._lock:
            self._check_record()
            resource = self._resources.get(ref.url)
        if resource is not None and update:
            self._update_resource(resource)
        return resource

    def get_jar_manifest(self, ref: Reference) -> Optional[Dict[str, str]]:
        """Main attributes of the cached jar's manifest, or None."""
        path = os.path.join(self._resource_dir, cache_name(ref.url))
        try:
            with zipfile.ZipFile(path) as archive:
                raw = archive.read(MANIFEST_PATH)
        except (OSError, KeyError, zipfile.BadZipFile):
            return None
        return parse_manifest(raw.decode("utf-8", errors="replace"))

    def resource_paths(self, eager_only: bool = True) -> List[str]:
        """Local paths of cached jars, main jar first, for building a classpath."""
        main_url = None
        eager_urls = None
        desc = self.descriptor
        if desc is not None and desc.resources is not None:
            if desc.resources.main_jar is not None:
                main_url = desc.resources.main_jar.url
            eager_urls = {r.url for r in desc.resources.eager_jars()}

        paths: List[str] = []
        for resource in self.cached_resources():
            if resource.is_nativelib() or not os.path.isfile(resource.cache_file):
                continue
            url = resource.reference.url
            if eager_only and (url not in eager_urls if eager_urls is not None else resource.reference.is_lazy()):
                continue
            if url == main_url:
                paths.insert(0, resource.cache_file)
            else:
                paths.append(resource.cache_file)
        return paths

    def delete_tree(self) -> None:
        """Delete everything stored for this entry."""
        with self._lock:
            self._resources = {}
            self._meta = {}
            shutil.rmtree(self._entry_dir, ignore_errors=True)
            vendor_dir = os.path.dirname(self._entry_dir)
            try:
                os.rmdir(vendor_dir)
            except OSError:
                pass

    def __repr__(self) -> str:
        return f"FileCacheEntry[{self.vendor},{self.title},{self.descriptor!r}]"
