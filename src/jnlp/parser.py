"""Descriptor parser front-ends and cache integration.

``URLJNLPParser`` reads a manifest straight from its URL, ``CachedJNLPParser``
reads the copy kept in a cache entry. ``parse_descriptor`` ties the two
together: the first sighting of a manifest is parsed from the network and
registered in the cache, later parses go through the cached copy.
"""

from __future__ import annotations

import logging
import threading
from typing import BinaryIO, Optional

import requests

from common.http_client import is_file_url, open_remote
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer
from constants import Constants
from launcher.cache.base import Cache, CacheEntry
from launcher.cache.errors import CacheException
from launcher.descriptor import Descriptor
from launcher.gestalt import RuntimeEnvironment

from .errors import DescriptorParseError
from .handler import JNLPContentHandler
from .specification import JNLPSpecification

logger = logging.getLogger(__name__)

# Serializes first-time parsing of an entry's cached descriptor
_entry_parse_lock = threading.Lock()


def media_from_content_type(content_type: Optional[str]) -> str:
    """Media type part of a Content-Type header ("" when absent)."""
    if content_type is None:
        return ""
    return content_type.split(";", 1)[0].strip()


class JNLPParser:
    """Base class for parsers; subclasses say where the manifest bytes come from.

    ``parse()`` runs at most once successfully; after a failure no
    descriptor is exposed and it may be called again.
    """

    def __init__(self, cache: Cache, env: Optional[RuntimeEnvironment] = None):
        self._cache = cache
        self._env = env
        self._descriptor: Optional[Descriptor] = None
        self._lock = threading.Lock()

    @property
    def cache(self) -> Cache:
        return self._cache

    @property
    def descriptor(self) -> Optional[Descriptor]:
        return self._descriptor

    def is_parsed(self) -> bool:
        return self._descriptor is not None

    @property
    def source_url(self) -> Optional[str]:
        raise NotImplementedError

    def _open_stream(self) -> BinaryIO:
        raise NotImplementedError

    def _parsed(self, descriptor: Descriptor) -> None:
        """Hook run once a descriptor has been built."""

    def parse(self) -> Descriptor:
        """Parse the manifest, returning the descriptor.

        Raises:
            DescriptorParseError: if the manifest cannot be read or is invalid.
        """
        with self._lock:
            if self._descriptor is not None:
                return self._descriptor

            url = self.source_url
            handler = JNLPContentHandler(self._cache, url, self._env)
            with Timer() as t:
                try:
                    with self._open_stream() as stream:
                        while True:
                            chunk = stream.read(Constants.CHUNK_SIZE)
                            if not chunk:
                                break
                            handler.feed(chunk)
                    descriptor = handler.close()
                except DescriptorParseError as exc:
                    logger.error("Unable to parse descriptor %s: %s", safe_url(url), exc)
                    raise
                except (requests.RequestException, OSError, CacheException) as exc:
                    logger.error("Unable to read descriptor %s: %s", safe_url(url), exc)
                    raise DescriptorParseError(f"unable to read descriptor: {exc}") from exc

            if is_debug_enabled(logger):
                logger.debug(
                    "Descriptor parsed",
                    extra=extra_context(
                        event="descriptor_parse",
                        component="parser",
                        outcome="success",
                        target=safe_url(url),
                        duration_ms=t.duration_ms(),
                    ),
                )
            self._descriptor = descriptor
            self._parsed(descriptor)
            return descriptor


class URLJNLPParser(JNLPParser):
    """Parses the manifest at a URL.

    With ``strict`` set, HTTP responses must carry the JNLP media type.
    """

    def __init__(
        self,
        cache: Cache,
        url: str,
        strict: Optional[bool] = None,
        env: Optional[RuntimeEnvironment] = None,
    ):
        super().__init__(cache, env)
        self._url = url
        self._strict = Constants.STRICT_MIME if strict is None else strict

    @property
    def source_url(self) -> str:
        return self._url

    def _open_stream(self) -> BinaryIO:
        stream = open_remote(self._url, context="descriptor")
        if self._strict and not is_file_url(self._url):
            media = media_from_content_type(stream.content_type)
            if media != Constants.JNLP_MIME_TYPE:
                stream.close()
                raise DescriptorParseError(f"Bad MIME type: {stream.content_type}")
        return stream


class CachedJNLPParser(JNLPParser):
    """Parses the manifest copy held by a cache entry, fetching it first if needed."""

    def __init__(self, entry: CacheEntry, env: Optional[RuntimeEnvironment] = None):
        super().__init__(entry.cache, env)
        self._entry = entry

    @property
    def source_url(self) -> Optional[str]:
        return self._entry.get_meta_info(Constants.METAKEY_DESCRIPTOR)

    def _open_stream(self) -> BinaryIO:
        url = self.source_url
        if url is None:
            raise DescriptorParseError(f"no descriptor defined for {self._entry.title}")
        ref = self._entry.reference_from_url(url)
        if not self._entry.is_resource_cached(ref) and not self._entry.add_resource(ref):
            raise DescriptorParseError(f"failed to add descriptor to cache for {self._entry.title}")
        resource = self._entry.get_resource(ref, update=True)
        if resource is None:
            raise DescriptorParseError("descriptor not in cache")
        return resource.open_cache_input_stream()

    def _parsed(self, descriptor: Descriptor) -> None:
        self._entry.descriptor = descriptor


def get_entry_descriptor(entry: Optional[CacheEntry], env: Optional[RuntimeEnvironment] = None) -> Descriptor:
    """The entry's descriptor, parsed from its cached manifest on first use.

    Raises:
        DescriptorParseError: if there is no entry or its manifest cannot be parsed.
    """
    if entry is None:
        raise DescriptorParseError("No cache entry is defined")
    descriptor = entry.descriptor
    if descriptor is None:
        with _entry_parse_lock:
            descriptor = entry.descriptor
            if descriptor is None:
                CachedJNLPParser(entry, env).parse()
                descriptor = entry.descriptor
    return descriptor


def update_meta_info(entry: Optional[CacheEntry]) -> None:
    """Record the entry's descriptor URL and icon URL when they changed."""
    descriptor = entry.descriptor if entry is not None else None
    if descriptor is None:
        return

    spec = descriptor.context if isinstance(descriptor.context, JNLPSpecification) else None
    if spec is not None and spec.reference is not None:
        url = spec.reference.url
    else:
        url = descriptor.source.url
    if url and url != entry.get_meta_info(Constants.METAKEY_DESCRIPTOR):
        entry.set_meta_info(Constants.METAKEY_DESCRIPTOR, url)

    icon = descriptor.information.icon_info() if descriptor.information is not None else None
    if icon is not None and icon.reference.url != entry.get_meta_info(Constants.METAKEY_ICON):
        entry.set_meta_info(Constants.METAKEY_ICON, icon.reference.url)


def parse_descriptor(cache: Cache, url: str, env: Optional[RuntimeEnvironment] = None) -> CacheEntry:
    """Parse the manifest at url into its cache entry.

    A manifest already known to the cache is reparsed from the cached copy;
    otherwise it is parsed from url, its entry established and its manifest
    cached.

    Raises:
        DescriptorParseError: if the manifest cannot be read or is invalid.
    """
    if cache is None:
        raise DescriptorParseError("no cache specified")
    if url is None:
        raise DescriptorParseError("no source URL")

    entry = cache.entry_from_descriptor_url(url)
    if entry is None:
        descriptor = URLJNLPParser(cache, url, env=env).parse()
        entry = descriptor.cache_entry
        update_meta_info(entry)
        spec = descriptor.context
        if isinstance(spec, JNLPSpecification) and spec.reference is not None:
            entry.add_resource(spec.reference)

    if entry.get_meta_info(Constants.METAKEY_DESCRIPTOR) is not None:
        CachedJNLPParser(entry, env).parse()
        update_meta_info(entry)
    return entry


def prepare_entry(cache: Cache, url: str, env: Optional[RuntimeEnvironment] = None) -> CacheEntry:
    """Parse url and bring every eager jar and native library up to date.

    This is what a launcher needs before starting the application.
    """
    entry = parse_descriptor(cache, url, env)
    descriptor = get_entry_descriptor(entry, env)
    for ref in descriptor.resources.eager_jars():
        entry.add_resource(ref)
    for ref in descriptor.resources.eager_nativelibs():
        entry.add_resource(ref)
    return entry
