"""Versioned local cache of descriptor resources."""

from .base import Cache, CacheEntry, create_entry_key
from .errors import CacheError, CacheException
from .events import (
    CacheEvent,
    CacheEventType,
    ResourceEvent,
    ResourceEventType,
    Subscription,
)
from .file_cache import FileCache, default_cache_directory
from .file_entry import FileCacheEntry
from .file_resource import FileCachedResource
from .resource import CachedResource

__all__ = [
    "Cache",
    "CacheEntry",
    "CacheError",
    "CacheEvent",
    "CacheEventType",
    "CacheException",
    "CachedResource",
    "FileCache",
    "FileCacheEntry",
    "FileCachedResource",
    "ResourceEvent",
    "ResourceEventType",
    "Subscription",
    "create_entry_key",
    "default_cache_directory",
]
