"""Cache and CacheEntry base classes.

A Cache owns entries keyed by (vendor, title); an entry owns cached
resources keyed by reference URL plus a string metadata map. Concrete
storage lives in the file-backed subclasses.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Tuple

from constants import Constants
from launcher.reference import Reference

from .events import (
    CacheEvent,
    CacheEventType,
    ListenerList,
    ResourceEvent,
    ResourceEventType,
    Subscription,
)

if TYPE_CHECKING:
    from launcher.descriptor import Descriptor
    from .resource import CachedResource

logger = logging.getLogger(__name__)

ENTRY_KEY_SEPARATOR = "→"


def create_entry_key(vendor: Optional[str], title: Optional[str]) -> str:
    """Key identifying an entry; None parts are treated as empty."""
    return f"{vendor or ''}{ENTRY_KEY_SEPARATOR}{title or ''}"


class Cache:
    """Base class for caches.

    Listeners receive CacheEvents after the change they describe has been
    committed. The listener list is copy-on-write.
    """

    def __init__(self) -> None:
        self._listeners = ListenerList()

    def add_listener(self, listener: Any) -> None:
        self._listeners.add(listener)

    def remove_listener(self, listener: Any) -> bool:
        return self._listeners.remove(listener)

    def subscribe(self, callback: Callable[[CacheEvent], None]) -> Subscription:
        """Deliver every CacheEvent to callback until the subscription is cancelled."""
        return Subscription(self._listeners, callback)

    def _fire(self, event_type: CacheEventType, entry: "CacheEntry") -> None:
        if len(self._listeners) == 0:
            return
        self._listeners.fire(CacheEvent(self, event_type, entry))

    def fire_entry_updated(self, entry: "CacheEntry") -> None:
        self._fire(CacheEventType.ENTRY_UPDATED, entry)

    def entry_from_descriptor_url(self, url: str) -> Optional["CacheEntry"]:
        """Return the entry whose recorded descriptor URL equals url."""
        wanted = str(url)
        for entry in self.entries():
            if wanted == entry.get_meta_info(Constants.METAKEY_DESCRIPTOR):
                return entry
        return None

    def establish_entry(self, descriptor: "Descriptor") -> "CacheEntry":
        raise NotImplementedError

    def entries(self) -> List["CacheEntry"]:
        raise NotImplementedError

    def remove_entry(self, entry: "CacheEntry") -> bool:
        raise NotImplementedError


class CacheEntry:
    """A named, observable collection of cached resources for one (vendor, title)."""

    def __init__(self, vendor: str, title: str):
        if vendor is None or title is None:
            raise ValueError("vendor and title must be non-null")
        self._vendor = vendor
        self._title = title
        self._key = create_entry_key(vendor, title)
        self._descriptor: Optional["Descriptor"] = None
        self._listeners = ListenerList()

    @property
    def vendor(self) -> str:
        return self._vendor

    @property
    def title(self) -> str:
        return self._title

    @property
    def key(self) -> str:
        return self._key

    @property
    def cache(self) -> Cache:
        raise NotImplementedError

    @property
    def descriptor(self) -> Optional["Descriptor"]:
        return self._descriptor

    @descriptor.setter
    def descriptor(self, descriptor: Optional["Descriptor"]) -> None:
        self._descriptor = descriptor

    def add_listener(self, listener: Any) -> None:
        self._listeners.add(listener)

    def remove_listener(self, listener: Any) -> bool:
        return self._listeners.remove(listener)

    def subscribe(self, callback: Callable[[ResourceEvent], None]) -> Subscription:
        """Deliver every ResourceEvent of this entry to callback."""
        return Subscription(self._listeners, callback)

    def _fire(self, event_type: ResourceEventType, resource: "CachedResource") -> None:
        if len(self._listeners) == 0:
            return
        self._listeners.fire(ResourceEvent(self, event_type, resource))

    def get_meta_info(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set_meta_info(self, key: str, value: Optional[str]) -> Optional[str]:
        """Set key to value (None removes it) and return the previous value."""
        raise NotImplementedError

    def is_launchable(self) -> bool:
        raise NotImplementedError

    def is_resource_cached(self, ref: Reference) -> bool:
        raise NotImplementedError

    def add_resource(self, ref: Optional[Reference], force_check: bool = False) -> bool:
        """Track ref; return True when it was not tracked before.

        Eager references (and any reference when force_check is set) are
        brought up to date even when already tracked.
        """
        return self.add_resource_ex(ref, force_check)[0]

    def add_resource_ex(self, ref: Optional[Reference], force_check: bool = False) -> Tuple[bool, bool]:
        """Like add_resource, returning (added, updated)."""
        raise NotImplementedError

    def remove_resource(self, ref: Reference) -> bool:
        raise NotImplementedError

    def cached_resources(self) -> List["CachedResource"]:
        raise NotImplementedError

    def get_resource(self, ref: Reference, update: bool = False) -> Optional["CachedResource"]:
        raise NotImplementedError

    def get_jar_manifest(self, ref: Reference) -> Optional[Dict[str, str]]:
        raise NotImplementedError

    def reference_from_url(self, url: str) -> Reference:
        """Return the tracked reference for url, or a fresh unversioned one."""
        for resource in self.cached_resources():
            if resource.reference.url == url:
                return resource.reference
        return Reference(url)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CacheEntry):
            return NotImplemented
        return self.cache is other.cache and self._key == other._key

    def __hash__(self) -> int:
        return hash((id(self.cache), self._key))

    def __str__(self) -> str:
        return self._key
