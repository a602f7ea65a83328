"""Cache and resource events plus the copy-on-write listener list that delivers them.

Events are delivered synchronously on the mutating thread once the change
has been committed (in memory and on disk). A listener is either a callable
taking the event, or an object exposing the handler method named by the
event type (``cache_entry_added``, ``resource_updated``, ...).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import threading
from typing import TYPE_CHECKING, Any, Callable, Optional, Tuple

if TYPE_CHECKING:
    from .base import Cache, CacheEntry
    from .resource import CachedResource


class CacheEventType(Enum):
    """Lifecycle changes of entries within a cache."""
    ENTRY_ADDED = "cache_entry_added"
    ENTRY_REMOVED = "cache_entry_removed"
    ENTRY_UPDATED = "cache_entry_updated"

    @property
    def handler_name(self) -> str:
        return self.value


class ResourceEventType(Enum):
    """Changes of resources within one entry."""
    UPDATING = "resource_updating"
    ADDED = "resource_added"
    REMOVED = "resource_removed"
    UPDATED = "resource_updated"

    @property
    def handler_name(self) -> str:
        return self.value


@dataclass(frozen=True)
class CacheEvent:
    cache: "Cache"
    type: CacheEventType
    entry: "CacheEntry"


@dataclass(frozen=True)
class ResourceEvent:
    entry: "CacheEntry"
    type: ResourceEventType
    resource: "CachedResource"


class _Callback:
    """A subscribed callable, delivered every event regardless of its attributes."""

    __slots__ = ("callback",)

    def __init__(self, callback: Callable[[Any], None]):
        self.callback = callback


def deliver(listener: Any, event: Any) -> None:
    """Hand event to listener, preferring the type-specific handler method."""
    if isinstance(listener, _Callback):
        listener.callback(event)
        return
    handler = getattr(listener, event.type.handler_name, None)
    if handler is not None:
        handler(event)
    elif callable(listener):
        listener(event)


class ListenerList:
    """Listeners held in an immutable tuple that is replaced on every change.

    Dispatch iterates a snapshot, so adding or removing a listener never
    disturbs a delivery that is already running.
    """

    def __init__(self) -> None:
        self._items: Tuple[Any, ...] = ()
        self._lock = threading.Lock()

    def add(self, listener: Any) -> None:
        if listener is None:
            return
        with self._lock:
            self._items = self._items + (listener,)

    def remove(self, listener: Any) -> bool:
        """Remove the most recently added occurrence of listener."""
        if listener is None:
            return False
        with self._lock:
            items = self._items
            for index in range(len(items) - 1, -1, -1):
                if items[index] is listener or (
                    not isinstance(items[index], _Callback) and items[index] == listener
                ):
                    self._items = items[:index] + items[index + 1:]
                    return True
        return False

    def snapshot(self) -> Tuple[Any, ...]:
        return self._items

    def fire(self, event: Any) -> None:
        for listener in self._items:
            deliver(listener, event)

    def __len__(self) -> int:
        return len(self._items)


class Subscription:
    """Handle returned by ``subscribe``; ``cancel()`` stops further delivery."""

    def __init__(self, listeners: ListenerList, callback: Callable[[Any], None]):
        self._listeners: Optional[ListenerList] = listeners
        self._callback = _Callback(callback)
        listeners.add(self._callback)

    @property
    def active(self) -> bool:
        return self._listeners is not None

    def cancel(self) -> None:
        listeners, self._listeners = self._listeners, None
        if listeners is not None:
            listeners.remove(self._callback)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.cancel()
