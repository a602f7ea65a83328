"""References to remote artifacts addressed by URL."""

from __future__ import annotations

from typing import Iterable, Optional, Tuple

from versioning import Version, format_versions


def _dedupe(versions: Iterable[Version]) -> Tuple[Version, ...]:
    """Keep the first of any group of equal version-ids, preserving order."""
    kept = []
    for ver in versions:
        if ver is None:
            continue
        if not any(ver.compare_to(k) == 0 and k.compare_to(ver) == 0 for k in kept):
            kept.append(ver)
    return tuple(kept)


class Reference:
    """Reference to an object accessible via a URL.

    A reference carries one or more version-ids and whether the artifact is
    downloaded eagerly (before launch) or lazily (on first demand).
    """

    __slots__ = ("_url", "_versions", "_lazy")

    def __init__(self, url: str, versions: Optional[Iterable[Version]] = None, lazy: bool = False):
        if isinstance(versions, Version):
            versions = (versions,)
        vers = _dedupe(versions) if versions is not None else ()
        self._url = url
        self._versions = vers or (Version.EMPTY,)
        self._lazy = bool(lazy)

    @property
    def url(self) -> str:
        return self._url

    @property
    def versions(self) -> Tuple[Version, ...]:
        """Version-ids of this reference; an unversioned reference holds Version.EMPTY."""
        return self._versions

    def is_lazy(self) -> bool:
        return self._lazy

    def is_unversioned(self) -> bool:
        return len(self._versions) == 1 and str(self._versions[0]) == ""

    def __hash__(self) -> int:
        return hash(self._url)

    def __eq__(self, other: object) -> bool:
        """Equal when URL and laziness match and the version sets intersect."""
        if not isinstance(other, Reference):
            return NotImplemented
        if self._lazy != other._lazy or self._url != other._url:
            return False
        if self.is_unversioned() and other.is_unversioned():
            return True
        return any(a == b for a in self._versions for b in other._versions)

    def __ne__(self, other: object) -> bool:
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __repr__(self) -> str:
        state = "lazy" if self._lazy else "eager"
        return f'{type(self).__name__}[url={self._url},versions="{format_versions(self._versions)}",{state}]'


class NativelibReference(Reference):
    """A reference to a native library jar.

    Identical to Reference; the type alone routes the jar to library extraction.
    """

    __slots__ = ()
