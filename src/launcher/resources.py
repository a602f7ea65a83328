"""The set of jars and native libraries a descriptor needs."""

from __future__ import annotations

import threading
from typing import Dict, List, Optional, Type

from .reference import NativelibReference, Reference


def parse_keys(keys: Optional[str]) -> List[str]:
    """Split a space-delimited key list; a backslash escapes the next character.

    A trailing lone backslash is kept literally.
    """
    if not keys:
        return []

    result: List[str] = []
    current: List[str] = []
    i = 0
    while i < len(keys):
        ch = keys[i]
        if ch == " ":
            result.append("".join(current))
            current = []
        elif ch == "\\":
            if i + 1 < len(keys):
                i += 1
                current.append(keys[i])
            else:
                current.append(ch)
        else:
            current.append(ch)
        i += 1
    result.append("".join(current))
    return result


class Resources:
    """Eager and lazy references, plus the main jar and launch properties.

    Jar vs. native-library is decided by the reference type; the four
    projections are computed on demand from the two underlying collections.
    """

    def __init__(self) -> None:
        self._eager: List[Reference] = []
        self._lazy: List[Reference] = []
        self._lock = threading.Lock()
        self.main_jar: Optional[Reference] = None
        self.properties: Optional[Dict[str, str]] = None

    def add_reference(self, ref: Optional[Reference]) -> None:
        if ref is None:
            return
        with self._lock:
            bucket = self._lazy if ref.is_lazy() else self._eager
            if not any(type(r) is type(ref) and r == ref for r in bucket):
                bucket.append(ref)

    def _select(self, wanted: Type[Reference], eager: bool, lazy: bool) -> List[Reference]:
        with self._lock:
            pool = (self._eager if eager else []) + (self._lazy if lazy else [])
        want_native = wanted is NativelibReference
        return [r for r in pool if isinstance(r, NativelibReference) == want_native]

    def eager_jars(self) -> List[Reference]:
        return self._select(Reference, True, False)

    def eager_nativelibs(self) -> List[Reference]:
        return self._select(NativelibReference, True, False)

    def lazy_jars(self) -> List[Reference]:
        return self._select(Reference, False, True)

    def lazy_nativelibs(self) -> List[Reference]:
        return self._select(NativelibReference, False, True)

    def jars(self) -> List[Reference]:
        return self._select(Reference, True, True)

    def nativelibs(self) -> List[Reference]:
        return self._select(NativelibReference, True, True)

    def __repr__(self) -> str:
        return f"Resources[main={self.main_jar!r},eager={len(self._eager)},lazy={len(self._lazy)}]"
