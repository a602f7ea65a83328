"""Parsed, environment-resolved descriptors."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from .information import Information
from .reference import Reference
from .resources import Resources

if TYPE_CHECKING:
    from .cache.base import Cache, CacheEntry


class Descriptor:
    """Common base of everything a manifest can describe.

    ``context``, ``information`` and ``resources`` are attached while parsing
    completes; the cache entry is established on first access.
    """

    def __init__(self, cache: "Cache", codebase: Optional[str], source: Reference):
        self.cache = cache
        self._codebase = codebase
        self.source = source
        self.context: Any = None
        self.information: Optional[Information] = None
        self.resources: Optional[Resources] = None
        self._cache_entry: Optional["CacheEntry"] = None
        self._entry_lock = threading.Lock()

    @property
    def codebase(self) -> Optional[str]:
        return self._codebase

    @property
    def cache_entry(self) -> "CacheEntry":
        """The cache entry for this descriptor, established once."""
        with self._entry_lock:
            if self._cache_entry is None:
                self._cache_entry = self.cache.establish_entry(self)
            return self._cache_entry

    def __repr__(self) -> str:
        title = self.information.default_title if self.information else None
        return f"{type(self).__name__}[source={self.source.url},title={title}]"


class ApplicationDescriptor(Descriptor):
    """An application or applet descriptor.

    Applications carry arguments; applets carry a name, size, document base
    and params. Asking one kind for the other kind's data raises RuntimeError.
    """

    def __init__(
        self,
        cache: "Cache",
        codebase: Optional[str],
        source: Reference,
        main_class: Optional[str],
    ):
        super().__init__(cache, codebase, source)
        self.main_class = main_class
        self._arguments: Optional[List[str]] = []
        self._params: Optional[Dict[str, Optional[str]]] = None
        self._applet_name: Optional[str] = None
        self._width = 0
        self._height = 0
        self._document_base: Optional[str] = None

    @classmethod
    def applet(
        cls,
        cache: "Cache",
        codebase: Optional[str],
        source: Reference,
        main_class: Optional[str],
        name: str,
        width: int,
        height: int,
        document_base: Optional[str],
    ) -> "ApplicationDescriptor":
        desc = cls(cache, codebase, source, main_class)
        desc._arguments = None
        desc._params = {}
        desc._applet_name = name
        desc._width = width
        desc._height = height
        desc._document_base = document_base
        return desc

    def is_applet_descriptor(self) -> bool:
        return self._params is not None

    def add_argument(self, arg: Optional[str]) -> None:
        if self._arguments is None:
            raise RuntimeError("applet descriptor does not support arguments")
        if arg is not None:
            self._arguments.append(arg)

    @property
    def arguments(self) -> List[str]:
        if self._arguments is None:
            raise RuntimeError("applet descriptor does not support arguments")
        return list(self._arguments)

    def put_param(self, name: Optional[str], value: Optional[str]) -> None:
        if self._params is None:
            raise RuntimeError("application descriptor does not support params")
        if name is not None:
            self._params[name] = value

    def get_param(self, name: str) -> Optional[str]:
        if self._params is None:
            raise RuntimeError("application descriptor does not support params")
        return self._params.get(name)

    def _require_applet(self, what: str) -> None:
        if not self.is_applet_descriptor():
            raise RuntimeError(f"application descriptor does not support {what}")

    @property
    def applet_name(self) -> Optional[str]:
        self._require_applet("name")
        return self._applet_name

    @property
    def width(self) -> int:
        self._require_applet("size")
        return self._width

    @property
    def height(self) -> int:
        self._require_applet("size")
        return self._height

    @property
    def document_base(self) -> Optional[str]:
        self._require_applet("docbase")
        return self._document_base

    @property
    def codebase(self) -> Optional[str]:
        base = self._codebase
        if base is None and self.is_applet_descriptor() and self.resources is not None:
            main = self.resources.main_jar
            base = main.url if main is not None else None
        return base


class ExtensionDescriptor(Descriptor):
    """A component or installer extension descriptor."""

    def __init__(self, cache: "Cache", codebase: Optional[str], source: Reference, installer: bool = False):
        super().__init__(cache, codebase, source)
        self.installer = installer
