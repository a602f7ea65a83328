"""Locale-resolved, human-facing descriptor metadata.

Every locale-sensitive lookup tries the (language, country, variant) locale,
then (language, country), then (language), and finally the default
LocaleInfo. Each field falls back independently.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import locale as _pylocale
import os
import threading
from typing import Callable, Dict, Iterator, List, Optional, Tuple, TypeVar

from .reference import Reference

T = TypeVar("T")

DESC_DEFAULT: Optional[str] = None
DESC_ONELINE = "one-line"
DESC_SHORT = "short"
DESC_TOOLTIP = "tooltip"

ICON_DEFAULT = "default"
ICON_SELECTED = "selected"
ICON_DISABLED = "disabled"
ICON_ROLLOVER = "rollover"


@dataclass(frozen=True)
class Locale:
    """A (language, country, variant) triple, compared exactly."""

    language: str
    country: str = ""
    variant: str = ""

    @classmethod
    def parse(cls, tag: str) -> "Locale":
        """Parse "en", "en_US" or "en_US_POSIX" style tags."""
        parts = [p for p in tag.split("_") if p]
        language = parts[0] if parts else ""
        country = parts[1] if len(parts) > 1 else ""
        variant = parts[2] if len(parts) > 2 else ""
        return cls(language, country, variant)

    @classmethod
    def default(cls) -> "Locale":
        """The process default locale, from the C library or the LANG family of variables."""
        tag = None
        try:
            tag = _pylocale.getlocale()[0]
        except ValueError:
            tag = None
        if not tag:
            for var in ("LC_ALL", "LC_MESSAGES", "LANG"):
                tag = os.environ.get(var)
                if tag:
                    break
        if not tag or tag in ("C", "POSIX"):
            return cls("en")
        # strip encoding and modifier, e.g. "de_DE.UTF-8@euro"
        tag = tag.split(".", 1)[0].split("@", 1)[0].replace("-", "_")
        return cls.parse(tag)

    def fallbacks(self) -> List[Optional["Locale"]]:
        """The variant, country and language locales, each None when not applicable."""
        vrnt = self if self.variant else None
        ctry = Locale(self.language, self.country) if self.country else None
        lang = Locale(self.language)
        return [vrnt, ctry, lang]

    def __str__(self) -> str:
        return "_".join(p for p in (self.language, self.country, self.variant) if p)


def parse_locales(text: Optional[str]) -> Tuple[Locale, ...]:
    """Parse a space-separated list of locale tags."""
    if not text:
        return ()
    return tuple(Locale.parse(tok) for tok in text.split(" ") if tok)


@dataclass(frozen=True)
class IconInfo:
    """An icon reference plus its optional dimensions (-1 when unspecified)."""

    reference: Reference
    width: int = -1
    height: int = -1
    depth: int = -1
    size: int = -1


@dataclass
class LocaleInfo:
    """Title, vendor, homepage, descriptions and icons for one locale."""

    title: Optional[str] = None
    vendor: Optional[str] = None
    descriptions: Dict[Optional[str], str] = field(default_factory=dict)
    homepage: Optional[str] = None
    icons: Dict[str, IconInfo] = field(default_factory=dict)
    offline_allowed: bool = False

    def __post_init__(self) -> None:
        self.descriptions = dict(self.descriptions or {})
        self.icons = dict(self.icons or {})

    def description(self, kind: Optional[str] = DESC_DEFAULT) -> Optional[str]:
        """Description of the requested kind, else the kind-less description."""
        desc = self.descriptions.get(kind)
        return desc if desc is not None else self.descriptions.get(DESC_DEFAULT)

    def icon_info(self, kind: str = ICON_DEFAULT) -> Optional[IconInfo]:
        """Icon of the requested kind, else the default icon."""
        icon = self.icons.get(kind)
        return icon if icon is not None else self.icons.get(ICON_DEFAULT)


class Information:
    """Descriptor information resolved against a locale."""

    def __init__(self, default_info: LocaleInfo, locale: Optional[Locale] = None):
        self._default = default_info
        self._locale_map: Dict[Locale, LocaleInfo] = {}
        self._lock = threading.Lock()
        self._chain = (locale or Locale.default()).fallbacks()

    @property
    def default_info(self) -> LocaleInfo:
        return self._default

    @property
    def default_title(self) -> Optional[str]:
        return self._default.title

    @property
    def default_vendor(self) -> Optional[str]:
        return self._default.vendor

    def allows_offline(self) -> bool:
        return self._lookup(lambda li: True if li.offline_allowed else None, self._default.offline_allowed)

    @property
    def title(self) -> Optional[str]:
        return self._lookup(lambda li: li.title, self._default.title)

    @property
    def vendor(self) -> Optional[str]:
        return self._lookup(lambda li: li.vendor, self._default.vendor)

    @property
    def homepage(self) -> Optional[str]:
        return self._lookup(lambda li: li.homepage, self._default.homepage)

    def description(self, kind: Optional[str] = DESC_DEFAULT) -> Optional[str]:
        return self._lookup(lambda li: li.description(kind), self._default.description(kind))

    def icon_info(self, kind: Optional[str] = ICON_DEFAULT) -> Optional[IconInfo]:
        kind = kind or ICON_DEFAULT
        return self._lookup(lambda li: li.icon_info(kind), self._default.icon_info(kind))

    def set_locale_info(self, locale: Locale, info: Optional[LocaleInfo]) -> None:
        """Attach info to locale; None detaches whatever was there."""
        with self._lock:
            if info is None:
                self._locale_map.pop(locale, None)
            else:
                self._locale_map[locale] = info

    def locale_info(self, locale: Locale) -> Optional[LocaleInfo]:
        return self._locale_map.get(locale)

    def locales(self) -> Iterator[Locale]:
        return iter(list(self._locale_map))

    def _lookup(self, getter: Callable[[LocaleInfo], Optional[T]], default: T) -> T:
        for loc in self._chain:
            info = self._locale_map.get(loc) if loc is not None else None
            value = getter(info) if info is not None else None
            if value is not None:
                return value
        return default

