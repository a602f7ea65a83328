"""Incremental manifest handler that assembles a Descriptor.

Bytes are fed to an ``xml.etree.ElementTree.XMLPullParser``; each start and
end event of a recognized tag moves the tag state machine and runs that
tag's handler. Unrecognized tags are skipped. The descriptor is only
exposed once ``</jnlp>`` has been processed without error.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Dict, List, Mapping, Optional, Tuple
from urllib.parse import urljoin, urlsplit
import xml.etree.ElementTree as ET

from launcher.cache.base import Cache
from launcher.descriptor import ApplicationDescriptor, Descriptor, ExtensionDescriptor
from launcher.gestalt import RuntimeEnvironment
from launcher.information import (
    ICON_DEFAULT,
    IconInfo,
    Information,
    Locale,
    LocaleInfo,
    parse_locales,
)
from launcher.reference import NativelibReference, Reference
from launcher.resources import Resources, parse_keys
from versioning import parse_versions

from .errors import DescriptorParseError
from .specification import JNLPSpecification, fix_codebase
from .tags import Tag, transition

logger = logging.getLogger(__name__)

Attrs = Mapping[str, str]


def collapse_text(elem: ET.Element) -> str:
    """Element text with whitespace runs collapsed to one space and trimmed."""
    return " ".join("".join(elem.itertext()).split())


_INTEGER = re.compile(r"[-+]?[0-9]+")


def _int_attr(attrs: Attrs, name: str, tag: Tag, default: Optional[int] = -1) -> Optional[int]:
    value = attrs.get(name)
    if value is None:
        return default
    # int() would also take padding, underscores and non-ASCII digits
    if not _INTEGER.fullmatch(value):
        raise DescriptorParseError(f"bad numeric value for {name}: {value!r}", tag.value)
    return int(value)


def _absolute_url(base: Optional[str], href: str) -> Optional[str]:
    """href resolved against base, or None when the result is malformed or has no scheme."""
    try:
        url = urljoin(base, href) if base else href
        scheme = urlsplit(url).scheme
    except ValueError:
        return None
    return url if scheme else None


class JNLPContentHandler:
    """Builds a Descriptor from manifest bytes.

    Args:
        cache: Cache handed to the descriptor.
        source_url: URL the manifest was read from.
        env: Runtime used to filter conditional resources and resolve locales;
            defaults to the running interpreter's.
    """

    def __init__(self, cache: Cache, source_url: str, env: Optional[RuntimeEnvironment] = None):
        self._cache = cache
        self._source_url = source_url
        self._source = Reference(source_url)
        self._env = env or RuntimeEnvironment.current()
        self._runtime_locales = [loc for loc in self._env.locale.fallbacks() if loc is not None]
        self._xml = ET.XMLPullParser(events=("start", "end"))
        self._state: Optional[Tag] = None
        self._complete = False

        self._spec: Optional[JNLPSpecification] = None
        self._descriptor: Optional[Descriptor] = None
        self._reset_document()

        self._starts: Dict[Tag, Callable[[Attrs], None]] = {
            Tag.JNLP: self._start_jnlp,
            Tag.INFORMATION: self._start_information,
            Tag.DESCRIPTION: self._start_description,
            Tag.HOMEPAGE: self._start_homepage,
            Tag.ICON: self._start_icon,
            Tag.OFFLINE_ALLOWED: self._start_offline_allowed,
            Tag.RESOURCES: self._start_resources,
            Tag.JAR: self._start_jar,
            Tag.NATIVELIB: self._start_nativelib,
            Tag.PROPERTY: self._start_property,
            Tag.APPLICATION_DESC: self._start_application_desc,
            Tag.APPLET_DESC: self._start_applet_desc,
            Tag.PARAM: self._start_param,
            Tag.COMPONENT_DESC: self._start_component_desc,
            Tag.INSTALLER_DESC: self._start_installer_desc,
        }
        self._ends: Dict[Tag, Callable[[ET.Element], None]] = {
            Tag.JNLP: self._end_jnlp,
            Tag.INFORMATION: self._end_information,
            Tag.TITLE: self._end_title,
            Tag.VENDOR: self._end_vendor,
            Tag.DESCRIPTION: self._end_description,
            Tag.ARGUMENT: self._end_argument,
        }

    def _reset_document(self) -> None:
        self._default_info: Optional[LocaleInfo] = None
        self._locale_infos: Dict[Locale, LocaleInfo] = {}
        self._first_locale: Optional[Locale] = None
        self._info_locales: Tuple[Locale, ...] = ()
        self._info: Optional[LocaleInfo] = None
        self._desc_kind: Optional[str] = None

        self._res_match = False
        self._first_jar: Optional[Reference] = None
        self._main_jar: Optional[Reference] = None
        self._references: List[Reference] = []
        self._properties: Optional[Dict[str, str]] = None

    @property
    def descriptor(self) -> Optional[Descriptor]:
        """The finished descriptor, or None until ``</jnlp>`` has been handled."""
        return self._descriptor if self._complete else None

    def feed(self, data: bytes) -> None:
        # The pull parser queues syntax errors and raises them from read_events()
        try:
            self._xml.feed(data)
            self._drain()
        except ET.ParseError as exc:
            raise DescriptorParseError(f"malformed manifest: {exc}") from exc

    def close(self) -> Descriptor:
        """Finish parsing and return the descriptor.

        Raises:
            DescriptorParseError: if the manifest was malformed or incomplete.
        """
        try:
            self._xml.close()
            self._drain()
        except ET.ParseError as exc:
            raise DescriptorParseError(f"malformed manifest: {exc}") from exc
        if not self._complete or self._descriptor is None:
            raise DescriptorParseError("no jnlp element found", Tag.JNLP.value)
        return self._descriptor

    def _drain(self) -> None:
        for event, elem in self._xml.read_events():
            tag = Tag.lookup(elem.tag)
            if tag is None:
                logger.debug("Ignoring unrecognized tag <%s>", elem.tag)
                continue
            if event == "start":
                self._state = transition(self._state, tag, True)
                start = self._starts.get(tag)
                if start is not None:
                    start(elem.attrib)
            else:
                self._state = transition(self._state, tag, False)
                end = self._ends.get(tag)
                if end is not None:
                    end(elem)

    # URL handling

    def _resolve(self, href: Optional[str], tag: Tag) -> Optional[str]:
        """Resolve href against the codebase, the manifest href or the source URL."""
        if href is None:
            return None
        href = href.strip()
        base = self._spec.codebase if self._spec is not None else None
        url = _absolute_url(base or self._source_url, href)
        if url is None:
            raise DescriptorParseError(f"bad URL {href!r}", tag.value)
        return url

    def _require_href(self, attrs: Attrs, tag: Tag) -> str:
        url = self._resolve(attrs.get("href"), tag)
        if url is None:
            raise DescriptorParseError("href is required", tag.value)
        return url

    # <jnlp>

    def _start_jnlp(self, attrs: Attrs) -> None:
        codebase = fix_codebase(attrs.get("codebase"))
        if codebase is not None and _absolute_url(None, codebase) is None:
            raise DescriptorParseError("bad codebase in <jnlp>", Tag.JNLP.value)

        href = attrs.get("href")
        reference = None
        if href is not None:
            url = _absolute_url(codebase, href)
            if url is None:
                raise DescriptorParseError("bad href in <jnlp>", Tag.JNLP.value)
            version = attrs.get("version")
            reference = Reference(url, parse_versions(version) if version is not None else None)

        spec = attrs.get("spec")
        self._spec = JNLPSpecification(reference, codebase, parse_versions(spec) if spec is not None else None)
        self._descriptor = None
        self._complete = False
        self._reset_document()

    def _end_jnlp(self, elem: ET.Element) -> None:
        default = self._default_info
        if default is None and self._first_locale is not None:
            default = self._locale_infos.get(self._first_locale)
        if default is None or default.vendor is None or default.title is None:
            raise DescriptorParseError("No default information defined", Tag.JNLP.value)

        information = Information(default, self._env.locale)
        for locale, info in self._locale_infos.items():
            information.set_locale_info(locale, info)

        main = self._main_jar or self._first_jar
        if main is None:
            raise DescriptorParseError("no main jar defined", Tag.JNLP.value)
        resources = Resources()
        resources.properties = self._properties
        resources.main_jar = main
        for ref in self._references:
            resources.add_reference(ref)

        if self._descriptor is None:
            raise DescriptorParseError("no application, applet or extension defined", Tag.JNLP.value)
        self._descriptor.context = self._spec
        self._descriptor.information = information
        self._descriptor.resources = resources
        self._complete = True
        elem.clear()

    # <information>

    def _start_information(self, attrs: Attrs) -> None:
        self._info_locales = parse_locales(attrs.get("locale"))
        self._info = LocaleInfo()
        self._desc_kind = None

    def _end_information(self, elem: ET.Element) -> None:
        info = self._info
        if not self._info_locales:
            self._default_info = info
        else:
            if self._first_locale is None:
                self._first_locale = self._info_locales[0]
            for locale in self._info_locales:
                self._locale_infos[locale] = info
        self._info = None

    def _end_title(self, elem: ET.Element) -> None:
        self._info.title = collapse_text(elem)

    def _end_vendor(self, elem: ET.Element) -> None:
        self._info.vendor = collapse_text(elem)

    def _start_description(self, attrs: Attrs) -> None:
        self._desc_kind = attrs.get("kind")

    def _end_description(self, elem: ET.Element) -> None:
        self._info.descriptions[self._desc_kind] = collapse_text(elem)

    def _start_homepage(self, attrs: Attrs) -> None:
        self._info.homepage = self._resolve(attrs.get("href"), Tag.HOMEPAGE)

    def _start_icon(self, attrs: Attrs) -> None:
        url = self._require_href(attrs, Tag.ICON)
        kind = attrs.get("kind") or ICON_DEFAULT
        self._info.icons[kind] = IconInfo(
            Reference(url, parse_versions(attrs.get("version"))),
            width=_int_attr(attrs, "width", Tag.ICON),
            height=_int_attr(attrs, "height", Tag.ICON),
            depth=_int_attr(attrs, "depth", Tag.ICON),
            size=_int_attr(attrs, "size", Tag.ICON),
        )

    def _start_offline_allowed(self, attrs: Attrs) -> None:
        self._info.offline_allowed = True

    # <resources>

    def _start_resources(self, attrs: Attrs) -> None:
        self._res_match = self._resources_apply(attrs)
        if not self._res_match:
            logger.debug("Skipping resources block %s", dict(attrs))

    def _resources_apply(self, attrs: Attrs) -> bool:
        """True when every os/arch/locale condition on a resources block holds."""
        arch = attrs.get("arch")
        if arch is not None and not any(self._env.os_arch.startswith(k) for k in parse_keys(arch)):
            return False
        os_attr = attrs.get("os")
        if os_attr is not None and not any(self._env.os_name.startswith(k) for k in parse_keys(os_attr)):
            return False
        locale = attrs.get("locale")
        if locale is not None:
            wanted = parse_locales(locale)
            if not any(loc in wanted for loc in self._runtime_locales):
                return False
        return True

    def _jar_reference(self, attrs: Attrs, tag: Tag, kind: type) -> Reference:
        url = self._require_href(attrs, tag)
        return kind(url, parse_versions(attrs.get("version")), attrs.get("download") == "lazy")

    def _start_jar(self, attrs: Attrs) -> None:
        if not self._res_match:
            return
        ref = self._jar_reference(attrs, Tag.JAR, Reference)
        if attrs.get("main") == "true":
            if self._main_jar is not None:
                raise DescriptorParseError("more than one jar defined as main", Tag.JAR.value)
            self._main_jar = ref
        if self._first_jar is None:
            self._first_jar = ref
        self._references.append(ref)

    def _start_nativelib(self, attrs: Attrs) -> None:
        if not self._res_match:
            return
        self._references.append(self._jar_reference(attrs, Tag.NATIVELIB, NativelibReference))

    def _start_property(self, attrs: Attrs) -> None:
        if not self._res_match:
            return
        name = attrs.get("name")
        if name is None:
            raise DescriptorParseError("name is required", Tag.PROPERTY.value)
        if self._properties is None:
            self._properties = {}
        self._properties[name] = attrs.get("value", "")

    # descriptor kinds

    def _descriptor_source(self) -> Reference:
        if self._spec is not None and self._spec.reference is not None:
            return self._spec.reference
        return self._source

    def _descriptor_codebase(self) -> Optional[str]:
        return self._spec.codebase if self._spec is not None else None

    def _check_single_kind(self, tag: Tag) -> None:
        if self._descriptor is not None:
            raise DescriptorParseError("more than one application, applet or extension defined", tag.value)

    def _start_application_desc(self, attrs: Attrs) -> None:
        self._check_single_kind(Tag.APPLICATION_DESC)
        self._descriptor = ApplicationDescriptor(
            self._cache, self._descriptor_codebase(), self._descriptor_source(), attrs.get("main-class")
        )

    def _end_argument(self, elem: ET.Element) -> None:
        self._descriptor.add_argument(collapse_text(elem))

    def _start_applet_desc(self, attrs: Attrs) -> None:
        self._check_single_kind(Tag.APPLET_DESC)
        name = attrs.get("name")
        if name is None:
            raise DescriptorParseError("applet-desc requires name to be defined", Tag.APPLET_DESC.value)
        width = _int_attr(attrs, "width", Tag.APPLET_DESC, default=None)
        height = _int_attr(attrs, "height", Tag.APPLET_DESC, default=None)
        if width is None or height is None:
            raise DescriptorParseError("applet-desc requires width and height", Tag.APPLET_DESC.value)
        self._descriptor = ApplicationDescriptor.applet(
            self._cache,
            self._descriptor_codebase(),
            self._descriptor_source(),
            attrs.get("main-class"),
            name,
            width,
            height,
            self._resolve(attrs.get("documentbase"), Tag.APPLET_DESC),
        )

    def _start_param(self, attrs: Attrs) -> None:
        self._descriptor.put_param(attrs.get("name"), attrs.get("value"))

    def _start_component_desc(self, attrs: Attrs) -> None:
        self._check_single_kind(Tag.COMPONENT_DESC)
        self._descriptor = ExtensionDescriptor(
            self._cache, self._descriptor_codebase(), self._descriptor_source()
        )

    def _start_installer_desc(self, attrs: Attrs) -> None:
        self._check_single_kind(Tag.INSTALLER_DESC)
        self._descriptor = ExtensionDescriptor(
            self._cache, self._descriptor_codebase(), self._descriptor_source(), installer=True
        )

