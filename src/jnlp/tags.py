"""Recognized manifest tags and the nesting rules between them.

Each tag has exactly one valid parent. Parsing walks a single state (the
innermost open recognized tag); ``transition`` moves it in or out of a tag
and rejects anything out of place.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional

from .errors import DescriptorParseError


class Tag(Enum):
    ALL_PERMISSIONS = "all-permissions"
    APPLET_DESC = "applet-desc"
    APPLICATION_DESC = "application-desc"
    ARGUMENT = "argument"
    COMPONENT_DESC = "component-desc"
    DESCRIPTION = "description"
    EXT_DOWNLOAD = "ext-download"
    EXTENSION = "extension"
    HOMEPAGE = "homepage"
    ICON = "icon"
    INFORMATION = "information"
    INSTALLER_DESC = "installer-desc"
    J2EE_APPLICATION_CLIENT_PERMISSIONS = "j2ee-application-client-permissions"
    J2SE = "j2se"
    JAR = "jar"
    JNLP = "jnlp"
    JRE = "jre"
    NATIVELIB = "nativelib"
    OFFLINE_ALLOWED = "offline-allowed"
    PACKAGE = "package"
    PARAM = "param"
    PROPERTY = "property"
    RESOURCES = "resources"
    SECURITY = "security"
    TITLE = "title"
    VENDOR = "vendor"

    @classmethod
    def lookup(cls, name: str) -> Optional["Tag"]:
        """The tag called name, or None for anything unrecognized."""
        return _BY_NAME.get(name)


_BY_NAME: Dict[str, Tag] = {tag.value: tag for tag in Tag}

# None is the document level, outside any recognized tag.
PARENTS: Dict[Tag, Optional[Tag]] = {
    Tag.JNLP: None,
    Tag.INFORMATION: Tag.JNLP,
    Tag.RESOURCES: Tag.JNLP,
    Tag.SECURITY: Tag.JNLP,
    Tag.APPLICATION_DESC: Tag.JNLP,
    Tag.APPLET_DESC: Tag.JNLP,
    Tag.COMPONENT_DESC: Tag.JNLP,
    Tag.INSTALLER_DESC: Tag.JNLP,
    Tag.TITLE: Tag.INFORMATION,
    Tag.VENDOR: Tag.INFORMATION,
    Tag.HOMEPAGE: Tag.INFORMATION,
    Tag.DESCRIPTION: Tag.INFORMATION,
    Tag.ICON: Tag.INFORMATION,
    Tag.OFFLINE_ALLOWED: Tag.INFORMATION,
    Tag.ALL_PERMISSIONS: Tag.SECURITY,
    Tag.J2EE_APPLICATION_CLIENT_PERMISSIONS: Tag.SECURITY,
    Tag.JAR: Tag.RESOURCES,
    Tag.NATIVELIB: Tag.RESOURCES,
    Tag.J2SE: Tag.RESOURCES,
    Tag.JRE: Tag.RESOURCES,
    Tag.PROPERTY: Tag.RESOURCES,
    Tag.PACKAGE: Tag.RESOURCES,
    Tag.EXTENSION: Tag.RESOURCES,
    Tag.EXT_DOWNLOAD: Tag.EXTENSION,
    Tag.ARGUMENT: Tag.APPLICATION_DESC,
    Tag.PARAM: Tag.APPLET_DESC,
}

def transition(state: Optional[Tag], tag: Tag, entering: bool) -> Optional[Tag]:
    """Return the state after entering or leaving tag.

    Raises:
        DescriptorParseError: if tag is not valid in state.
    """
    parent = PARENTS[tag]
    if entering:
        if state is not parent:
            raise DescriptorParseError(f"misplaced {tag.value} tag", tag.value)
        return tag
    if state is not tag:
        raise DescriptorParseError(f"{tag.value} end tag with no start", tag.value)
    return parent
