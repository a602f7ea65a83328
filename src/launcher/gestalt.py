"""Runtime environment facts used to select platform-specific resources."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import platform
from typing import Optional

from .information import Locale


class OSType(Enum):
    """Coarse operating system family."""
    UNKNOWN = "other"
    MACOS = "macos"
    WINDOWS = "windows"
    UNIX = "unix"


def _java_os_name(system: str, release: str) -> str:
    """Render platform.system() the way manifests spell os names ("Mac OS X", "Windows 10")."""
    if system == "Darwin":
        return "Mac OS X"
    if system == "Windows":
        return f"Windows {release}".strip()
    if system == "SunOS":
        return "Solaris"
    return system


def _java_os_arch(machine: str) -> str:
    machine = machine.lower()
    if machine in ("i386", "i486", "i586", "i686"):
        return "x86"
    return machine


@dataclass(frozen=True)
class RuntimeEnvironment:
    """The os name, architecture and default locale a descriptor is resolved against."""

    os_name: str
    os_arch: str
    locale: Locale = field(default_factory=Locale.default)

    @classmethod
    def current(cls, locale: Optional[Locale] = None) -> "RuntimeEnvironment":
        """Describe the running interpreter's platform."""
        return cls(
            os_name=_java_os_name(platform.system(), platform.release()),
            os_arch=_java_os_arch(platform.machine()),
            locale=locale or Locale.default(),
        )

    def os_type(self) -> OSType:
        if self.os_name.startswith("Mac"):
            return OSType.MACOS
        if self.os_name.startswith("Windows"):
            return OSType.WINDOWS
        if self.os_name.startswith(("Linux", "Solaris")):
            return OSType.UNIX
        return OSType.UNKNOWN

    def is_macosx(self) -> bool:
        return self.os_name.startswith("Mac OS X")

    def platform_key(self) -> str:
        """Short key for the platform family ("macosx", "windows", "unix", ...)."""
        if self.is_macosx():
            return "macosx"
        return self.os_type().value
