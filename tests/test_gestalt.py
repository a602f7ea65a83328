"""Tests for runtime environment detection."""

from unittest.mock import patch

import pytest

from launcher.gestalt import OSType, RuntimeEnvironment
from launcher.information import Locale


class TestRuntimeEnvironment:
    """Test os naming and platform classification."""

    @pytest.mark.parametrize(
        "os_name,os_type,key",
        [
            ("Mac OS X", OSType.MACOS, "macosx"),
            ("Windows 10", OSType.WINDOWS, "windows"),
            ("Linux", OSType.UNIX, "unix"),
            ("Solaris", OSType.UNIX, "unix"),
            ("Haiku", OSType.UNKNOWN, "other"),
        ],
    )
    def test_platform_keys(self, os_name, os_type, key):
        env = RuntimeEnvironment(os_name, "x86_64", Locale("en"))
        assert env.os_type() is os_type
        assert env.platform_key() == key

    def test_current_uses_manifest_spelling(self):
        with patch("launcher.gestalt.platform.system", return_value="Darwin"), patch(
            "launcher.gestalt.platform.release", return_value="23.0"
        ), patch("launcher.gestalt.platform.machine", return_value="i686"):
            env = RuntimeEnvironment.current(Locale("fr", "FR"))
        assert env.os_name == "Mac OS X"
        assert env.os_arch == "x86"
        assert env.locale == Locale("fr", "FR")
        assert env.is_macosx()

    def test_current_windows_includes_release(self):
        with patch("launcher.gestalt.platform.system", return_value="Windows"), patch(
            "launcher.gestalt.platform.release", return_value="10"
        ), patch("launcher.gestalt.platform.machine", return_value="AMD64"):
            env = RuntimeEnvironment.current(Locale("en"))
        assert env.os_name == "Windows 10"
        assert env.os_arch == "amd64"
