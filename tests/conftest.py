"""Shared fixtures: a runtime to resolve against, a cache in tmp_path, and file: URL helpers."""

import os
import zipfile

import pytest

from launcher.cache import FileCache
from launcher.gestalt import RuntimeEnvironment
from launcher.information import Locale


@pytest.fixture
def env():
    """A Linux x86_64 runtime with an en_US default locale."""
    return RuntimeEnvironment(os_name="Linux", os_arch="x86_64", locale=Locale("en", "US"))


@pytest.fixture
def cache(tmp_path):
    return FileCache(str(tmp_path / "cache"))


@pytest.fixture
def site(tmp_path):
    """Directory standing in for a web server; files are addressed by file: URLs."""
    root = tmp_path / "site"
    root.mkdir()
    return root


def write_file(path, data, mtime_ms=None):
    """Write data to path, optionally stamping its modification time (epoch ms)."""
    path.write_bytes(data)
    if mtime_ms is not None:
        ns = mtime_ms * 1_000_000
        os.utime(path, ns=(ns, ns))
    return path.as_uri()


def write_jar(path, members, mtime_ms=None):
    """Write a zip archive holding members ({name: bytes}) and return its file: URL."""
    with zipfile.ZipFile(path, "w") as archive:
        for name, data in members.items():
            archive.writestr(name, data)
    if mtime_ms is not None:
        ns = mtime_ms * 1_000_000
        os.utime(path, ns=(ns, ns))
    return path.as_uri()
