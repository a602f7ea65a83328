"""Exceptions raised by the cache layer."""


class CacheError(Exception):
    """The cache directory is unusable; no meaningful cache can exist."""


class CacheException(Exception):
    """Reading cached bytes failed, or an entry could not be defined."""
