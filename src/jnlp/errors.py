"""Descriptor parsing errors."""

from typing import Optional


class DescriptorParseError(Exception):
    """A manifest could not be turned into a descriptor.

    Attributes:
        tag: Name of the tag being processed when parsing failed, if any.
        message: Human-readable cause.
    """

    def __init__(self, message: str, tag: Optional[str] = None):
        self.tag = tag
        self.message = message
        super().__init__(f"<{tag}>: {message}" if tag else message)
