"""JNLP manifest parsing.

- tags.py: recognized tags and their nesting rules
- handler.py: the state machine that assembles a Descriptor
- parser.py: URL and cache-backed front-ends plus cache registration
"""

from .errors import DescriptorParseError
from .handler import JNLPContentHandler
from .parser import (
    CachedJNLPParser,
    JNLPParser,
    URLJNLPParser,
    get_entry_descriptor,
    media_from_content_type,
    parse_descriptor,
    prepare_entry,
    update_meta_info,
)
from .specification import JNLPSpecification

__all__ = [
    "CachedJNLPParser",
    "DescriptorParseError",
    "JNLPContentHandler",
    "JNLPParser",
    "JNLPSpecification",
    "URLJNLPParser",
    "get_entry_descriptor",
    "media_from_content_type",
    "parse_descriptor",
    "prepare_entry",
    "update_meta_info",
]
