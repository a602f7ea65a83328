"""Version-id parsing and comparison."""

from .models import Modifier, Version
from .parser import format_versions, parse_versions

__all__ = ["Modifier", "Version", "format_versions", "parse_versions"]
