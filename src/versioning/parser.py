"""Version string parsing utilities."""

from typing import Optional, Tuple

from .models import Version


def parse_versions(text: Optional[str]) -> Tuple[Version, ...]:
    """Parse a space-separated version string into version-ids.

    A missing or blank string yields a single empty version-id so that every
    reference always carries at least one version.
    """
    if text is None:
        return (Version.EMPTY,)
    versions = tuple(Version(tok) for tok in text.split(" ") if tok)
    return versions or (Version.EMPTY,)


def format_versions(versions: Tuple[Version, ...]) -> str:
    """Inverse of parse_versions, used for display and logging."""
    return " ".join(str(v) for v in versions)
