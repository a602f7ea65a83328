"""The ``<jnlp>`` element's own attributes, kept as a descriptor's context."""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

from constants import Constants
from launcher.reference import Reference
from versioning import Version, format_versions, parse_versions

DEFAULT_JNLP_VERSIONS: Tuple[Version, ...] = parse_versions(Constants.DEFAULT_SPEC_VERSIONS)


def fix_codebase(codebase: Optional[str]) -> Optional[str]:
    """Codebases always end with a slash so relative hrefs resolve beneath them."""
    if codebase is None or codebase.endswith("/"):
        return codebase
    return codebase + "/"


class JNLPSpecification:
    """Reference, codebase and spec versions declared by a manifest."""

    def __init__(
        self,
        reference: Optional[Reference],
        codebase: Optional[str],
        specification: Optional[Sequence[Version]] = None,
    ):
        self._reference = reference
        self._codebase = codebase
        self._specification = tuple(specification) if specification else None

    @property
    def reference(self) -> Optional[Reference]:
        """Where the manifest says it lives (its href), if declared."""
        return self._reference

    @property
    def codebase(self) -> Optional[str]:
        """Declared codebase, else the manifest's own href."""
        if self._codebase is not None:
            return self._codebase
        return self._reference.url if self._reference is not None else None

    @property
    def specification(self) -> Tuple[Version, ...]:
        return self._specification or DEFAULT_JNLP_VERSIONS

    @property
    def jnlp_name(self) -> Optional[str]:
        if self._reference is None:
            return None
        return self._reference.url.rsplit("/", 1)[-1]

    def __repr__(self) -> str:
        spec = format_versions(self._specification) if self._specification else ""
        return f"JNLPSpecification[ref={self._reference!r},codebase={self._codebase or ''},spec=({spec})]"
