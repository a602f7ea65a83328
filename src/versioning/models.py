"""Version-id model used by references and descriptor specifications.

A version-id is parsed according to::

    version-id ::= string ( separator string ) *
    string     ::= char ( char ) *
    char       ::= any character except a space, a separator or a modifier
    separator  ::= "." | "-" | "_"
    modifier   ::= "+" | "*"

The "+" modifier indicates a greater-than-or-equal match and "*" a prefix
match. "1.3.0-rc2_001" becomes the tuple (1, 3, 0, rc2, 001).
"""

from enum import Enum
import re
from typing import List, Optional, Tuple

_SEPARATORS = re.compile(r"[._-]")


class Modifier(Enum):
    """Trailing modifier of a version-id."""
    NONE = ""
    PLUS = "+"
    SPLAT = "*"


def _compare_elements(a: str, b: str) -> int:
    """Compare two elements numerically when both are integers, else lexicographically."""
    try:
        ia, ib = int(a), int(b)
    except ValueError:
        ia, ib = None, None
    if ia is not None and ib is not None:
        return (ia > ib) - (ia < ib)
    return (a > b) - (a < b)


def _compare_tuples(a: List[str], b: List[str]) -> int:
    """Compare two normalized tuples head first, recursing on the tails while heads match."""
    if not a or not b:
        return (len(a) > len(b)) - (len(a) < len(b))
    result = _compare_elements(a[0], b[0])
    if result == 0 and len(a) > 1 and len(b) > 1:
        return _compare_tuples(a[1:], b[1:])
    return result


def _normalized(elements: Tuple[str, ...], length: int) -> List[str]:
    """Pad with "0" or truncate so the tuple has exactly length elements."""
    padded = list(elements[:length])
    padded.extend("0" for _ in range(length - len(padded)))
    return padded


class Version:
    """An immutable version-id with an optional modifier."""

    __slots__ = ("_text", "_prefix", "_modifier", "_elements")

    EMPTY: "Version"

    def __init__(self, text: str):
        if text is None:
            raise ValueError("null string for version")

        end = text.find(" ")
        if end == -1:
            end = len(text)
        text = text[:end]

        if text and text[-1] in (Modifier.PLUS.value, Modifier.SPLAT.value):
            prefix, modifier = text[:-1], Modifier(text[-1])
        else:
            prefix, modifier = text, Modifier.NONE

        self._text = text
        self._prefix = prefix
        self._modifier = modifier
        self._elements = tuple(tok for tok in _SEPARATORS.split(prefix) if tok)

    @property
    def prefix(self) -> str:
        """The version-id without its modifier."""
        return self._prefix

    @property
    def modifier(self) -> Modifier:
        return self._modifier

    @property
    def elements(self) -> Tuple[str, ...]:
        return self._elements

    def compare_to(self, other: Optional["Version"]) -> int:
        """Compare with another version-id, honoring both modifiers.

        Returns:
            -1, 0 or 1. A missing other version-id compares as smaller.
        """
        if other is None:
            return 1

        length = max(len(self._elements), len(other._elements))
        if self._modifier is Modifier.SPLAT and length > len(self._elements):
            length = len(self._elements)
        if other._modifier is Modifier.SPLAT and length > len(other._elements):
            length = len(other._elements)

        result = _compare_tuples(
            _normalized(self._elements, length),
            _normalized(other._elements, length),
        )

        # "+" only turns the side it is on from smaller into equal
        if result < 0 and self._modifier is Modifier.PLUS:
            result = 0
        if result > 0 and other._modifier is Modifier.PLUS:
            result = 0
        return result

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare_to(other) == 0

    def __ne__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare_to(other) != 0

    def __lt__(self, other: "Version") -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare_to(other) < 0

    def __le__(self, other: "Version") -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare_to(other) <= 0

    def __gt__(self, other: "Version") -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare_to(other) > 0

    def __ge__(self, other: "Version") -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare_to(other) >= 0

    # Modifier equality is not transitive ("1.0+" == "1.5" == "1.5*" ...),
    # so there is no hash consistent with __eq__.
    __hash__ = None  # type: ignore[assignment]

    def __str__(self) -> str:
        return self._text

    def __repr__(self) -> str:
        return f"Version({self._text!r})"


Version.EMPTY = Version("")
