"""Version parsing and ordering for CPE version strings.

Versions are split into numeric and textual tokens. Numeric tokens compare as
integers, textual tokens compare case-insensitively, and where a textual token
meets a numeric one the textual token sorts first (``2.0.beta < 2.0.0``). A
version that is a strict prefix of another is the smaller one.

Parsing never fails: text that carries no version (``None``, empty, ``-``,
``*`` or anything without a digit) becomes :data:`UNSPECIFIED`, which renders
as ``-``. The sentinel has no tokens and is therefore ordered before every
parsed version; its "matches everything" meaning is applied by the matching
engine, not by the ordering.
"""

import re
from functools import lru_cache, total_ordering
from typing import Any, Optional, Tuple, Union

Token = Union[int, str]

UNSPECIFIED_TEXT = "-"

# Component values that carry no version information.
_NO_VALUE = frozenset({"", "-", "*"})

# Digit runs or letter runs (any script); everything else separates tokens.
_TOKEN_PATTERN = re.compile(r"(\d+)|([^\W\d_]+)")


def _token_key(token: Token) -> Tuple[int, Any]:
    if isinstance(token, int):
        return (1, token)
    return (0, token)


@lru_cache(maxsize=4096)
def _tokenize(text: str) -> Tuple[Token, ...]:
    tokens = []
    has_digit = False
    for number, word in _TOKEN_PATTERN.findall(text):
        if number:
            try:
                tokens.append(int(number))
            except ValueError:
                # digit run beyond the interpreter's int conversion limit
                return ()
            has_digit = True
        else:
            tokens.append(word.casefold())
    if not has_digit:
        return ()
    return tuple(tokens)


@total_ordering
class Version:
    """An immutable, totally ordered version."""

    __slots__ = ("_text", "_tokens", "_key")

    def __init__(self, text: str, tokens: Tuple[Token, ...]) -> None:
        self._text = text
        self._tokens = tokens
        self._key = tuple(_token_key(token) for token in tokens)

    @classmethod
    def parse(cls, text: Optional[str]) -> "Version":
        """Parse version text; anything unusable yields :data:`UNSPECIFIED`."""
        if text is None or not isinstance(text, str):
            return UNSPECIFIED
        text = text.strip()
        if text in _NO_VALUE:
            return UNSPECIFIED
        tokens = _tokenize(text)
        if not tokens:
            return UNSPECIFIED
        return cls(text, tokens)

    @classmethod
    def from_parts(cls, version: Optional[str], update: Optional[str] = None) -> "Version":
        """Parse a CPE version, appending the update component when it has a value.

        ``from_parts("2.0", "sp1")`` parses ``"2.0.sp1"``; without a usable
        version the update is ignored and the result is :data:`UNSPECIFIED`.
        """
        if version is None or version.strip() in _NO_VALUE:
            return UNSPECIFIED
        if update is not None and update.strip() not in _NO_VALUE:
            return cls.parse(f"{version.strip()}.{update.strip()}")
        return cls.parse(version)

    @property
    def text(self) -> str:
        return self._text

    @property
    def tokens(self) -> Tuple[Token, ...]:
        """Normalised tokens: ints for digit runs, case-folded strings otherwise."""
        return self._tokens

    @property
    def is_unspecified(self) -> bool:
        return not self._tokens

    @property
    def major(self) -> Optional[Token]:
        """First token, or None for the sentinel."""
        return self._tokens[0] if self._tokens else None

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._key == other._key

    def __lt__(self, other: Any) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._key < other._key

    def __hash__(self) -> int:
        return hash(self._key)

    def __str__(self) -> str:
        return self._text

    def __repr__(self) -> str:
        return f"Version({self._text!r})"


UNSPECIFIED = Version(UNSPECIFIED_TEXT, ())


def parse_version(text: Optional[str]) -> Version:
    """Module-level shortcut for :meth:`Version.parse`."""
    return Version.parse(text)


def compare(a: Version, b: Version) -> int:
    """Return -1, 0 or 1 as ``a`` is less than, equal to or greater than ``b``."""
    if a == b:
        return 0
    return -1 if a < b else 1


def same_major(a: Version, b: Version) -> bool:
    """True when both versions are parsed and share their first token."""
    if a.is_unspecified or b.is_unspecified:
        return False
    return a._key[0] == b._key[0]
