"""Character classification shared by the filter and the statistics."""

from __future__ import annotations

import string
import unicodedata

_ASCII_PUNCTUATION = frozenset(string.punctuation)

LINE_BREAKS = frozenset("\r\n")


def is_punctuation(ch: str) -> bool:
    """True for Unicode general category P* and for ASCII punctuation.

    The ASCII set adds symbols such as ``$``, ``+`` and ``^`` that Unicode
    files under S* rather than P*.
    """
    return ch in _ASCII_PUNCTUATION or unicodedata.category(ch).startswith("P")


def is_line_break(ch: str) -> bool:
    return ch in LINE_BREAKS
