"""Punctuation statistics and keep-list validation."""

from __future__ import annotations

import dataclasses
import math

from punctuation_normalizer.classify import is_punctuation
from punctuation_normalizer.options import DEFAULT_OPTIONS, NormalizationOptions
from punctuation_normalizer.spans import (
    find_contractions,
    find_emails,
    find_hyphen_compounds,
    find_urls,
)

# Characters that would break line-based whitespace normalization.
_KEEP_LIST_ESCAPES = {"\n": "\\n", "\r": "\\r", "\t": "\\t"}


@dataclasses.dataclass(frozen=True, slots=True)
class ProtectedCounts:
    """How many protectable elements the original text contains."""

    emails: int = 0
    urls: int = 0
    contractions: int = 0
    hyphens: int = 0


@dataclasses.dataclass(frozen=True, slots=True)
class PunctuationStats:
    """Before/after figures for one normalization."""

    original_length: int                   # len(original input)
    result_length: int                     # len(normalized text)
    characters_removed: int                # original_length - result_length
    reduction_percentage: int              # rounded, 0 for empty input
    punctuation_found: tuple[str, ...]     # distinct, sorted
    protected_elements: ProtectedCounts


@dataclasses.dataclass(frozen=True, slots=True)
class KeepListValidation:
    is_valid: bool
    invalid_chars: tuple[str, ...]         # escape sequences, e.g. "\\n"


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def compute_stats(
    original_text: str,
    result_text: str,
    options: NormalizationOptions = DEFAULT_OPTIONS,
) -> PunctuationStats:
    """Compute statistics for an (original, normalized) pair.

    The normalization is not re-run: lengths come from the two strings, and
    protected elements are counted by running the detectors enabled in
    *options* over *original_text*. ``punctuation_found`` lists every
    punctuation character of the original regardless of options.

    Args:
        original_text: Text before normalization.
        result_text: Text after normalization.
        options: The options the result was produced with.
    """
    original_length = len(original_text)
    result_length = len(result_text)
    characters_removed = original_length - result_length
    reduction_percentage = (
        round_half_up(characters_removed / original_length * 100)
        if original_length > 0 else 0
    )

    punctuation_found = tuple(sorted({ch for ch in original_text if is_punctuation(ch)}))

    protected = ProtectedCounts(
        emails=len(find_emails(original_text)) if options.keep_email_url else 0,
        urls=len(find_urls(original_text)) if options.keep_email_url else 0,
        contractions=len(find_contractions(original_text)) if options.keep_apostrophes else 0,
        hyphens=len(find_hyphen_compounds(original_text)) if options.keep_hyphens else 0,
    )

    return PunctuationStats(
        original_length=original_length,
        result_length=result_length,
        characters_removed=characters_removed,
        reduction_percentage=reduction_percentage,
        punctuation_found=punctuation_found,
        protected_elements=protected,
    )


def validate_keep_list(custom_keep_list: str) -> KeepListValidation:
    """Check a proposed custom keep-list for line-break and tab characters.

    Returns:
        A :class:`KeepListValidation`; ``invalid_chars`` holds the offending
        characters as escape sequences, in input order.
    """
    invalid = tuple(_KEEP_LIST_ESCAPES[ch] for ch in custom_keep_list if ch in _KEEP_LIST_ESCAPES)
    return KeepListValidation(is_valid=not invalid, invalid_chars=invalid)
