"""Punctuation Normalizer - Strip punctuation while keeping emails, URLs, contractions and compounds."""

from punctuation_normalizer.normalizer import (
    NormalizationResult,
    normalize,
    normalize_file,
    normalize_stream,
    normalize_with_stats,
)
from punctuation_normalizer.options import DEFAULT_OPTIONS, NormalizationOptions
from punctuation_normalizer.spans import ProtectedSpan, SpanKind, detect_spans
from punctuation_normalizer.stats import (
    KeepListValidation,
    ProtectedCounts,
    PunctuationStats,
    compute_stats,
    validate_keep_list,
)

__all__ = [
    "normalize",
    "normalize_with_stats",
    "normalize_stream",
    "normalize_file",
    "compute_stats",
    "validate_keep_list",
    "detect_spans",
    "NormalizationOptions",
    "DEFAULT_OPTIONS",
    "NormalizationResult",
    "PunctuationStats",
    "ProtectedCounts",
    "KeepListValidation",
    "ProtectedSpan",
    "SpanKind",
]
