"""Protected spans: detection, overlap resolution, placeholder substitution.

Every detector is a pure ``text -> list[ProtectedSpan]`` function run against
the original string. Conflicts between detectors are settled afterwards by
:func:`resolve_overlaps`, and the surviving spans are swapped for placeholder
tokens that the punctuation filter leaves alone.
"""

from __future__ import annotations

import bisect
import dataclasses
import enum
import re

from punctuation_normalizer.options import NormalizationOptions


class SpanKind(enum.Enum):
    """Kinds of protected span."""

    EMAIL = "email"
    URL = "url"
    CONTRACTION = "contraction"
    HYPHEN_COMPOUND = "hyphen"


# Lower wins. Emails and URLs share a rank: an address inside a URL
# (https://user@host.com/x) loses to the URL that starts before it.
_PRIORITY = {
    SpanKind.EMAIL: 0,
    SpanKind.URL: 0,
    SpanKind.CONTRACTION: 1,
    SpanKind.HYPHEN_COMPOUND: 2,
}

_PLACEHOLDER_TAGS = {
    SpanKind.EMAIL: "EMAIL",
    SpanKind.URL: "URL",
    SpanKind.CONTRACTION: "CONTRACTION",
    SpanKind.HYPHEN_COMPOUND: "HYPHEN",
}

# Private-use code points: not letters, digits, whitespace or punctuation.
PLACEHOLDER_START = "\ue000"
PLACEHOLDER_END = "\ue001"

_PLACEHOLDER_RE = re.compile(
    re.escape(PLACEHOLDER_START) + r"[A-Z]+[a-z]+" + re.escape(PLACEHOLDER_END)
)


@dataclasses.dataclass(frozen=True, slots=True)
class ProtectedSpan:
    """A run of the original text that must come out of the filter unchanged."""

    kind: SpanKind
    start: int         # offset into the ORIGINAL text
    end: int           # exclusive
    text: str

    def overlaps(self, other: ProtectedSpan) -> bool:
        return self.start < other.end and other.start < self.end


# --- Detection patterns ---

_EMAIL_RE = re.compile(
    r"(?<![A-Za-z0-9._%+\-])"
    r"[A-Za-z0-9._%+\-]+@[A-Za-z0-9\-]+(?:\.[A-Za-z0-9\-]+)*\.[A-Za-z]{2,}"
)

_URL_TLDS = (
    "com", "org", "net", "edu", "gov", "mil", "int", "co", "uk", "de", "fr",
    "jp", "au", "us", "ru", "ch", "it", "nl", "se", "no", "es", "info", "biz",
    "name", "io", "ly", "app", "dev",
)

# A bare domain may not begin in the middle of a word or of an email address.
_URL_RE = re.compile(
    r"|".join([
        r"https?://\S+",
        r"www\.\S+",
        r"(?<![\w@.%+\-])[A-Za-z0-9][A-Za-z0-9\-]*(?:\.[A-Za-z0-9\-]+)*"
        r"\.(?:" + "|".join(_URL_TLDS) + r")\b\S*",
    ]),
    re.IGNORECASE,
)

_URL_TRAILING = ".,;:!?'\")]}>"
_URL_BRACKETS = {")": "(", "]": "[", "}": "{", ">": "<"}

_CONTRACTION_RE = re.compile(
    r"\b\w+(?:(?:['\u2019]\w+)+\b|['\u2019](?!\w))"
)

_HYPHEN_COMPOUND_RE = re.compile(r"\b\w+(?:[-_]\w+)+\b")


def _trim_url(url: str) -> str:
    """Drop sentence punctuation glued to the end of a URL.

    A closing bracket stays when the URL itself opened it, as in
    ``https://en.wikipedia.org/wiki/Python_(language)``.
    """
    while url and url[-1] in _URL_TRAILING:
        opening = _URL_BRACKETS.get(url[-1])
        if opening and url.count(opening) >= url.count(url[-1]):
            break
        url = url[:-1]
    return url


def _find(pattern: re.Pattern[str], kind: SpanKind, text: str) -> list[ProtectedSpan]:
    return [
        ProtectedSpan(kind=kind, start=m.start(), end=m.end(), text=m.group(0))
        for m in pattern.finditer(text)
    ]


def find_emails(text: str) -> list[ProtectedSpan]:
    """Find ``local@domain.tld`` addresses."""
    return _find(_EMAIL_RE, SpanKind.EMAIL, text)


def find_urls(text: str) -> list[ProtectedSpan]:
    """Find http(s) URLs, ``www.`` hosts and bare domains with a known TLD.

    A match that is no longer a URL once its trailing punctuation is gone
    (``http://.`` leaves ``http://``) is not protected.
    """
    spans: list[ProtectedSpan] = []
    for m in _URL_RE.finditer(text):
        url = _trim_url(m.group(0))
        if _URL_RE.fullmatch(url):
            spans.append(ProtectedSpan(
                kind=SpanKind.URL,
                start=m.start(),
                end=m.start() + len(url),
                text=url,
            ))
    return spans


def find_contractions(text: str) -> list[ProtectedSpan]:
    """Find contractions (``don't``, ``rock'n'roll``) and possessives (``cats'``)."""
    return _find(_CONTRACTION_RE, SpanKind.CONTRACTION, text)


def find_hyphen_compounds(text: str) -> list[ProtectedSpan]:
    """Find ``well-being``, ``state-of-the-art`` and ``snake_case`` style words."""
    return _find(_HYPHEN_COMPOUND_RE, SpanKind.HYPHEN_COMPOUND, text)


def detect_spans(text: str, options: NormalizationOptions) -> list[ProtectedSpan]:
    """Run every detector enabled by *options*. Results may overlap."""
    spans: list[ProtectedSpan] = []
    if options.keep_email_url:
        spans.extend(find_emails(text))
        spans.extend(find_urls(text))
    if options.keep_apostrophes:
        spans.extend(find_contractions(text))
    if options.keep_hyphens:
        spans.extend(find_hyphen_compounds(text))
    return spans


def resolve_overlaps(spans: list[ProtectedSpan]) -> list[ProtectedSpan]:
    """Pick a non-overlapping subset of *spans*.

    Spans are considered in priority order (email/URL, contraction, hyphen
    compound), then earliest first, then longest first. A span that overlaps
    anything already accepted is dropped whole.

    Returns:
        The accepted spans sorted by start offset.
    """
    accepted: list[ProtectedSpan] = []
    starts: list[int] = []

    for span in sorted(spans, key=lambda s: (_PRIORITY[s.kind], s.start, s.start - s.end)):
        i = bisect.bisect_left(starts, span.start)
        if i > 0 and accepted[i - 1].overlaps(span):
            continue
        if i < len(accepted) and accepted[i].overlaps(span):
            continue
        starts.insert(i, span.start)
        accepted.insert(i, span)

    return accepted


def _ordinal_letters(index: int) -> str:
    """0 -> 'a', 25 -> 'z', 26 -> 'aa'. Letters survive keep_numbers=False."""
    letters: list[str] = []
    index += 1
    while index:
        index, rem = divmod(index - 1, 26)
        letters.append(chr(ord("a") + rem))
    return "".join(reversed(letters))


def placeholder_for(kind: SpanKind, ordinal: int) -> str:
    """Build the placeholder token for the *ordinal*-th span of *kind*."""
    return f"{PLACEHOLDER_START}{_PLACEHOLDER_TAGS[kind]}{_ordinal_letters(ordinal)}{PLACEHOLDER_END}"


def protect(text: str, spans: list[ProtectedSpan]) -> tuple[str, dict[str, str]]:
    """Replace each span with its placeholder token.

    Args:
        text: The original text the spans were detected in.
        spans: Non-overlapping spans, sorted by start (see :func:`resolve_overlaps`).

    Returns:
        The substituted text and the placeholder -> original text map.
    """
    counters: dict[SpanKind, int] = {}
    tokens: list[str] = []
    for span in spans:
        ordinal = counters.get(span.kind, 0)
        counters[span.kind] = ordinal + 1
        tokens.append(placeholder_for(span.kind, ordinal))

    placeholders: dict[str, str] = {}
    parts: list[str] = []
    cursor = len(text)

    # Right to left, so offsets of the spans still to come stay valid.
    for span, token in sorted(zip(spans, tokens), key=lambda p: p[0].start, reverse=True):
        parts.append(text[span.end:cursor])
        parts.append(token)
        placeholders[token] = span.text
        cursor = span.start
    parts.append(text[:cursor])

    return "".join(reversed(parts)), placeholders


def restore(text: str, placeholders: dict[str, str]) -> str:
    """Put the original text back wherever a known placeholder token appears."""
    if not placeholders:
        return text
    return _PLACEHOLDER_RE.sub(lambda m: placeholders.get(m.group(0), m.group(0)), text)
