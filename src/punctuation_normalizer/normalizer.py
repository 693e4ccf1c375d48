"""Core normalization pipeline."""

from __future__ import annotations

import dataclasses
import re
from collections.abc import Generator, Iterable

from punctuation_normalizer.classify import is_line_break, is_punctuation
from punctuation_normalizer.options import DEFAULT_OPTIONS, NormalizationOptions
from punctuation_normalizer.spans import detect_spans, protect, resolve_overlaps, restore
from punctuation_normalizer.stats import PunctuationStats, compute_stats

_BLANK_LINES_RE = re.compile(r"\n{3,}")


@dataclasses.dataclass(frozen=True, slots=True)
class NormalizationResult:
    """Normalized text together with its statistics."""

    text: str
    stats: PunctuationStats

    def __str__(self) -> str:
        return self.text


def _keeps(ch: str, keep_chars: frozenset[str], options: NormalizationOptions) -> bool:
    """Decide whether a single character survives the filter."""
    if ch in keep_chars:
        return True
    if ch.isdecimal():
        return options.keep_numbers
    if options.keep_line_breaks and is_line_break(ch):
        return True
    if ch.isspace() or ch.isalpha():
        return True
    return not is_punctuation(ch)


def _joins_words(left: str, right: str) -> bool:
    """A dropped run between *left* and *right* becomes a space.

    ``Don't`` reads as ``Don t`` once the apostrophe is gone, while the dot in
    ``29.99`` simply disappears.
    """
    if left.isspace() or right.isspace():
        return False
    return not (left.isdecimal() and right.isdecimal())


def _strip_punctuation(text: str, options: NormalizationOptions) -> str:
    """Character filter over text in which protected spans are placeholders."""
    keep_chars = frozenset(options.custom_keep_list)
    kept: list[str] = []
    dropped = False

    for ch in text:
        if not _keeps(ch, keep_chars, options):
            dropped = True
            continue
        if dropped and kept and _joins_words(kept[-1], ch):
            kept.append(" ")
        kept.append(ch)
        dropped = False

    return "".join(kept)


def _remove_punctuation(text: str, options: NormalizationOptions) -> str:
    """Detect, protect, filter and restore. Whitespace is left as is."""
    spans = resolve_overlaps(detect_spans(text, options))
    working, placeholders = protect(text, spans)
    return restore(_strip_punctuation(working, options), placeholders)


def _normalize_line(line: str) -> str:
    return " ".join(line.split())


def _normalize_whitespace(text: str, keep_line_breaks: bool) -> str:
    """Collapse whitespace runs.

    With line breaks kept, each line is collapsed and trimmed on its own and
    at most one blank line is left between paragraphs. Otherwise the whole
    text becomes a single space-separated line.
    """
    if not keep_line_breaks:
        return _normalize_line(text)
    lines = [_normalize_line(line) for line in text.split("\n")]
    return _BLANK_LINES_RE.sub("\n\n", "\n".join(lines))


def normalize(text: str, options: NormalizationOptions = DEFAULT_OPTIONS) -> str:
    """Remove punctuation from *text* while keeping what *options* protect.

    Emails, URLs, contractions and hyphenated compounds are detected on the
    original text, swapped for placeholder tokens, and put back after the
    punctuation filter has run. Characters in ``options.custom_keep_list``
    always survive.

    Args:
        text: Input text.
        options: What to keep. Defaults to :data:`DEFAULT_OPTIONS`.

    Returns:
        The normalized text; ``""`` for empty input.
    """
    if not text:
        return ""
    return _normalize_whitespace(_remove_punctuation(text, options), options.keep_line_breaks)


def normalize_with_stats(
    text: str,
    options: NormalizationOptions = DEFAULT_OPTIONS,
) -> NormalizationResult:
    """Normalize *text* and compute :class:`PunctuationStats` for the pair."""
    result = normalize(text, options)
    return NormalizationResult(text=result, stats=compute_stats(text, result, options))


class _WhitespaceJoiner:
    """Incremental form of :func:`_normalize_whitespace`.

    Fed punctuation-free pieces in order, it emits exactly what
    :func:`_normalize_whitespace` would produce for their concatenation,
    provided every piece but the last ends on a line boundary (line breaks
    kept) or on whitespace (line breaks dropped).
    """

    def __init__(self, keep_line_breaks: bool) -> None:
        self.keep_line_breaks = keep_line_breaks
        self._started = False       # any word seen yet
        self._pending_newlines = 0

    def feed(self, piece: str) -> str:
        if not self.keep_line_breaks:
            words = piece.split()
            if not words:
                return ""
            out = " ".join(words)
            if self._started:
                out = " " + out
            self._started = True
            return out

        # Every piece but the last ends in "\n", so its trailing "" is the
        # empty start of the next piece's first line.
        out: list[str] = []
        for i, line in enumerate(piece.split("\n")):
            if i:
                self._pending_newlines += 1
            normalized = _normalize_line(line)
            if normalized:
                out.append("\n" * min(self._pending_newlines, 2))
                out.append(normalized)
                self._pending_newlines = 0
        return "".join(out)

    def finish(self) -> str:
        if not self.keep_line_breaks:
            return ""
        return "\n" * min(self._pending_newlines, 2)


def normalize_stream(
    chunks: Iterable[str],
    options: NormalizationOptions = DEFAULT_OPTIONS,
    buffer_size: int = 4096,
) -> Generator[str, None, None]:
    """Normalize text from an iterable of chunks, yielding normalized pieces.

    Chunks are buffered until *buffer_size* characters are available and then
    cut at the last line break (or, with ``keep_line_breaks=False``, the last
    whitespace), so no protected span is ever split between two pieces. The
    concatenated output equals ``normalize("".join(chunks), options)``.

    Args:
        chunks: Iterable of text chunks.
        options: What to keep.
        buffer_size: Target buffer size before a piece is processed.

    Yields:
        Normalized text pieces.

    Raises:
        ValueError: If *buffer_size* is not positive.

    Example:
        >>> "".join(normalize_stream(["Hello, ", "world!"]))
        'Hello world'
    """
    if buffer_size <= 0:
        raise ValueError(f"buffer_size must be positive, got {buffer_size}")

    joiner = _WhitespaceJoiner(options.keep_line_breaks)
    buffer: list[str] = []
    buffer_len = 0

    for chunk in chunks:
        if not chunk:
            continue

        buffer.append(chunk)
        buffer_len += len(chunk)

        if buffer_len < buffer_size:
            continue

        text = "".join(buffer)
        if options.keep_line_breaks:
            cut = text.rfind("\n") + 1
        else:
            cut = next((i + 1 for i in range(len(text) - 1, -1, -1) if text[i].isspace()), 0)

        if cut > 0:
            out = joiner.feed(_remove_punctuation(text[:cut], options))
            if out:
                yield out
            buffer = [text[cut:]]
            buffer_len = len(buffer[0])

    text = "".join(buffer)
    out = joiner.feed(_remove_punctuation(text, options)) if text else ""
    out += joiner.finish()
    if out:
        yield out


def normalize_file(
    file_path: str,
    options: NormalizationOptions = DEFAULT_OPTIONS,
    chunk_size: int = 8192,
    encoding: str = "utf-8",
) -> Generator[str, None, None]:
    """Normalize a file in streaming fashion, yielding normalized pieces.

    Raises:
        FileNotFoundError: If the file does not exist.
        OSError: If there's an error reading the file.
    """
    def read_chunks() -> Generator[str, None, None]:
        with open(file_path, encoding=encoding) as f:
            while True:
                chunk = f.read(chunk_size)
                if not chunk:
                    break
                yield chunk

    yield from normalize_stream(read_chunks(), options=options, buffer_size=chunk_size)
