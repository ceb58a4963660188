"""Delimiter scanner: split text into literal and math segments.

Single left-to-right pass. At each unescaped ``$`` or ``\\``, tries to find
the matching end of a delimiter pair:

- ``$$``, ``\\[``, ``\\(``: forward search for the end token, counting
  unescaped start tokens as nesting and unescaped end tokens as closing.
  For ``$$`` start and end are the same token, so the first unescaped
  ``$$`` closes.
- ``$``: the next unescaped ``$`` that is not part of ``$$``.

A start with no matching end is ordinary text. A matched span is handed
to the classifier; spans that do not look like math stay literal.

End lookups for one text share a memo: backslash pairs are matched in one
pass and failed dollar searches are not repeated, so unbalanced input
scans in linear time.

Segments are exhaustive and contiguous: joining ``segment.raw`` over the
result reproduces the input exactly.

Example:
    >>> scan("Compute $x^2$ please.")
    [TextSegment(text='Compute '), MathSegment(raw='$x^2$', ...), TextSegment(text=' please.')]

"""

from __future__ import annotations

import re
from dataclasses import dataclass

from mathfix.classifier import Classifier, resolve_classifier
from mathfix.delimiters import (
    DISPLAY_BRACKETS,
    DISPLAY_DOLLARS,
    INLINE_DOLLARS,
    INLINE_PARENS,
    DelimiterSpec,
    strip_delimiters,
)
from mathfix.utils.logger import get_logger

logger = get_logger(__name__)

_CANDIDATE = re.compile(r"[$\\]")

_PAIR_TOKENS: dict[str, re.Pattern[str]] = {
    spec.start: re.compile(f"{re.escape(spec.start)}|{re.escape(spec.end)}")
    for spec in (DISPLAY_BRACKETS, INLINE_PARENS)
}


@dataclass(frozen=True, slots=True)
class TextSegment:
    """Literal text, copied verbatim into the output."""

    text: str

    @property
    def raw(self) -> str:
        return self.text


@dataclass(frozen=True, slots=True)
class MathSegment:
    """Delimited math. ``raw`` includes the delimiters."""

    raw: str
    delimiter: DelimiterSpec

    @property
    def display(self) -> bool:
        return self.delimiter.display

    @property
    def notation(self) -> str:
        """Notation between the delimiters, newlines collapsed and trimmed."""
        return strip_delimiters(self.raw, self.delimiter)


type Segment = TextSegment | MathSegment


@dataclass(frozen=True, slots=True)
class DelimiterMatch:
    """A matched delimiter pair spanning ``text[start:end]``."""

    start: int
    end: int
    delimiter: DelimiterSpec


def is_escaped(text: str, pos: int) -> bool:
    """Return True if text[pos] is preceded by an odd run of backslashes."""
    count = 0
    i = pos - 1
    while i >= 0 and text[i] == "\\":
        count += 1
        i -= 1
    return count % 2 == 1


def _find_nested_end(text: str, pos: int, spec: DelimiterSpec) -> int | None:
    """Find the end offset (exclusive) of the pair opened at pos."""
    depth = 1
    nests = spec.start != spec.end
    i = pos + len(spec.start)
    n = len(text)
    while i < n:
        if text.startswith(spec.end, i) and not is_escaped(text, i):
            depth -= 1
            if depth == 0:
                return i + len(spec.end)
            i += len(spec.end)
            continue
        if nests and text.startswith(spec.start, i) and not is_escaped(text, i):
            depth += 1
            i += len(spec.start)
            continue
        i += 1
    return None


def _find_single_dollar_end(text: str, pos: int) -> int | None:
    """Find the end offset (exclusive) of an inline ``$`` opened at pos."""
    i = pos + 1
    while True:
        j = text.find("$", i)
        if j == -1:
            return None
        if is_escaped(text, j):
            i = j + 1
            continue
        if text.startswith("$$", j):
            i = j + 2
            continue
        return j + 1


def _match_pairs(text: str, spec: DelimiterSpec) -> dict[int, int]:
    """Map each unescaped opener of a nesting pair to its end offset."""
    ends: dict[int, int] = {}
    opened: list[int] = []
    for token in _PAIR_TOKENS[spec.start].finditer(text):
        i = token.start()
        if is_escaped(text, i):
            continue
        if token.group() == spec.end:
            if opened:
                ends[opened.pop()] = token.end()
        else:
            opened.append(i)
    return ends


class _ScanMemo:
    """Search results for one text, shared by every lookup in a scan.

    Backslash pairs are matched for the whole text in one pass. Dollar
    searches that fail are remembered: once no end exists after an opener,
    none exists after any later opener of the same kind.
    """

    __slots__ = ("_exhausted", "_pairs", "text")

    def __init__(self, text: str) -> None:
        self.text = text
        self._pairs: dict[str, dict[int, int]] = {}
        self._exhausted: dict[str, int] = {}

    def pair_end(self, pos: int, spec: DelimiterSpec) -> int | None:
        table = self._pairs.get(spec.start)
        if table is None:
            table = self._pairs[spec.start] = _match_pairs(self.text, spec)
        return table.get(pos)

    def exhausted(self, pos: int, spec: DelimiterSpec) -> bool:
        start = self._exhausted.get(spec.start)
        return start is not None and pos >= start

    def mark_exhausted(self, pos: int, spec: DelimiterSpec) -> None:
        start = self._exhausted.get(spec.start)
        if start is None or pos < start:
            self._exhausted[spec.start] = pos


def _find_end(text: str, pos: int, spec: DelimiterSpec, memo: _ScanMemo | None) -> int | None:
    if spec.start != spec.end:
        if memo is not None:
            return memo.pair_end(pos, spec)
        return _find_nested_end(text, pos, spec)

    if memo is not None and memo.exhausted(pos, spec):
        return None
    if spec is DISPLAY_DOLLARS:
        end = _find_nested_end(text, pos, spec)
    else:
        end = _find_single_dollar_end(text, pos)
    if end is None and memo is not None:
        memo.mark_exhausted(pos, spec)
    return end


def find_delimiter(
    text: str, pos: int, memo: _ScanMemo | None = None
) -> DelimiterMatch | None:
    """Try to match a delimiter pair starting at pos.

    Returns None when text[pos] cannot start a delimiter, is escaped, or
    has no matching end. Repeated lookups over the same text pass a memo
    so a scan stays linear on unbalanced input.
    """
    if pos >= len(text) or is_escaped(text, pos):
        return None

    ch = text[pos]
    if ch == "\\":
        for spec in (DISPLAY_BRACKETS, INLINE_PARENS):
            if text.startswith(spec.start, pos):
                end = _find_end(text, pos, spec, memo)
                if end is None:
                    return None
                return DelimiterMatch(pos, end, spec)
        return None

    if ch == "$":
        if text.startswith("$$", pos):
            end = _find_end(text, pos, DISPLAY_DOLLARS, memo)
            if end is None:
                # An unclosed $$ is literal; the scanner retries at pos + 1
                return None
            return DelimiterMatch(pos, end, DISPLAY_DOLLARS)
        end = _find_end(text, pos, INLINE_DOLLARS, memo)
        if end is None:
            return None
        return DelimiterMatch(pos, end, INLINE_DOLLARS)

    return None


def scan(text: str, classifier: Classifier | None = None) -> list[Segment]:
    """Segment text into literal and math segments in document order.

    Adjacent literal text is coalesced, so text without renderable math
    yields a single TextSegment (or nothing for empty text).

    Args:
        text: Text to scan (a merged run, possibly reclassified)
        classifier: Math heuristic for the final check on each span

    Returns:
        List of TextSegment and MathSegment

    """
    is_math = resolve_classifier(classifier)
    memo = _ScanMemo(text)
    segments: list[Segment] = []
    literal_start = 0
    pos = 0
    n = len(text)

    while pos < n:
        candidate = _CANDIDATE.search(text, pos)
        if candidate is None:
            break
        pos = candidate.start()
        match = find_delimiter(text, pos, memo)
        if match is None:
            pos += 1
            continue

        raw = text[match.start : match.end]
        if is_math(raw):
            if pos > literal_start:
                segments.append(TextSegment(text[literal_start:pos]))
            segments.append(MathSegment(raw, match.delimiter))
            literal_start = match.end
        else:
            logger.debug("Delimited span does not look like math: %r", raw)
        pos = match.end

    if literal_start < n:
        segments.append(TextSegment(text[literal_start:]))
    return segments


def find_spans(text: str) -> list[DelimiterMatch]:
    """Return every delimiter pair the scanner would match, classifier aside."""
    spans: list[DelimiterMatch] = []
    memo = _ScanMemo(text)
    pos = 0
    while True:
        candidate = _CANDIDATE.search(text, pos)
        if candidate is None:
            return spans
        pos = candidate.start()
        match = find_delimiter(text, pos, memo)
        if match is None:
            pos += 1
            continue
        spans.append(match)
        pos = match.end


__all__ = [
    "DelimiterMatch",
    "MathSegment",
    "Segment",
    "TextSegment",
    "find_delimiter",
    "find_spans",
    "is_escaped",
    "scan",
]
