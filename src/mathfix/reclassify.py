"""Bracket reclassification pre-pass.

Chat and note-taking tools often emit math as plain ``(x^2)`` or
``[\\int_0^1 f]`` groups. This pass promotes such groups to the
backslash-delimited forms ``\\(...\\)`` and ``\\[...\\]`` when their interior
looks like math, and leaves prose brackets alone.

Steps:
1. Every span the scanner would already match is swapped for a
   placeholder, so genuine math is never rewritten.
2. Each unescaped ``(`` or ``[`` is paired with its first balanced close of
   the same kind. Groups whose interior looks like math are rewritten;
   the others are left as punctuation and their inner groups are still
   examined.
3. Placeholders are swapped back, each exactly once.

Placeholders are built from two private-use characters that do not occur
in the input, so they cannot collide with real text.

The only edit this pass makes is inserting backslashes, so the order and
number of newlines in the text never change.
"""

from __future__ import annotations

import re

from mathfix.classifier import Classifier, resolve_classifier
from mathfix.scanner import find_spans, is_escaped
from mathfix.utils.logger import get_logger

logger = get_logger(__name__)

_PAIRS: dict[str, str] = {"(": ")", "[": "]"}

# Unicode private use area (BMP)
_SENTINEL_RANGE = range(0xE000, 0xF900)


def _pick_sentinels(text: str) -> tuple[str, str] | None:
    """Return two private-use characters absent from text."""
    free: list[str] = []
    for codepoint in _SENTINEL_RANGE:
        char = chr(codepoint)
        if char not in text:
            free.append(char)
            if len(free) == 2:
                return free[0], free[1]
    return None


def _protect(text: str, open_mark: str, close_mark: str) -> tuple[str, list[str]]:
    """Replace delimited spans with indexed placeholders."""
    originals: list[str] = []
    parts: list[str] = []
    last = 0
    for span in find_spans(text):
        parts.append(text[last : span.start])
        parts.append(f"{open_mark}{len(originals)}{close_mark}")
        originals.append(text[span.start : span.end])
        last = span.end
    parts.append(text[last:])
    return "".join(parts), originals


def _find_balanced_close(text: str, pos: int, opener: str, closer: str) -> int | None:
    """Index of the close bracket balancing text[pos], or None."""
    depth = 0
    for i in range(pos, len(text)):
        ch = text[i]
        if ch != opener and ch != closer:
            continue
        if is_escaped(text, i):
            continue
        depth += 1 if ch == opener else -1
        if depth == 0:
            return i
    return None


def _promote_brackets(text: str, is_math: Classifier, open_mark: str) -> tuple[str, int]:
    """Rewrite math-looking bracket groups. Returns (text, promotions)."""
    parts: list[str] = []
    promotions = 0
    last = 0
    i = 0
    n = len(text)
    while i < n:
        opener = text[i]
        closer = _PAIRS.get(opener)
        if closer is None or is_escaped(text, i):
            i += 1
            continue
        close = _find_balanced_close(text, i, opener, closer)
        if close is not None:
            interior = text[i + 1 : close]
            # Groups holding already-delimited math are left alone
            if interior.strip() and open_mark not in interior and is_math(interior):
                parts.append(text[last:i])
                parts.append(f"\\{opener}{interior}\\{closer}")
                promotions += 1
                i = last = close + 1
                continue
        i += 1
    parts.append(text[last:])
    return "".join(parts), promotions


def reclassify(text: str, classifier: Classifier | None = None) -> str:
    """Promote math-looking bracket groups to backslash delimiters.

    Args:
        text: Run text
        classifier: Math heuristic (defaults to the configured one)

    Returns:
        Text with promoted groups, or text itself when nothing changed.

    Example:
        >>> reclassify("Area (x^2) and (not math)")
        'Area \\\\(x^2\\\\) and (not math)'

    """
    if "(" not in text and "[" not in text:
        return text

    sentinels = _pick_sentinels(text)
    if sentinels is None:
        logger.warning("No free placeholder characters; skipping bracket promotion")
        return text
    open_mark, close_mark = sentinels

    protected, originals = _protect(text, open_mark, close_mark)
    promoted, promotions = _promote_brackets(
        protected, resolve_classifier(classifier), open_mark
    )
    if promotions == 0:
        return text

    placeholder = re.compile(re.escape(open_mark) + r"(\d+)" + re.escape(close_mark))
    restored, count = placeholder.subn(lambda m: originals[int(m.group(1))], promoted)
    if count != len(originals):
        logger.error(
            "Placeholder restore mismatch (%d of %d); keeping text unchanged",
            count,
            len(originals),
        )
        return text

    logger.debug("Promoted %d bracket group(s)", promotions)
    return restored


__all__ = ["reclassify"]
