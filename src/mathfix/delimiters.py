"""Math delimiter pairs.

Four fixed pairs are recognized, in the precedence order used by the
scanner: ``$$`` before ``$`` (the latter is a prefix of the former),
then the backslash forms.

    $$ ... $$    display
    $ ... $      inline
    \\[ ... \\]    display
    \\( ... \\)    inline

"""

from __future__ import annotations

import re
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class DelimiterSpec:
    """A start/end token pair and the layout it selects."""

    start: str
    end: str
    display: bool

    @property
    def is_backslash(self) -> bool:
        return self.start.startswith("\\")


DISPLAY_DOLLARS = DelimiterSpec("$$", "$$", display=True)
INLINE_DOLLARS = DelimiterSpec("$", "$", display=False)
DISPLAY_BRACKETS = DelimiterSpec("\\[", "\\]", display=True)
INLINE_PARENS = DelimiterSpec("\\(", "\\)", display=False)

DELIMITERS: tuple[DelimiterSpec, ...] = (
    DISPLAY_DOLLARS,
    INLINE_DOLLARS,
    DISPLAY_BRACKETS,
    INLINE_PARENS,
)

# Continuation lines: a trailing backslash keeps its command, other
# newlines collapse to a single space.
_BACKSLASH_NEWLINE = re.compile(r"\\\r?\n\s*")
_NEWLINE = re.compile(r"\r?\n\s*")


def has_delimiter(text: str) -> bool:
    """Return True if any start token occurs in text.

    This is the fast path checked before scanning: text without any
    start token never needs segmentation.
    """
    return any(spec.start in text for spec in DELIMITERS)


def spec_for(raw: str) -> DelimiterSpec | None:
    """Return the delimiter pair enclosing raw, or None.

    ``$$`` is tried before ``$`` so ``$$x$$`` is display math.
    """
    for spec in DELIMITERS:
        if (
            len(raw) >= len(spec.start) + len(spec.end)
            and raw.startswith(spec.start)
            and raw.endswith(spec.end)
        ):
            return spec
    return None


def normalize_newlines(notation: str) -> str:
    """Collapse line breaks inside notation to spaces."""
    return _NEWLINE.sub(" ", _BACKSLASH_NEWLINE.sub("\\\\", notation))


def strip_delimiters(raw: str, spec: DelimiterSpec | None = None) -> str:
    """Extract the notation between a delimiter pair.

    Newlines are collapsed and surrounding whitespace trimmed. Returns an
    empty string when raw is not enclosed by a known pair.

    Example:
        >>> strip_delimiters("$$ \\\\frac{a}{b} $$")
        '\\\\frac{a}{b}'
    """
    spec = spec or spec_for(raw)
    if spec is None:
        return ""
    inner = raw[len(spec.start) : len(raw) - len(spec.end)]
    return normalize_newlines(inner).strip()


__all__ = [
    "DELIMITERS",
    "DISPLAY_BRACKETS",
    "DISPLAY_DOLLARS",
    "INLINE_DOLLARS",
    "INLINE_PARENS",
    "DelimiterSpec",
    "has_delimiter",
    "normalize_newlines",
    "spec_for",
    "strip_delimiters",
]
