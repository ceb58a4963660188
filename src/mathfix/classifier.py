"""Heuristic math classifier.

Decides whether a piece of text looks like math notation. Used to decide
whether a plain ``(...)``/``[...]`` group should become math, and as a last
check on every delimited span the scanner finds, so stray dollar signs in
prose are not rendered.

The heuristic is a strategy: anything callable as ``(str) -> bool`` can be
set on ``ProcessConfig.classifier``.

Example:
    >>> looks_like_math("x^2")
    True
    >>> looks_like_math("not math")
    False
    >>> strict = PatternClassifier(patterns=[r"\\\\[a-zA-Z]+"])
    >>> strict("x^2")
    False

"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Protocol

GREEK_NAMES: tuple[str, ...] = (
    "alpha", "beta", "gamma", "delta", "epsilon", "zeta", "eta", "theta",
    "iota", "kappa", "lambda", "mu", "nu", "xi", "omicron", "pi", "rho",
    "sigma", "tau", "upsilon", "phi", "chi", "psi", "omega",
)  # fmt: skip

GREEK_GLYPHS = "αβγδεζηθικλμνξοπρστυφχψωΓΔΘΛΞΠΣΥΦΨΩ"
MATH_GLYPHS = "∑∏∫∮√∞≤≥≠±∓×÷∂∇≈≡∈∉⊂⊆∪∩∀∃→←↔⇒⇔"

DEFAULT_PATTERNS: tuple[str, ...] = (
    # \frac, \alpha, \mathbb
    r"\\[a-zA-Z]+",
    # {group}
    r"\{[^{}]*\}",
    # x_i, a^2, )^2, }_n
    r"[\w)\]}][_^]",
    # Greek letter names as words
    r"\b(?:" + "|".join(GREEK_NAMES) + r")\b",
    # Greek and math glyphs
    "[" + GREEK_GLYPHS + MATH_GLYPHS + "]",
    # $...$ whose content does not start or end with whitespace
    r"\$[^\s$](?:[^$]*[^\s$])?\$",
)


class Classifier(Protocol):
    """Predicate over strings: does this look like math?

    Contract:
        - MUST be deterministic for identical input
        - MUST NOT raise for any string
    """

    def __call__(self, content: str) -> bool: ...


class PatternClassifier:
    """Classifier matching a battery of regular expressions.

    Content looks like math if any pattern matches anywhere in it.
    Ambiguous content that matches nothing stays plain text.

    Args:
        patterns: Replacement pattern list (defaults to DEFAULT_PATTERNS)
        extra_patterns: Patterns added on top of the base list

    """

    __slots__ = ("_regex",)

    def __init__(
        self,
        patterns: Iterable[str] | None = None,
        *,
        extra_patterns: Iterable[str] = (),
    ) -> None:
        base = list(DEFAULT_PATTERNS if patterns is None else patterns)
        combined = [*base, *extra_patterns]
        # No pattern at all means nothing looks like math
        source = "|".join(f"(?:{p})" for p in combined) if combined else r"(?!)"
        self._regex = re.compile(source)

    def __call__(self, content: str) -> bool:
        return self._regex.search(content) is not None

    def __repr__(self) -> str:
        return f"PatternClassifier({self._regex.pattern!r})"


_default_classifier = PatternClassifier()


def default_classifier() -> PatternClassifier:
    """Return the shared default classifier."""
    return _default_classifier


def looks_like_math(content: str) -> bool:
    """Return True if content matches the default heuristic battery."""
    return _default_classifier(content)


def resolve_classifier(classifier: Classifier | None = None) -> Classifier:
    """Pick the classifier to use: explicit, then configured, then default."""
    if classifier is not None:
        return classifier

    from mathfix.config import get_process_config

    configured = get_process_config().classifier
    return configured if configured is not None else _default_classifier


__all__ = [
    "DEFAULT_PATTERNS",
    "Classifier",
    "PatternClassifier",
    "default_classifier",
    "looks_like_math",
    "resolve_classifier",
]
