"""Tests for mathfix.delimiters: delimiter pairs and notation extraction."""

import pytest

from mathfix.delimiters import (
    DELIMITERS,
    DISPLAY_BRACKETS,
    DISPLAY_DOLLARS,
    INLINE_DOLLARS,
    INLINE_PARENS,
    DelimiterSpec,
    has_delimiter,
    normalize_newlines,
    spec_for,
    strip_delimiters,
)


class TestDelimiterSpec:
    def test_precedence_double_before_single(self) -> None:
        assert DELIMITERS.index(DISPLAY_DOLLARS) < DELIMITERS.index(INLINE_DOLLARS)

    def test_display_flags(self) -> None:
        assert DISPLAY_DOLLARS.display is True
        assert INLINE_DOLLARS.display is False
        assert DISPLAY_BRACKETS.display is True
        assert INLINE_PARENS.display is False

    def test_is_backslash(self) -> None:
        assert DISPLAY_BRACKETS.is_backslash
        assert INLINE_PARENS.is_backslash
        assert not DISPLAY_DOLLARS.is_backslash

    def test_immutable(self) -> None:
        with pytest.raises(AttributeError):
            DISPLAY_DOLLARS.display = False  # type: ignore[misc]

    def test_equality_by_value(self) -> None:
        assert DelimiterSpec("$", "$", display=False) == INLINE_DOLLARS


class TestHasDelimiter:
    @pytest.mark.parametrize(
        "text",
        ["$x$", "a $$ b", "\\[x", "\\(y"],
    )
    def test_detects_any_start_token(self, text: str) -> None:
        assert has_delimiter(text)

    @pytest.mark.parametrize(
        "text",
        ["", "plain text", "Value (not math) is fine", "[link]", "back\\slash"],
    )
    def test_plain_text(self, text: str) -> None:
        assert not has_delimiter(text)


class TestSpecFor:
    def test_double_dollar_wins_over_single(self) -> None:
        assert spec_for("$$x$$") is DISPLAY_DOLLARS

    def test_single_dollar(self) -> None:
        assert spec_for("$x$") is INLINE_DOLLARS

    def test_backslash_forms(self) -> None:
        assert spec_for("\\[x\\]") is DISPLAY_BRACKETS
        assert spec_for("\\(x\\)") is INLINE_PARENS

    def test_unknown(self) -> None:
        assert spec_for("x") is None
        assert spec_for("$") is None


class TestStripDelimiters:
    def test_strips_and_trims(self) -> None:
        assert strip_delimiters("$$ \\frac{a}{b} $$") == "\\frac{a}{b}"
        assert strip_delimiters("\\( x \\)") == "x"

    def test_empty_notation(self) -> None:
        assert strip_delimiters("$$  $$") == ""

    def test_unknown_returns_empty(self) -> None:
        assert strip_delimiters("no delimiters") == ""

    def test_newlines_become_spaces(self) -> None:
        assert strip_delimiters("$$a +\n   b$$") == "a + b"

    def test_backslash_newline_keeps_backslash(self) -> None:
        assert normalize_newlines("a \\\\\n  b") == "a \\\\b"

    def test_explicit_spec(self) -> None:
        # Without the explicit spec, "$$x$$" would be read as display dollars
        assert strip_delimiters("$$x$$", INLINE_DOLLARS) == "$x$"
