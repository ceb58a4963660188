"""Tests for mathfix.reclassify: promoting math-looking bracket groups."""

from hypothesis import given, settings
from hypothesis import strategies as st

from mathfix.delimiters import INLINE_PARENS
from mathfix.reclassify import reclassify
from mathfix.scanner import MathSegment, scan


def _always(content: str) -> bool:
    return True


class TestReclassify:
    def test_prose_group_untouched(self) -> None:
        text = "Value (not math) is fine"
        assert reclassify(text) is text
        assert scan(text) == scan(reclassify(text))

    def test_promotes_parens(self) -> None:
        assert reclassify("Area (x^2) and (not math)") == "Area \\(x^2\\) and (not math)"

    def test_promotes_square_brackets(self) -> None:
        assert reclassify("[\\int_0^1 f]") == "\\[\\int_0^1 f\\]"

    def test_promoted_group_scans_as_math(self) -> None:
        segments = scan(reclassify("Area (x^2) here"))
        math = [s for s in segments if isinstance(s, MathSegment)]
        assert len(math) == 1
        assert math[0].delimiter == INLINE_PARENS
        assert math[0].notation == "x^2"

    def test_no_brackets_fast_path(self) -> None:
        text = "$x^2$ and nothing else"
        assert reclassify(text) is text

    def test_existing_delimited_math_protected(self) -> None:
        assert reclassify("$(x^2)$ and (y^2)") == "$(x^2)$ and \\(y^2\\)"

    def test_existing_backslash_math_protected(self) -> None:
        text = "\\((a+b)^2\\)"
        assert reclassify(text) == text

    def test_group_holding_delimited_math_not_promoted(self) -> None:
        text = "(see $x^2$)"
        assert reclassify(text) == text

    def test_inner_group_examined_when_outer_skipped(self) -> None:
        assert reclassify("(cost $5$ or (x^2))") == "(cost $5$ or \\(x^2\\))"

    def test_escaped_bracket_ignored(self) -> None:
        text = "\\(x^2) stays"
        assert reclassify(text) == text

    def test_unbalanced_ignored(self) -> None:
        text = "(x^2 never closes"
        assert reclassify(text) == text

    def test_empty_group_ignored(self) -> None:
        assert reclassify("()  [ ]", classifier=_always) == "()  [ ]"

    def test_custom_classifier(self) -> None:
        assert reclassify("(hello)", classifier=_always) == "\\(hello\\)"

    def test_private_use_text_does_not_collide(self) -> None:
        text = "\ue000\ue001 (x^2) $y$ \ue0000\ue001"
        assert reclassify(text) == "\ue000\ue001 \\(x^2\\) $y$ \ue0000\ue001"

    def test_newlines_preserved(self) -> None:
        text = "(x^2\n+ 1) and\n(y)"
        result = reclassify(text)
        assert result == "\\(x^2\n+ 1\\) and\n(y)"
        assert result.count("\n") == text.count("\n")

    @given(st.text(alphabet="ab x^_()[]$\\\n", max_size=40))
    @settings(max_examples=200)
    def test_only_inserts_backslashes(self, text: str) -> None:
        result = reclassify(text)
        assert result.replace("\\", "") == text.replace("\\", "")
        assert result.count("\n") == text.count("\n")
