"""Tests for mathfix utility modules and error types."""

import logging

from mathfix.errors import (
    MathfixError,
    RenderFailure,
    RendererUnavailable,
    TreeError,
)


class TestGetLogger:
    """Tests for get_logger."""

    def test_prefixes_name(self) -> None:
        from mathfix.utils.logger import get_logger

        assert get_logger("scanner").name == "mathfix.scanner"

    def test_keeps_package_names(self) -> None:
        from mathfix.utils.logger import get_logger

        assert get_logger("mathfix.reconcile").name == "mathfix.reconcile"
        assert get_logger("mathfix").name == "mathfix"

    def test_returns_stdlib_logger(self) -> None:
        from mathfix.utils.logger import get_logger

        assert isinstance(get_logger("x"), logging.Logger)
        assert get_logger("x") is logging.getLogger("mathfix.x")


class TestErrors:
    """Tests for the exception hierarchy."""

    def test_hierarchy(self) -> None:
        for cls in (RendererUnavailable, RenderFailure, TreeError):
            assert issubclass(cls, MathfixError)

    def test_renderer_unavailable_keeps_cause(self) -> None:
        cause = ImportError("no module")
        error = RendererUnavailable("no renderer", cause=cause)
        assert error.cause is cause
        assert str(error) == "no renderer"

    def test_render_failure_message(self) -> None:
        error = RenderFailure("x^", display=True, cause=ValueError("dangling ^"))
        assert error.notation == "x^"
        assert error.display is True
        assert str(error) == "Failed to render display math 'x^': dangling ^"
