"""Exception classes for mathfix.

Provides standardized exceptions for error handling throughout mathfix.

Only renderer loading failures ever escape to the host. Everything else is
recovered where it happens: a failed render falls back to the original
delimited text, an unbalanced delimiter is kept as literal text.
"""

from __future__ import annotations


class MathfixError(Exception):
    """Base exception for all mathfix errors.

    Subclass this for specific error categories.
    """

    pass


class RendererUnavailable(MathfixError):
    """The formula renderer could not be loaded.

    Raised by ``load_renderer()``. The processor catches it during
    initialization and stays inert; nothing is scanned.
    """

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        """Initialize with the underlying import or setup error.

        Args:
            message: Error description
            cause: Exception raised while loading (optional)
        """
        self.cause = cause
        super().__init__(message)


class RenderFailure(MathfixError):
    """A single notation string failed to render.

    Raised by ``render_math()`` and recovered per segment by the
    reconciler, which keeps the original delimited text instead.
    """

    def __init__(
        self,
        notation: str,
        display: bool,
        cause: BaseException | None = None,
    ) -> None:
        """Initialize render failure.

        Args:
            notation: Notation handed to the renderer (delimiters stripped)
            display: Whether display mode was requested
            cause: Exception raised by the renderer (optional)
        """
        self.notation = notation
        self.display = display
        self.cause = cause

        mode = "display" if display else "inline"
        reason = f": {cause}" if cause is not None else ""
        super().__init__(f"Failed to render {mode} math {notation!r}{reason}")


class TreeError(MathfixError):
    """Invalid operation on the document tree.

    Raised when a node is removed from or inserted relative to a
    node that is not its parent.
    """

    pass
