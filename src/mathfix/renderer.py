"""Formula renderer protocol and lazy loading.

The renderer turns a notation string plus a display flag into a markup
fragment. When latex2mathml is installed it is loaded on first use and
cached; any other renderer can be injected.

Loading happens once. A failed load is remembered and reported again as
``RendererUnavailable`` without retrying; ``set_renderer()`` resets it.

Usage:
    # Automatic with latex2mathml
    from mathfix.renderer import render_math
    markup = render_math("x^2", display=False)

    # Manual injection
    from mathfix.renderer import set_renderer

    def my_renderer(notation: str, display: bool) -> str:
        tag = "div" if display else "span"
        return f'<{tag} class="tex">{notation}</{tag}>'

    set_renderer(my_renderer)
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

from mathfix.errors import RenderFailure, RendererUnavailable
from mathfix.utils.logger import get_logger

logger = get_logger(__name__)


class Renderer(Protocol):
    """Protocol for formula renderers."""

    def render(self, notation: str, display: bool) -> str:
        """Render notation to a markup fragment.

        Args:
            notation: Notation without delimiters
            display: True for block layout, False for inline

        Returns:
            Markup fragment (e.g. a MathML <math> element)

        Contract:
            - MAY raise for malformed notation (reported as RenderFailure)
            - MUST NOT mutate shared state between calls
        """
        ...


# Support for simple callable-based renderers
SimpleRenderer = Callable[[str, bool], str]

# Global renderer
_renderer: Renderer | SimpleRenderer | None = None
_load_attempted: bool = False
_load_error: BaseException | None = None


def set_renderer(renderer: Renderer | SimpleRenderer | None) -> None:
    """Set the global renderer.

    Args:
        renderer: A Renderer implementation, or a function taking
            (notation, display) and returning markup. Pass None to clear it;
            the next load will try latex2mathml again.
    """
    global _renderer, _load_attempted, _load_error
    _renderer = renderer
    _load_attempted = renderer is not None
    _load_error = None


def _try_import_latex2mathml() -> bool:
    """Try to import and configure the latex2mathml renderer."""
    global _renderer, _load_attempted, _load_error

    if _load_attempted:
        return _renderer is not None

    _load_attempted = True

    try:
        import latex2mathml.converter

        class MathMLRenderer:
            """latex2mathml-based renderer implementing Renderer protocol."""

            def render(self, notation: str, display: bool) -> str:
                """Convert LaTeX notation to a MathML element."""
                result: str = latex2mathml.converter.convert(
                    notation, display="block" if display else "inline"
                )
                return result

        _renderer = MathMLRenderer()
        logger.debug("latex2mathml renderer loaded")
        return True
    except ImportError as e:
        _load_error = e
        return False


def load_renderer() -> Renderer | SimpleRenderer:
    """Return the renderer, loading latex2mathml on first call.

    Raises:
        RendererUnavailable: No renderer is set and latex2mathml cannot
            be imported.
    """
    if _renderer is None:
        _try_import_latex2mathml()
    if _renderer is None:
        raise RendererUnavailable(
            "No math renderer available (install latex2mathml or call set_renderer())",
            cause=_load_error,
        )
    return _renderer


def is_renderer_loaded() -> bool:
    """Check whether a renderer is loaded, without triggering a load."""
    return _renderer is not None


def render_math(
    notation: str,
    display: bool,
    renderer: Renderer | SimpleRenderer | None = None,
) -> str:
    """Render notation with the given or global renderer.

    Raises:
        RenderFailure: The renderer raised or returned empty markup.
        RendererUnavailable: No renderer could be loaded.
    """
    active = renderer if renderer is not None else load_renderer()
    try:
        if hasattr(active, "render") and callable(active.render):
            markup = active.render(notation, display)
        else:
            markup = active(notation, display)  # type: ignore[operator]
    except Exception as e:
        raise RenderFailure(notation, display, cause=e) from e
    if not markup:
        raise RenderFailure(notation, display)
    return markup


__all__ = [
    "Renderer",
    "SimpleRenderer",
    "is_renderer_loaded",
    "load_renderer",
    "render_math",
    "set_renderer",
]
