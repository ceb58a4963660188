"""Presentation stylesheet for rendered math.

Containers are inline blocks by default; display math (``data-display``
set to "block") is centered on its own line. The wrapper stays inline so
the surrounding text flows as before.
"""

from __future__ import annotations

from mathfix.config import ProcessConfig, get_process_config
from mathfix.dom import Document, Element, Text
from mathfix.utils.logger import get_logger

logger = get_logger(__name__)

STYLE_MARKER_ATTR = "data-mathfix"


def build_stylesheet(config: ProcessConfig | None = None) -> str:
    """CSS rules for the configured class and attribute names."""
    config = config or get_process_config()
    container = f".{config.container_class}"
    return (
        f"{container} {{ display: inline-block; vertical-align: middle; text-align: left; }}\n"
        f'{container}[{config.display_attr}="block"] '
        "{ display: block; margin: 0.2em 0; text-align: center; }\n"
        f"{container} math {{ vertical-align: 0.5ex; }}\n"
        f".{config.wrapper_class} {{ display: inline; text-align: left; }}\n"
    )


def _find_style(document: Document) -> Element | None:
    for node in document.iter_descendants():
        if isinstance(node, Element) and node.tag == "style" and node.has_attribute(
            STYLE_MARKER_ATTR
        ):
            return node
    return None


def inject_styles(document: Document, config: ProcessConfig | None = None) -> bool:
    """Add the stylesheet to <head> once.

    A <head> is created under <html> when missing; documents without an
    <html> element get the style as their first child.

    Returns:
        True if a style element was added, False if one was already present.
    """
    if _find_style(document) is not None:
        return False

    style = Element("style", {STYLE_MARKER_ATTR: ""}, (Text(build_stylesheet(config)),))
    head = document.head
    if head is None:
        html = document.find("html")
        if html is not None:
            head = html.insert_before(Element("head"), html.first_child)  # type: ignore[assignment]
    if head is not None:
        head.append_child(style)  # type: ignore[union-attr]
    else:
        document.insert_before(style, document.first_child)
    logger.debug("Styles injected")
    return True


def remove_styles(document: Document) -> bool:
    """Remove the injected stylesheet. Returns True if one was found."""
    style = _find_style(document)
    if style is None:
        return False
    style.remove()
    logger.debug("Styles removed")
    return True


__all__ = ["STYLE_MARKER_ATTR", "build_stylesheet", "inject_styles", "remove_styles"]
