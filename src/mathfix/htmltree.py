"""HTML bridge for the document tree.

Parses HTML with BeautifulSoup (``html.parser`` backend) and converts the
soup into ``mathfix.dom`` nodes; serialization goes the other way, building
a soup from the tree and letting BeautifulSoup write it out. Used to load
documents, to turn renderer markup into nodes, and by the CLI.

Example:
    >>> doc = parse_html("<p>Hi <b>there</b></p>")
    >>> to_html(doc.body)
    '<p>Hi <b>there</b></p>'

"""

from __future__ import annotations

from bs4 import BeautifulSoup
from bs4.dammit import EntitySubstitution
from bs4.element import CData, Doctype, NavigableString, PageElement, PreformattedString, Tag
from bs4.element import Comment as SoupComment
from bs4.formatter import HTMLFormatter

from mathfix.dom import Comment, Document, Element, Node, Text
from mathfix.errors import TreeError

# Minimal escaping, HTML void tags written as <br>
_FORMATTER = HTMLFormatter(
    entity_substitution=EntitySubstitution.substitute_xml,
    void_element_close_prefix=None,
)


def _soup(markup: str = "") -> BeautifulSoup:
    # Keep class as one string, matching Element.attrs
    return BeautifulSoup(markup, "html.parser", multi_valued_attributes=None)


# =============================================================================
# Soup -> tree
# =============================================================================


def _attrs(tag: Tag) -> dict[str, str]:
    return {
        name: " ".join(value) if isinstance(value, list) else (value or "")
        for name, value in tag.attrs.items()
    }


def _append_soup(parent: Element, source: PageElement) -> None:
    """Convert source and its subtree, appending the result to parent."""
    if isinstance(source, Tag):
        element = Element(source.name, _attrs(source))
        parent.append_child(element)
        for child in source.children:
            _append_soup(element, child)
    elif isinstance(source, SoupComment):
        parent.append_child(Comment(str(source)))
    elif isinstance(source, Doctype):
        if isinstance(parent, Document):
            parent.doctype = str(source)
    elif isinstance(source, CData) or (
        isinstance(source, NavigableString) and not isinstance(source, PreformattedString)
    ):
        _append_text(parent, str(source))
    # Declarations and processing instructions are dropped


def _append_text(parent: Element, data: str) -> None:
    if not data:
        return
    last = parent.last_child
    if isinstance(last, Text):
        last.data += data
    else:
        parent.append_child(Text(data))


def parse_html(source: str) -> Document:
    """Parse an HTML document or fragment into a Document.

    Fragments without <html>/<body> become direct children of the
    Document, whose ``body`` then falls back to the Document itself.
    """
    document = Document(children=())
    for child in _soup(source).contents:
        _append_soup(document, child)
    return document


def parse_fragment(markup: str) -> list[Node]:
    """Parse markup into a list of detached nodes."""
    holder = Element("template")
    for child in _soup(markup).contents:
        _append_soup(holder, child)
    nodes = list(holder.children)
    for node in nodes:
        holder.remove_child(node)
    return nodes


# =============================================================================
# Tree -> soup
# =============================================================================


def _to_soup(soup: BeautifulSoup, node: Node) -> PageElement:
    if isinstance(node, Text):
        return soup.new_string(node.data)
    if isinstance(node, Comment):
        return soup.new_string(node.data, SoupComment)
    if not isinstance(node, Element):
        raise TreeError(f"Cannot serialize {node!r}")
    tag = soup.new_tag(node.tag, attrs=dict(node.attrs))
    for child in node.children:
        tag.append(_to_soup(soup, child))
    return tag


def to_html(node: Node) -> str:
    """Serialize a node and its subtree to HTML."""
    soup = _soup()
    if isinstance(node, Document):
        if node.doctype is not None:
            soup.append(soup.new_string(node.doctype, Doctype))
        for child in node.children:
            soup.append(_to_soup(soup, child))
        return soup.decode(formatter=_FORMATTER)
    soup.append(_to_soup(soup, node))
    return soup.decode(formatter=_FORMATTER)


def inner_html(element: Element) -> str:
    """Serialize only the children of element."""
    return _to_soup(_soup(), element).decode_contents(formatter=_FORMATTER)


__all__ = [
    "inner_html",
    "parse_fragment",
    "parse_html",
    "to_html",
]
