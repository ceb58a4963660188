"""Run merging: one logical text run from adjacent sibling leaves.

A delimiter pair can straddle several text nodes (``$x`` + ``^2$``) or a
line break. A Run collects the contiguous siblings around a leaf that are
text nodes or childless break elements (``<br>``, empty ``<div>``/``<p>``),
concatenating their text with each break as ``"\\n"``.

Any other sibling ends the run, so a run always covers a contiguous range
of siblings and can be replaced in place without reordering content.

Runs are rebuilt for every reconcile and never cached.
"""

from __future__ import annotations

from dataclasses import dataclass

from mathfix.config import ProcessConfig, get_process_config
from mathfix.dom import Element, Node, Text


@dataclass(frozen=True, slots=True)
class Run:
    """Contiguous sibling leaves and their merged text.

    Attributes:
        nodes: Contributing text and break nodes in document order
        text: Concatenated text, one "\\n" per break node
        breaks: For each "\\n" in text, in order, the break node that
            produced it, or None for a newline inside a text node

    """

    nodes: tuple[Node, ...]
    text: str
    breaks: tuple[Element | None, ...]

    @property
    def first(self) -> Node:
        return self.nodes[0]


def is_break(node: Node, config: ProcessConfig | None = None) -> bool:
    """Return True for a childless element that acts as a line boundary."""
    config = config or get_process_config()
    return (
        isinstance(node, Element)
        and node.tag in config.break_tags
        and not node.children
    )


def _joins(node: Node, config: ProcessConfig) -> bool:
    return isinstance(node, Text) or is_break(node, config)


def merge_run(leaf: Text, config: ProcessConfig | None = None) -> Run:
    """Build the run containing leaf.

    A detached leaf forms a run on its own.
    """
    config = config or get_process_config()
    parent = leaf.parent
    if parent is None:
        return Run((leaf,), leaf.data, (None,) * leaf.data.count("\n"))

    siblings = parent.children
    index = parent._index_of(leaf)
    start = index
    while start > 0 and _joins(siblings[start - 1], config):
        start -= 1
    end = index + 1
    while end < len(siblings) and _joins(siblings[end], config):
        end += 1

    nodes = siblings[start:end]
    parts: list[str] = []
    breaks: list[Element | None] = []
    for node in nodes:
        if isinstance(node, Text):
            parts.append(node.data)
            breaks.extend([None] * node.data.count("\n"))
        else:
            parts.append("\n")
            breaks.append(node)  # type: ignore[arg-type]
    return Run(nodes, "".join(parts), tuple(breaks))


__all__ = ["Run", "is_break", "merge_run"]
