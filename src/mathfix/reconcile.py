"""Reconciler: splice rendered math into the document tree.

For one text leaf:

1. Build the leaf's run (``mathfix.runs``).
2. Promote math-looking bracket groups (``mathfix.reclassify``).
3. Leave the tree alone when the run has no delimiter at all, or when
   scanning finds nothing to render. Touching nodes that need no change
   would produce mutation records of its own.
4. Render each math segment. A failed render, or empty notation, keeps
   the original delimited text in the container; nothing is ever lost.
5. Remove the run's nodes and insert one processed wrapper in their place.

Everything is rendered before the tree is touched, and the wrapper is
marked before it is inserted, so the splice shows up to observers only as
already-processed content.

Output shape:

    <span class="math-processed-wrapper math-processed">
      text
      <span class="math-container math-processed" data-display="block"
            data-source="$$x$$"><math>...</math></span>
      text
    </span>

"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Literal

from mathfix.classifier import resolve_classifier
from mathfix.config import ProcessConfig, get_process_config
from mathfix.delimiters import has_delimiter
from mathfix.dom import Element, Node, Text
from mathfix.errors import RenderFailure, TreeError
from mathfix.htmltree import parse_fragment
from mathfix.profiling import get_reconcile_accumulator
from mathfix.reclassify import reclassify
from mathfix.renderer import Renderer, SimpleRenderer, render_math
from mathfix.runs import Run, merge_run
from mathfix.scanner import MathSegment, Segment, TextSegment, scan
from mathfix.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ReconcileOutcome:
    """Result of reconciling one leaf.

    Attributes:
        status: "skipped" (not eligible), "noop" (nothing to render),
            or "rendered" (run replaced by a wrapper)
        wrapper: The inserted wrapper when rendered
        math_nodes: Math containers in the wrapper
        fallbacks: Containers holding raw text after a failed render

    """

    status: Literal["skipped", "noop", "rendered"]
    wrapper: Element | None = None
    math_nodes: int = 0
    fallbacks: int = 0

    @property
    def changed(self) -> bool:
        return self.status == "rendered"


_SKIPPED = ReconcileOutcome("skipped")
_NOOP = ReconcileOutcome("noop")


# =============================================================================
# Eligibility
# =============================================================================


def is_processed(node: Node, config: ProcessConfig | None = None) -> bool:
    """True if node or an ancestor carries the processed marker."""
    marker = (config or get_process_config()).marker_class
    return node.closest(lambda el: el.has_class(marker)) is not None


def in_verbatim(node: Node, config: ProcessConfig | None = None) -> bool:
    """True if node or an ancestor is a code/verbatim element."""
    tags = (config or get_process_config()).verbatim_tags
    return node.closest(lambda el: el.tag in tags) is not None


def is_candidate(node: Node, config: ProcessConfig | None = None) -> bool:
    """True for an attached text leaf outside processed and verbatim regions."""
    config = config or get_process_config()
    return (
        isinstance(node, Text)
        and node.parent is not None
        and not is_processed(node, config)
        and not in_verbatim(node, config)
    )


def iter_candidate_leaves(root: Node, config: ProcessConfig | None = None) -> Iterator[Text]:
    """Yield every text leaf under root (root included) eligible for scanning.

    Processed and verbatim subtrees are skipped whole.
    """
    config = config or get_process_config()
    if isinstance(root, Text):
        if is_candidate(root, config):
            yield root
        return
    if not isinstance(root, Element):
        return
    if is_processed(root, config) or in_verbatim(root, config):
        return

    stack: list[Node] = list(reversed(root.children))
    while stack:
        node = stack.pop()
        if isinstance(node, Text):
            yield node
        elif isinstance(node, Element):
            if node.tag in config.verbatim_tags or node.has_class(config.marker_class):
                continue
            stack.extend(reversed(node.children))


# =============================================================================
# Reconciler
# =============================================================================


class Reconciler:
    """Replaces runs holding math with processed wrappers.

    Args:
        renderer: Renderer to use (the global renderer when None)
        config: Processing config (the context config when None)

    """

    __slots__ = ("_config", "_renderer")

    def __init__(
        self,
        renderer: Renderer | SimpleRenderer | None = None,
        config: ProcessConfig | None = None,
    ) -> None:
        self._renderer = renderer
        self._config = config

    @property
    def config(self) -> ProcessConfig:
        return self._config or get_process_config()

    def reconcile(self, leaf: Node) -> ReconcileOutcome:
        """Reconcile the run containing leaf. Safe to call repeatedly."""
        config = self.config
        if not is_candidate(leaf, config):
            return _SKIPPED

        run = merge_run(leaf, config)  # type: ignore[arg-type]
        classifier = resolve_classifier(config.classifier)
        text = reclassify(run.text, classifier) if config.reclassify_brackets else run.text

        acc = get_reconcile_accumulator()
        if text == run.text and not has_delimiter(text):
            if acc is not None:
                acc.record_run(wrapped=False)
            return _NOOP

        segments = scan(text, classifier)
        if not any(isinstance(s, MathSegment) for s in segments):
            logger.debug("No renderable math in run %r", text[:80])
            if acc is not None:
                acc.record_run(wrapped=False)
            return _NOOP

        outcome = self._splice(run, segments, config)
        if acc is not None:
            acc.record_run(
                wrapped=True, math_nodes=outcome.math_nodes, fallbacks=outcome.fallbacks
            )
        return outcome

    def render_segment(self, segment: MathSegment) -> tuple[Element, bool]:
        """Build the container for one math segment.

        Returns:
            (container, fell_back) where fell_back is True when the
            container holds the raw delimited text.
        """
        config = self.config
        container = Element("span")
        container.add_class(config.container_class, config.marker_class)
        if segment.display:
            container.set_attribute(config.display_attr, "block")
        container.set_attribute(config.source_attr, segment.raw)

        notation = segment.notation
        if not notation:
            logger.debug("Empty notation in %r", segment.raw)
            container.append_child(Text(segment.raw))
            return container, True

        try:
            markup = render_math(notation, segment.display, self._renderer)
        except RenderFailure as e:
            logger.warning("%s; keeping source text", e)
            container.append_child(Text(segment.raw))
            return container, True

        for node in parse_fragment(markup):
            container.append_child(node)
        return container, False

    def _splice(self, run: Run, segments: list[Segment], config: ProcessConfig) -> ReconcileOutcome:
        parent = run.first.parent
        if parent is None:
            raise TreeError(f"Cannot splice detached run {run.text!r}")

        # Render first: the tree is only touched once everything is built
        pieces: list[Node] = []
        math_nodes = 0
        fallbacks = 0
        newline = 0
        for segment in segments:
            if isinstance(segment, TextSegment):
                newline = _append_literal(pieces, segment.text, run.breaks, newline)
            else:
                container, fell_back = self.render_segment(segment)
                pieces.append(container)
                math_nodes += 1
                fallbacks += fell_back
                newline += segment.raw.count("\n")

        wrapper = Element("span")
        wrapper.add_class(config.wrapper_class, config.marker_class)

        reference = run.nodes[-1].next_sibling
        for node in run.nodes:
            parent.remove_child(node)
        for piece in pieces:
            wrapper.append_child(piece)
        parent.insert_before(wrapper, reference)

        logger.debug(
            "Replaced %d node(s) with %d math container(s), %d fallback(s)",
            len(run.nodes),
            math_nodes,
            fallbacks,
        )
        return ReconcileOutcome("rendered", wrapper, math_nodes, fallbacks)


def _append_literal(
    pieces: list[Node],
    text: str,
    breaks: tuple[Element | None, ...],
    newline: int,
) -> int:
    """Append literal text, turning break newlines back into break nodes.

    Returns the ordinal of the next newline in the run.
    """
    start = 0
    pos = text.find("\n")
    while pos != -1:
        node = breaks[newline] if newline < len(breaks) else None
        newline += 1
        if node is not None:
            if pos > start:
                pieces.append(Text(text[start:pos]))
            pieces.append(node)
            start = pos + 1
        pos = text.find("\n", pos + 1)
    if start < len(text):
        pieces.append(Text(text[start:]))
    return newline


def reconcile(leaf: Node, renderer: Renderer | SimpleRenderer | None = None) -> ReconcileOutcome:
    """Reconcile one leaf with the global renderer and context config."""
    return Reconciler(renderer).reconcile(leaf)


# =============================================================================
# Recovery
# =============================================================================


def _is_wrapper(node: Node, config: ProcessConfig) -> bool:
    return (
        isinstance(node, Element)
        and node.has_class(config.wrapper_class)
        and node.has_class(config.marker_class)
    )


def _is_container(node: Node, config: ProcessConfig) -> bool:
    return (
        isinstance(node, Element)
        and node.has_class(config.container_class)
        and node.has_class(config.marker_class)
    )


def _merge_text_range(parent: Element, first: Node | None, last: Node | None) -> None:
    """Merge adjacent text nodes among parent's children from first to last."""
    children = parent.children
    start = parent._index_of(first) if first is not None else 0
    end = parent._index_of(last) if last is not None else len(children) - 1
    previous: Text | None = None
    for node in children[start : end + 1]:
        if isinstance(node, Text):
            if previous is not None:
                previous.data += node.data
                parent.remove_child(node)
                continue
            previous = node
        else:
            previous = None


def recover_original(subtree: Node, config: ProcessConfig | None = None) -> int:
    """Undo rendering under subtree, restoring the original source text.

    Every processed wrapper at or under subtree is replaced by its
    literal text, its break nodes, and one text node per math container
    holding the container's recorded source.

    Returns:
        Number of wrappers undone.
    """
    config = config or get_process_config()
    if _is_wrapper(subtree, config):
        wrappers = [subtree]
    elif isinstance(subtree, Element):
        wrappers = [node for node in subtree.iter_descendants() if _is_wrapper(node, config)]
    else:
        return 0

    undone = 0
    for wrapper in wrappers:
        parent = wrapper.parent
        if parent is None:
            continue
        before = wrapper.previous_sibling
        after = wrapper.next_sibling
        for child in wrapper.children:
            if _is_container(child, config):
                source = child.get_attribute(config.source_attr)  # type: ignore[union-attr]
                replacement: Node = Text(source if source is not None else child.text_content)
            else:
                replacement = child
            parent.insert_before(replacement, wrapper)
        parent.remove_child(wrapper)
        _merge_text_range(parent, before, after)
        undone += 1

    if undone:
        logger.debug("Recovered %d wrapper(s)", undone)
    return undone


__all__ = [
    "ReconcileOutcome",
    "Reconciler",
    "in_verbatim",
    "is_candidate",
    "is_processed",
    "iter_candidate_leaves",
    "reconcile",
    "recover_original",
]
