"""MathProcessor: the engine behind the public entry points.

Ties the pieces together for one document:

    initialize()  load renderer -> inject styles -> full pass -> watch changes
    reprocess()   full pass on demand
    process_subtree(node)
    recover_original(subtree)

The renderer is loaded once, before any reconciliation. If it cannot be
loaded the processor logs the failure and stays inert; nothing is scanned
and the document is left untouched.

Example:
    >>> doc = parse_html("<p>Compute $x^2$ please.</p>")
    >>> processor = MathProcessor(doc)
    >>> processor.initialize()
    True
    >>> _ = processor.run_until_idle()
    >>> # later edits are picked up by the watcher
    >>> _ = doc.body.append_child(Text("and $y_1$"))
    >>> _ = processor.run_until_idle()

"""

from __future__ import annotations

from mathfix.config import ProcessConfig, get_process_config
from mathfix.dom import Document, Node, Text
from mathfix.errors import RendererUnavailable
from mathfix.htmltree import parse_html, to_html
from mathfix.reconcile import (
    ReconcileOutcome,
    Reconciler,
    iter_candidate_leaves,
    recover_original,
)
from mathfix.renderer import Renderer, SimpleRenderer, load_renderer
from mathfix.scheduler import IdleScheduler, SliceTask, process_in_slices
from mathfix.styles import inject_styles, remove_styles
from mathfix.utils.logger import get_logger
from mathfix.watcher import ChangeWatcher

logger = get_logger(__name__)


class MathProcessor:
    """Finds and renders math in one document, now and as it changes.

    Args:
        document: Document to process
        config: Processing config (the context config when None)
        scheduler: Idle scheduler (a private one when None)
        renderer: Renderer (the global, lazily loaded one when None)

    """

    __slots__ = (
        "_reconciler",
        "_renderer",
        "_tasks",
        "_watcher",
        "config",
        "document",
        "scheduler",
    )

    def __init__(
        self,
        document: Document,
        *,
        config: ProcessConfig | None = None,
        scheduler: IdleScheduler | None = None,
        renderer: Renderer | SimpleRenderer | None = None,
    ) -> None:
        self.document = document
        self.config = config or get_process_config()
        self.scheduler = scheduler or IdleScheduler(budget=self.config.idle_budget)
        self._renderer = renderer
        self._reconciler: Reconciler | None = None
        self._watcher: ChangeWatcher | None = None
        self._tasks: list[SliceTask[Text]] = []

    @property
    def renderer_loaded(self) -> bool:
        return self._reconciler is not None

    def is_renderer_loaded(self) -> bool:
        return self.renderer_loaded

    @property
    def watching(self) -> bool:
        return self._watcher is not None and self._watcher.active

    def initialize(self) -> bool:
        """Load the renderer, do a full pass, and start watching.

        Returns:
            True when ready, False when the renderer is unavailable.
        """
        if self._reconciler is not None:
            return True

        try:
            renderer = self._renderer if self._renderer is not None else load_renderer()
        except RendererUnavailable:
            logger.exception("Math renderer failed to load; processing disabled")
            return False

        self._reconciler = Reconciler(renderer, self.config)
        if self.config.inject_styles:
            inject_styles(self.document, self.config)
        self.reprocess()

        self._watcher = ChangeWatcher(
            self.document, self.scheduler, self._reconcile_leaf, self.config
        )
        self._watcher.start()
        logger.debug("Initialization complete")
        return True

    def _reconcile_leaf(self, leaf: Text) -> ReconcileOutcome:
        if self._reconciler is None:
            return ReconcileOutcome("skipped")
        return self._reconciler.reconcile(leaf)

    def reprocess(self) -> int:
        """Schedule a full pass over the document body.

        Returns:
            Number of candidate leaves scheduled.
        """
        return self.process_subtree(self.document.body)

    def process_subtree(self, node: Node, *, immediate: bool = False) -> int:
        """Reconcile every candidate leaf under node.

        Args:
            node: Subtree root (a text leaf is accepted too)
            immediate: Reconcile now instead of in idle periods

        Returns:
            Number of candidate leaves found.
        """
        if self._reconciler is None:
            logger.warning("Renderer not loaded; call initialize() first")
            return 0

        leaves = list(iter_candidate_leaves(node, self.config))
        logger.debug("Found %d candidate text node(s)", len(leaves))
        if not leaves:
            return 0

        if immediate:
            for leaf in leaves:
                try:
                    self._reconcile_leaf(leaf)
                except Exception:
                    logger.exception("Failed to reconcile %r", leaf)
            return len(leaves)

        self._tasks = [task for task in self._tasks if not task.done]
        self._tasks.append(process_in_slices(self.scheduler, leaves, self._reconcile_leaf))
        return len(leaves)

    def recover_original(self, subtree: Node | None = None) -> int:
        """Restore original source text under subtree (default: body).

        Changes made by the recovery itself are not rescanned; an explicit
        reprocess() renders the content again.

        Returns:
            Number of wrappers undone.
        """
        target = subtree if subtree is not None else self.document.body
        # Host edits queued so far still get scheduled
        self.document.deliver_mutations()
        undone = recover_original(target, self.config)
        if self._watcher is not None:
            self._watcher.discard_pending()
        return undone

    def run_until_idle(self) -> int:
        """Deliver mutations and run idle periods until no work is left."""
        return self.scheduler.run_until_idle(self.document)

    def shutdown(self) -> None:
        """Stop watching and discard all pending work."""
        if self._watcher is not None:
            self._watcher.stop()
        for task in self._tasks:
            task.cancel()
        self._tasks.clear()
        self.scheduler.clear()


def process_html(
    source: str,
    *,
    config: ProcessConfig | None = None,
    renderer: Renderer | SimpleRenderer | None = None,
) -> str:
    """Render all math in an HTML string.

    Raises:
        RendererUnavailable: No renderer was given and none can be loaded.
    """
    active = renderer if renderer is not None else load_renderer()
    document = parse_html(source)
    processor = MathProcessor(document, config=config, renderer=active)
    processor.initialize()
    processor.run_until_idle()
    processor.shutdown()
    return to_html(document)


def recover_html(source: str, *, config: ProcessConfig | None = None) -> str:
    """Undo rendering in an HTML string produced by process_html().

    The injected stylesheet is removed as well.
    """
    document = parse_html(source)
    recover_original(document, config)
    remove_styles(document)
    return to_html(document)


__all__ = ["MathProcessor", "process_html", "recover_html"]
