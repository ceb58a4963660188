"""ChangeWatcher: incremental reconciliation of changed content.

Observes the document body for inserted and removed nodes and edited
text. The mutation callback only records what changed; leaf discovery and
reconciliation happen later, in idle periods, so the watcher never runs
inside the edit it is reacting to.

Processed content is dropped twice: when records are collected, and again
by the reconciler itself. The reconciler's own splices therefore never
come back as work.

Per-leaf lifecycle:

    Unseen -> Scanned (no-op)          revisited if its text changes
    Unseen -> Scanned (rendered) -> Processed   never revisited

"""

from __future__ import annotations

from collections.abc import Callable, Iterable

from mathfix.config import ProcessConfig, get_process_config
from mathfix.dom import Document, Element, MutationObserver, MutationRecord, Node, Text
from mathfix.reconcile import in_verbatim, is_processed, iter_candidate_leaves
from mathfix.scheduler import IdleDeadline, IdleScheduler, SliceTask, process_in_slices
from mathfix.utils.logger import get_logger

logger = get_logger(__name__)


def _dedupe[N: Node](nodes: Iterable[N]) -> list[N]:
    seen: set[int] = set()
    unique: list[N] = []
    for node in nodes:
        if id(node) not in seen:
            seen.add(id(node))
            unique.append(node)
    return unique


class ChangeWatcher:
    """Schedules reconciliation for content added or edited after start.

    Args:
        document: Document to watch (its body is observed)
        scheduler: Idle scheduler running the work
        reconcile: Called once per qualifying text leaf
        config: Processing config (the context config when None)

    """

    __slots__ = ("_config", "_observer", "_reconcile", "_scheduler", "_tasks", "document")

    def __init__(
        self,
        document: Document,
        scheduler: IdleScheduler,
        reconcile: Callable[[Text], object],
        config: ProcessConfig | None = None,
    ) -> None:
        self.document = document
        self._scheduler = scheduler
        self._reconcile = reconcile
        self._config = config or get_process_config()
        self._observer = MutationObserver(self._on_mutations)
        self._tasks: list[SliceTask[Text]] = []

    @property
    def active(self) -> bool:
        return self._observer in self.document._observers

    def start(self) -> None:
        self._observer.observe(
            self.document.body,
            child_list=True,
            character_data=True,
            subtree=True,
        )
        logger.debug("Watching %r", self.document.body)

    def stop(self) -> None:
        """Stop observing and cancel scheduled work."""
        self._observer.disconnect()
        for task in self._tasks:
            task.cancel()
        self._tasks.clear()

    def discard_pending(self) -> None:
        """Drop records queued but not yet delivered."""
        self._observer.take_records()

    def affected_nodes(self, records: Iterable[MutationRecord]) -> list[Node]:
        """Nodes worth rescanning, deduplicated.

        Added nodes, edited text, and the text siblings of removed nodes,
        which may now join into a single run.
        """
        config = self._config
        candidates: list[Node] = []
        for record in records:
            if record.type == "childList":
                candidates.extend(record.added_nodes)
                if record.removed_nodes:
                    candidates.extend(
                        sibling
                        for sibling in (record.previous_sibling, record.next_sibling)
                        if isinstance(sibling, Text)
                    )
            elif record.type == "characterData":
                candidates.append(record.target)

        affected = []
        for node in _dedupe(candidates):
            if not isinstance(node, (Text, Element)) or not node.is_connected:
                continue
            if is_processed(node, config) or in_verbatim(node, config):
                continue
            affected.append(node)
        return affected

    def _on_mutations(self, records: list[MutationRecord], observer: MutationObserver) -> None:
        affected = self.affected_nodes(records)
        if not affected:
            return
        logger.debug("Scheduling %d changed node(s)", len(affected))
        self._scheduler.request_idle_callback(lambda deadline: self._expand(affected, deadline))

    def _expand(self, affected: list[Node], deadline: IdleDeadline) -> None:
        if not self.active:
            return
        leaves = _dedupe(
            leaf
            for node in affected
            if node.is_connected
            for leaf in iter_candidate_leaves(node, self._config)
        )
        self._tasks = [task for task in self._tasks if not task.done]
        if leaves:
            self._tasks.append(process_in_slices(self._scheduler, leaves, self._reconcile))


__all__ = ["ChangeWatcher"]
