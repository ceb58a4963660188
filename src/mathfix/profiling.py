"""ReconcileAccumulator: opt-in metrics for math reconciliation.

This module provides accumulated metrics while reconciling:
- Runs scanned and runs left untouched
- Wrappers, math containers and render fallbacks produced
- Total elapsed time

Zero overhead when disabled (get_reconcile_accumulator() returns None).

Example:
    from mathfix import process_html
    from mathfix.profiling import profiled_reconcile

    with profiled_reconcile() as metrics:
        html = process_html(source)

    print(metrics.summary())
    # {"total_ms": 1.2, "runs": 3, "noops": 2, "wrappers": 1, ...}

"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass, field
from time import perf_counter
from typing import Any


@dataclass
class ReconcileAccumulator:
    """Accumulated metrics during reconciliation.

    Attributes:
        start_time: Profiling start timestamp.
        runs: Runs built and examined.
        noops: Runs left untouched (nothing to render).
        wrappers: Processed wrappers spliced into the tree.
        math_nodes: Math containers produced, fallbacks included.
        fallbacks: Containers holding raw text after a failed render.

    """

    start_time: float = field(default_factory=perf_counter)
    runs: int = 0
    noops: int = 0
    wrappers: int = 0
    math_nodes: int = 0
    fallbacks: int = 0

    def record_run(self, *, wrapped: bool, math_nodes: int = 0, fallbacks: int = 0) -> None:
        """Record one reconciled run.

        Args:
            wrapped: Whether the run was replaced by a wrapper.
            math_nodes: Math containers produced for the run.
            fallbacks: How many of them fell back to raw text.

        """
        self.runs += 1
        if wrapped:
            self.wrappers += 1
        else:
            self.noops += 1
        self.math_nodes += math_nodes
        self.fallbacks += fallbacks

    @property
    def total_duration_ms(self) -> float:
        """Total profiling duration in milliseconds."""
        return (perf_counter() - self.start_time) * 1000

    def summary(self) -> dict[str, Any]:
        """Get summary of reconcile metrics."""
        return {
            "total_ms": round(self.total_duration_ms, 2),
            "runs": self.runs,
            "noops": self.noops,
            "wrappers": self.wrappers,
            "math_nodes": self.math_nodes,
            "fallbacks": self.fallbacks,
        }


_accumulator: ContextVar[ReconcileAccumulator | None] = ContextVar(
    "reconcile_accumulator",
    default=None,
)


def get_reconcile_accumulator() -> ReconcileAccumulator | None:
    """Get current accumulator (None if profiling disabled)."""
    return _accumulator.get()


@contextmanager
def profiled_reconcile() -> Iterator[ReconcileAccumulator]:
    """Context manager for profiled reconciliation.

    Creates a ReconcileAccumulator and makes it available via
    get_reconcile_accumulator() for the duration of the with block.

    Yields:
        ReconcileAccumulator populated by every reconcile in the block.

    """
    acc = ReconcileAccumulator()
    token: Token[ReconcileAccumulator | None] = _accumulator.set(acc)
    try:
        yield acc
    finally:
        _accumulator.reset(token)


__all__ = [
    "ReconcileAccumulator",
    "get_reconcile_accumulator",
    "profiled_reconcile",
]
