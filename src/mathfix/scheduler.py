"""Cooperative idle-time scheduling.

Everything runs on one thread, interleaved with the host's own work. Long
traversals are cut into slices: a slice keeps going while its deadline has
time left, then queues itself for the next idle period and resumes where
it stopped.

``IdleScheduler`` is the host loop stand-in. Callbacks queued during an
idle period run in the next one, never in the current one, so a slice can
re-queue itself without starving the host.

Example:
    >>> scheduler = IdleScheduler(budget=0.01)
    >>> seen = []
    >>> task = process_in_slices(scheduler, range(5), seen.append)
    >>> scheduler.run_until_idle()
    1
    >>> seen
    [0, 1, 2, 3, 4]

"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from itertools import count
from time import perf_counter
from typing import TYPE_CHECKING

from mathfix.utils.logger import get_logger

if TYPE_CHECKING:
    from mathfix.dom import Document

logger = get_logger(__name__)

type Clock = Callable[[], float]
type IdleCallback = Callable[["IdleDeadline"], None]

DEFAULT_MAX_PERIODS = 10_000


@dataclass(slots=True)
class IdleDeadline:
    """Time budget of the current idle period."""

    clock: Clock
    end: float

    def time_remaining(self) -> float:
        """Seconds left in this period (never negative)."""
        return max(0.0, self.end - self.clock())

    @property
    def expired(self) -> bool:
        return self.time_remaining() <= 0.0


class IdleScheduler:
    """Queue of idle callbacks run in deadline-bounded periods.

    Args:
        budget: Seconds per idle period
        clock: Monotonic clock in seconds (injectable for tests)

    """

    __slots__ = ("_clock", "_ids", "_queue", "budget")

    def __init__(self, *, budget: float = 0.05, clock: Clock = perf_counter) -> None:
        self.budget = budget
        self._clock = clock
        self._queue: dict[int, IdleCallback] = {}
        self._ids = count(1)

    @property
    def pending(self) -> int:
        return len(self._queue)

    def request_idle_callback(self, callback: IdleCallback) -> int:
        """Queue callback for the next idle period. Returns a handle."""
        handle = next(self._ids)
        self._queue[handle] = callback
        return handle

    def cancel_idle_callback(self, handle: int) -> bool:
        return self._queue.pop(handle, None) is not None

    def clear(self) -> None:
        """Discard all pending work."""
        self._queue.clear()

    def run_idle_period(self) -> int:
        """Run the callbacks queued before this period started.

        An exception from one callback is logged and does not stop the
        others.

        Returns:
            Number of callbacks run.
        """
        deadline = IdleDeadline(self._clock, self._clock() + self.budget)
        batch = list(self._queue)
        ran = 0
        for handle in batch:
            callback = self._queue.pop(handle, None)
            if callback is None:
                continue
            try:
                callback(deadline)
            except Exception:
                logger.exception("Idle callback failed")
            ran += 1
        return ran

    def run_until_idle(
        self,
        document: Document | None = None,
        *,
        max_periods: int = DEFAULT_MAX_PERIODS,
    ) -> int:
        """Alternate mutation delivery and idle periods until nothing is left.

        Args:
            document: Document whose mutation records are delivered
                before each period
            max_periods: Upper bound on idle periods

        Returns:
            Number of idle periods run.
        """
        periods = 0
        while periods < max_periods:
            if document is not None:
                document.deliver_mutations()
            if not self._queue:
                return periods
            self.run_idle_period()
            periods += 1
        logger.warning("Scheduler still busy after %d idle periods", max_periods)
        return periods


class SliceTask[T]:
    """Processes items across idle periods, resuming where it left off.

    At least one item is processed per period so work always advances.
    A failing item is logged and skipped.
    """

    __slots__ = ("_fn", "_handle", "_scheduler", "cancelled", "errors", "index", "items")

    def __init__(
        self,
        scheduler: IdleScheduler,
        items: Iterable[T],
        fn: Callable[[T], object],
    ) -> None:
        self._scheduler = scheduler
        self._fn = fn
        self._handle: int | None = None
        self.items: list[T] = list(items)
        self.index = 0
        self.errors = 0
        self.cancelled = False

    @property
    def done(self) -> bool:
        return self.cancelled or self.index >= len(self.items)

    def start(self) -> SliceTask[T]:
        if not self.done:
            self._handle = self._scheduler.request_idle_callback(self._step)
        return self

    def cancel(self) -> None:
        self.cancelled = True
        if self._handle is not None:
            self._scheduler.cancel_idle_callback(self._handle)
            self._handle = None

    def _step(self, deadline: IdleDeadline) -> None:
        self._handle = None
        if self.cancelled:
            return
        first = True
        while self.index < len(self.items) and (first or not deadline.expired):
            first = False
            item = self.items[self.index]
            self.index += 1
            try:
                self._fn(item)
            except Exception:
                self.errors += 1
                logger.exception("Failed to process %r", item)
        if self.index < len(self.items):
            self._handle = self._scheduler.request_idle_callback(self._step)


def process_in_slices[T](
    scheduler: IdleScheduler,
    items: Iterable[T],
    fn: Callable[[T], object],
) -> SliceTask[T]:
    """Process items with fn across as many idle periods as needed."""
    return SliceTask(scheduler, items, fn).start()


__all__ = [
    "IdleDeadline",
    "IdleScheduler",
    "SliceTask",
    "process_in_slices",
]
