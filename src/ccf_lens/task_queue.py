"""Bounded-concurrency FIFO queue for external lookups.

All scheduling happens on one asyncio event loop. The queue runs at most
``concurrency`` tasks at a time and supports cooperative cancellation through
an epoch counter: invalidate() bumps the epoch and drops pending work, and
results of tasks enqueued under an older epoch are discarded by
enqueue_guarded(). Running requests are never aborted.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

TaskFactory = Callable[[], Awaitable[Any]]


@dataclass
class _QueuedTask:
    task: TaskFactory
    key: str | None
    epoch: int


class LookupQueue:
    """FIFO task queue with a concurrency limit, in-flight de-duplication and epochs.

    Tasks are zero-argument coroutine functions. Failures are logged and free
    the slot without affecting sibling tasks. Enqueueing outside a running
    event loop only queues the task; draining starts with the next enqueue
    inside a loop or with join().
    """

    def __init__(self, concurrency: int = 2, logger: logging.Logger | None = None) -> None:
        self.concurrency = max(1, concurrency)
        self.logger = logger or logging.getLogger(__name__)
        self._pending: deque[_QueuedTask] = deque()
        self._active: set[asyncio.Task] = set()
        self._in_flight: dict[str, int] = {}
        self._epoch = 0

    # --- State ---

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def active_count(self) -> int:
        return len(self._active)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def is_in_flight(self, key: str) -> bool:
        """True if a task with this key is pending or running in the current epoch."""
        return key in self._in_flight

    # --- Enqueue ---

    def enqueue(self, task: TaskFactory, key: str | None = None) -> bool:
        """Admit a task.

        Args:
            task: Zero-argument coroutine function
            key: Optional de-duplication key (e.g. a paper id)

        Returns:
            False if a task with the same key is already outstanding.
        """
        if key is not None:
            if key in self._in_flight:
                self.logger.debug("Lookup for %s already in flight, skipping", key)
                return False
            self._in_flight[key] = self._epoch
        self._pending.append(_QueuedTask(task=task, key=key, epoch=self._epoch))
        self._drain()
        return True

    def enqueue_guarded(
        self,
        work: Callable[[], Awaitable[T]],
        on_result: Callable[[T], None],
        key: str | None = None,
    ) -> bool:
        """Enqueue work whose result is applied only if the epoch did not change.

        The epoch is captured now; after ``work()`` completes, ``on_result`` is
        called only when no invalidate() happened in between.
        """
        epoch = self._epoch

        async def guarded() -> None:
            value = await work()
            if epoch != self._epoch:
                self.logger.debug("Discarding stale result for %s (epoch %d, now %d)", key, epoch, self._epoch)
                return
            on_result(value)

        return self.enqueue(guarded, key=key)

    # --- Cancellation ---

    def invalidate(self) -> int:
        """Start a new epoch and drop tasks that have not started yet.

        Returns:
            Number of pending tasks dropped.
        """
        self._epoch += 1
        dropped = len(self._pending)
        self._pending.clear()
        self._in_flight.clear()
        if dropped:
            self.logger.debug("Epoch %d: dropped %d pending lookups", self._epoch, dropped)
        return dropped

    # --- Draining ---

    def _drain(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        while self._pending and len(self._active) < self.concurrency:
            item = self._pending.popleft()
            task = loop.create_task(self._run(item))
            self._active.add(task)
            task.add_done_callback(self._on_done)

    def _on_done(self, task: asyncio.Task) -> None:
        self._active.discard(task)
        self._drain()

    async def _run(self, item: _QueuedTask) -> None:
        try:
            await item.task()
        except Exception as e:
            self.logger.warning("Queued task %s failed: %s", item.key or "<anonymous>", e)
        finally:
            if item.key is not None and self._in_flight.get(item.key) == item.epoch:
                del self._in_flight[item.key]

    async def join(self) -> None:
        """Wait until no task is pending or running."""
        self._drain()
        while self._active or self._pending:
            if self._active:
                await asyncio.wait(set(self._active))
            else:
                await asyncio.sleep(0)
            self._drain()
