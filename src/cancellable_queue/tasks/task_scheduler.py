# src/cancellable_queue/tasks/task_scheduler.py

from __future__ import annotations

"""
Task scheduler.

Owns the admission queue and the concurrency slots:
- pending entries wait in FIFO order (no priorities)
- while fewer than max_concurrency work functions are in flight, the head entry
  is admitted and handed to the ExecutionRunner
- the identity is released once the runner emits its terminal event; the slot
  is freed only when the entry's asyncio task has actually finished, then
  admission runs again

Only the scheduler and the cancellation channel touch these structures, and
only from the event loop thread.
"""

import asyncio
import logging
from collections import deque
from functools import partial

from ..core.errors import ConfigurationError, DuplicateTaskError
from .runner import ExecutionRunner
from .task_models import ActiveTask

logger = logging.getLogger(__name__)


def validate_max_concurrency(value: object) -> int:
    # bool is an int subclass; True is not a meaningful limit
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"max_concurrency must be an integer >= 1, got {value!r}")
    if value < 1:
        raise ConfigurationError(f"max_concurrency must be >= 1, got {value}")
    return value


class Scheduler:
    def __init__(self, runner: ExecutionRunner, *, max_concurrency: int) -> None:
        self._max = validate_max_concurrency(max_concurrency)
        self._runner = runner
        self._queue: deque[ActiveTask] = deque()
        # identity -> entry, for every pending or running submission
        self._active: dict[str, ActiveTask] = {}
        self._in_flight: set[ActiveTask] = set()
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def max_concurrency(self) -> int:
        return self._max

    @property
    def pending_count(self) -> int:
        return len(self._queue)

    @property
    def in_flight_count(self) -> int:
        return len(self._in_flight)

    def lookup(self, identity: str) -> ActiveTask | None:
        return self._active.get(identity)

    def active_entries(self) -> list[ActiveTask]:
        return list(self._active.values())

    def in_flight_entries(self) -> list[ActiveTask]:
        return list(self._in_flight)

    def ensure_available(self, identity: str) -> None:
        if identity in self._active:
            raise DuplicateTaskError(identity)

    def enqueue(self, entry: ActiveTask) -> None:
        self.ensure_available(entry.identity)
        self._active[entry.identity] = entry
        self._queue.append(entry)
        self._idle.clear()
        self._admit()

    def withdraw(self, entry: ActiveTask) -> None:
        """Remove a not-yet-admitted entry from the admission queue."""
        try:
            self._queue.remove(entry)
        except ValueError:
            pass
        self.release(entry)

    def release(self, entry: ActiveTask) -> None:
        """Forget the identity so it can be submitted again."""
        if self._active.get(entry.identity) is entry:
            del self._active[entry.identity]
        self._update_idle()

    async def wait_idle(self) -> None:
        await self._idle.wait()

    def _admit(self) -> None:
        while len(self._in_flight) < self._max and self._queue:
            entry = self._queue.popleft()
            entry.admitted = True
            self._in_flight.add(entry)
            entry.handle = self._runner.launch(entry)
            entry.handle.add_done_callback(partial(self._on_done, entry))
            logger.debug(
                "Admitted %s#%s (in_flight=%d/%d, waiting=%d)",
                entry.identity,
                entry.ticket,
                len(self._in_flight),
                self._max,
                len(self._queue),
            )

    def _on_done(self, entry: ActiveTask, handle: asyncio.Task[None]) -> None:
        self._in_flight.discard(entry)

        if handle.cancelled():
            self._runner.abandon(entry)
        else:
            exc = handle.exception()
            if exc is not None:
                # runner bug, not a work failure (those are converted to state)
                logger.error("Runner crashed for %s#%s", entry.identity, entry.ticket, exc_info=exc)
                self._runner.abandon(entry, error=f"{type(exc).__name__}: {exc}")

        self.release(entry)
        self._admit()

    def _update_idle(self) -> None:
        if not self._active and not self._in_flight:
            self._idle.set()
        else:
            self._idle.clear()
