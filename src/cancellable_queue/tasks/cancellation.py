# src/cancellable_queue/tasks/cancellation.py

from __future__ import annotations

import logging
from collections.abc import Callable

from .task_models import TaskEvent, TaskStatus
from .task_scheduler import Scheduler

logger = logging.getLogger(__name__)


class CancellationChannel:
    """
    Cancel by identity.

    - pending: withdrawn from the admission queue, never runs
    - running: acknowledged immediately (`cancelled` emitted, identity freed),
      then the asyncio task is cancelled; the work function unwinds at its next await
    - finished, already cancelled or unknown: no-op
    """

    def __init__(self, scheduler: Scheduler, emit: Callable[[TaskEvent], None]) -> None:
        self._scheduler = scheduler
        self._emit = emit

    def cancel(self, identity: str) -> bool:
        """Returns True if a cancellation was acknowledged."""
        entry = self._scheduler.lookup(identity)
        if entry is None or entry.finished or entry.cancel_requested:
            logger.debug("cancel(%s): nothing to cancel", identity)
            return False

        # From here on the runner emits nothing more for this entry.
        entry.cancel_requested = True
        self._emit(
            TaskEvent(
                identity=entry.identity,
                ticket=entry.ticket,
                status=TaskStatus.CANCELLED,
                progress=entry.progress,
            )
        )

        if not entry.admitted:
            self._scheduler.withdraw(entry)
            logger.info("Task %s#%s cancelled before admission", entry.identity, entry.ticket)
            return True

        self._scheduler.release(entry)
        if entry.handle is not None:
            entry.handle.cancel()
        logger.info("Task %s#%s cancelled while running", entry.identity, entry.ticket)
        return True
