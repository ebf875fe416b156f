# src/cancellable_queue/tasks/runner.py

from __future__ import annotations

"""
Execution runner.

Drives one admitted task's work function:
- emits `running` (progress 0) at launch
- forwards progress reported by the work function
- emits exactly one terminal event: completed (100), failed (last progress)
  or nothing if cancellation was acknowledged first

Work failures never leave this module; they become a `failed` state.
"""

import asyncio
import logging
import math
from collections.abc import Callable

from .task_models import ActiveTask, TaskEvent, TaskStatus

logger = logging.getLogger(__name__)


class TaskProgress:
    """
    Progress reporter handed to a work function.

    Values are clamped to [0, 100]. Non-increasing values and NaN are ignored,
    as is anything reported after cancellation or a terminal event.
    """

    __slots__ = ("_entry", "_emit")

    def __init__(self, entry: ActiveTask, emit: Callable[[TaskEvent], None]) -> None:
        self._entry = entry
        self._emit = emit

    @property
    def value(self) -> float:
        return self._entry.progress

    def __call__(self, value: float) -> None:
        entry = self._entry
        if entry.cancel_requested or entry.finished:
            return

        value = float(value)
        if math.isnan(value):
            return
        value = min(100.0, max(0.0, value))
        if value <= entry.progress:
            return

        entry.progress = value
        self._emit(
            TaskEvent(
                identity=entry.identity,
                ticket=entry.ticket,
                status=TaskStatus.RUNNING,
                progress=value,
            )
        )


class ExecutionRunner:
    def __init__(
        self,
        emit: Callable[[TaskEvent], None],
        *,
        on_settled: Callable[[ActiveTask], None] | None = None,
    ) -> None:
        self._emit = emit
        # called with the entry right after its terminal event is emitted
        self.on_settled = on_settled

    def launch(self, entry: ActiveTask) -> asyncio.Task[None]:
        """Emit `running` and start the entry's work function on the current loop."""
        self._emit(
            TaskEvent(
                identity=entry.identity,
                ticket=entry.ticket,
                status=TaskStatus.RUNNING,
                progress=0.0,
            )
        )
        logger.info("Task %s#%s -> running", entry.identity, entry.ticket)
        return asyncio.get_running_loop().create_task(
            self._drive(entry), name=f"cancellable-queue:{entry.identity}"
        )

    async def _drive(self, entry: ActiveTask) -> None:
        progress = TaskProgress(entry, self._emit)
        try:
            await entry.work(entry.payload, progress)
        except asyncio.CancelledError:
            logger.debug("Task %s#%s work cancelled", entry.identity, entry.ticket)
            raise
        except Exception as exc:
            logger.warning(
                "Task %s#%s work failed at %.1f%%",
                entry.identity,
                entry.ticket,
                entry.progress,
                exc_info=True,
            )
            self._finish(entry, TaskStatus.FAILED, error=f"{type(exc).__name__}: {exc}")
            return

        self._finish(entry, TaskStatus.COMPLETED)

    def abandon(self, entry: ActiveTask, *, error: str | None = None) -> None:
        """
        Settle an entry whose asyncio task ended without a terminal event:
        cancelled without a cancel() request (e.g. the work function raised
        CancelledError itself), or failed when `error` is given.
        """
        status = TaskStatus.FAILED if error is not None else TaskStatus.CANCELLED
        self._finish(entry, status, error=error)

    def _finish(self, entry: ActiveTask, status: TaskStatus, *, error: str | None = None) -> None:
        # No await between this check and the emit: cancel() cannot interleave.
        if entry.cancel_requested or entry.finished:
            logger.debug(
                "Discarding %s for %s#%s (already settled)", status.value, entry.identity, entry.ticket
            )
            return

        entry.finished = True
        if status == TaskStatus.COMPLETED:
            entry.progress = 100.0

        self._emit(
            TaskEvent(
                identity=entry.identity,
                ticket=entry.ticket,
                status=status,
                progress=entry.progress,
                error=error,
            )
        )
        if self.on_settled is not None:
            self.on_settled(entry)
        logger.info("Task %s#%s -> %s", entry.identity, entry.ticket, status.value)
