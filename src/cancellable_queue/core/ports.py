# src/cancellable_queue/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the queue.

The queue depends on Protocols instead of concrete implementations.
Work functions come from the caller (an HTTP upload, a subprocess, a simulated job)
and only talk back through the progress reporter they are given.
"""

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Awaitable, Protocol

if TYPE_CHECKING:
    from ..tasks.task_models import Task

Snapshot = Mapping[str, "Task"]
# Read-only identity -> Task mapping, in first-submission order.


class ProgressReporter(Protocol):
    """
    Handed to a work function to publish progress in percent.

    Values are clamped to [0, 100]; values that do not increase progress are ignored.
    """

    def __call__(self, value: float) -> None: ...


class WorkFunction(Protocol):
    """
    Async unit of work for one task.

    Returning normally completes the task; raising an Exception fails it.
    Cancellation is delivered as asyncio.CancelledError at the next await.
    """

    def __call__(self, payload: Any, progress: ProgressReporter) -> Awaitable[None]: ...


class SnapshotObserver(Protocol):
    """Synchronous callback invoked with every published snapshot."""

    def __call__(self, snapshot: Snapshot) -> None: ...
