# src/cancellable_queue/tasks/task_models.py

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    import asyncio

    from ..core.ports import WorkFunction


class TaskStatus(StrEnum):
    """
    Task lifecycle status.

    Exactly one holds at a time. Valid order for one submission:
    pending -> running -> (completed | failed | cancelled),
    or pending -> cancelled when cancelled before admission.
    """

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL


_TERMINAL = frozenset({TaskStatus.COMPLETED, TaskStatus.FAILED, TaskStatus.CANCELLED})

# previous status (None = not tracked yet) -> statuses an event may move it to
ALLOWED_TRANSITIONS: dict[TaskStatus | None, frozenset[TaskStatus]] = {
    None: frozenset({TaskStatus.PENDING}),
    TaskStatus.PENDING: frozenset({TaskStatus.RUNNING, TaskStatus.CANCELLED}),
    TaskStatus.RUNNING: frozenset(
        {TaskStatus.RUNNING, TaskStatus.COMPLETED, TaskStatus.FAILED, TaskStatus.CANCELLED}
    ),
    TaskStatus.COMPLETED: frozenset(),
    TaskStatus.FAILED: frozenset(),
    TaskStatus.CANCELLED: frozenset(),
}


@dataclass(slots=True, frozen=True)
class Task:
    identity: str
    status: TaskStatus
    progress: float
    payload: Any
    ticket: int
    submitted_at: float
    updated_at: float
    error: str | None = None


@dataclass(slots=True, frozen=True)
class TaskEvent:
    """
    A state transition for one submission.

    `ticket` identifies the submission; a reused identity gets a new ticket,
    so late events of the earlier submission can be told apart.
    """

    identity: str
    ticket: int
    status: TaskStatus
    progress: float = 0.0
    payload: Any = None
    error: str | None = None
    at: float = field(default_factory=time.time)


@dataclass(slots=True, frozen=True)
class ClearEvent:
    """Drop a terminal task from the snapshot (ticket=None matches any)."""

    identity: str
    ticket: int | None = None


@dataclass(slots=True, eq=False)
class ActiveTask:
    """
    Scheduler-side bookkeeping for one pending or running submission.

    Never published; observers only see Task values built from events.
    """

    identity: str
    ticket: int
    payload: Any
    work: WorkFunction
    admitted: bool = False
    cancel_requested: bool = False
    finished: bool = False
    progress: float = 0.0
    handle: asyncio.Task[None] | None = None
