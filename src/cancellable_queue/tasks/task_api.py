# src/cancellable_queue/tasks/task_api.py

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from typing import Any

from ..core.ports import Snapshot
from .task_models import Task, TaskStatus
from .task_queue import TaskQueue


def submit_many(queue: TaskQueue, items: Iterable[tuple[str | None, Any]]) -> list[str]:
    """
    Convenience helper: submit (identity, payload) pairs in order.
    Stops at the first DuplicateTaskError (already submitted items stay queued).
    """
    return [queue.submit(identity, payload) for identity, payload in items]


async def wait_for_terminal(
    queue: TaskQueue,
    identity: str,
    *,
    timeout: float | None = None,
) -> Task | None:
    """
    Wait until `identity` reaches a terminal state.

    Returns the terminal Task, or None when the task left the snapshot without one
    (a dropped cancellation, or a clear). Raises TimeoutError after `timeout` seconds.

    When `identity` is pending or running, results of its earlier submissions
    that are still retained in the snapshot are ignored.
    """
    ticket = queue.ticket_of(identity)

    async def _wait() -> Task | None:
        seen = False
        async with queue.observe(replay_latest=True) as sub:
            async for snapshot in sub:
                task = snapshot.get(identity)
                if task is not None and ticket is not None and task.ticket < ticket:
                    continue
                if task is None:
                    if seen:
                        return None
                    continue
                seen = True
                if task.status.is_terminal:
                    return task
        return None

    async with asyncio.timeout(timeout):
        return await _wait()


def summarize(snapshot: Snapshot) -> dict[TaskStatus, int]:
    """Count tasks per status (all statuses present, zero when absent)."""
    out = {status: 0 for status in TaskStatus}
    for task in snapshot.values():
        out[task.status] += 1
    return out
