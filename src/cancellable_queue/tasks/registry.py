# src/cancellable_queue/tasks/registry.py

from __future__ import annotations

"""
Process registry.

Pure data: the authoritative identity -> Task mapping plus the rules for folding
events into it. No asyncio here; the aggregator is its only writer.

Rules:
- events of an older submission (lower ticket) than the tracked one are stale
- transitions outside ALLOWED_TRANSITIONS are rejected; terminal states allow
  none, so the first terminal event wins and an untracked identity only
  accepts `pending`
- cancelled tasks are removed from the mapping unless drop_cancelled=False
"""

import logging
from types import MappingProxyType

from ..core.ports import Snapshot
from .task_models import ALLOWED_TRANSITIONS, ClearEvent, Task, TaskEvent, TaskStatus

logger = logging.getLogger(__name__)


class ProcessRegistry:
    def __init__(self, *, drop_cancelled: bool = True) -> None:
        self._drop_cancelled = bool(drop_cancelled)
        self._tasks: dict[str, Task] = {}

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, identity: object) -> bool:
        return identity in self._tasks

    def get(self, identity: str) -> Task | None:
        return self._tasks.get(identity)

    def snapshot(self) -> Snapshot:
        return MappingProxyType(dict(self._tasks))

    def apply(self, event: TaskEvent | ClearEvent) -> bool:
        """Apply one event. Returns True if the mapping changed."""
        if isinstance(event, ClearEvent):
            return self._apply_clear(event)
        return self._apply_transition(event)

    def _apply_transition(self, event: TaskEvent) -> bool:
        identity = event.identity

        current = self._tasks.get(identity)
        if current is not None and event.ticket < current.ticket:
            logger.debug("Dropping stale %s event for %s#%s", event.status.value, identity, event.ticket)
            return False

        # A newer submission of a retained terminal task starts from scratch.
        previous = current.status if current is not None and current.ticket == event.ticket else None
        if event.status not in ALLOWED_TRANSITIONS[previous]:
            logger.warning(
                "Rejected transition %s -> %s for %s#%s",
                previous.value if previous else "new",
                event.status.value,
                identity,
                event.ticket,
            )
            return False

        progress = _clamp(event.progress)
        if previous is None or current is None:
            submitted_at = event.at
            payload = event.payload
        else:
            submitted_at = current.submitted_at
            payload = current.payload
            if previous == event.status == TaskStatus.RUNNING and progress <= current.progress:
                return False
            if event.status == TaskStatus.FAILED:
                # failure keeps the last known progress
                progress = current.progress

        if event.status == TaskStatus.CANCELLED and self._drop_cancelled:
            self._tasks.pop(identity, None)
            return True

        task = Task(
            identity=identity,
            status=event.status,
            progress=progress,
            payload=payload,
            ticket=event.ticket,
            submitted_at=submitted_at,
            updated_at=event.at,
            error=event.error if event.status == TaskStatus.FAILED else None,
        )
        if previous is None:
            # re-insert so a resubmitted identity moves to the end of the order
            self._tasks.pop(identity, None)
        self._tasks[identity] = task
        return True

    def _apply_clear(self, event: ClearEvent) -> bool:
        current = self._tasks.get(event.identity)
        if current is None or not current.status.is_terminal:
            return False
        if event.ticket is not None and event.ticket != current.ticket:
            return False
        del self._tasks[event.identity]
        return True


def _clamp(value: float) -> float:
    return min(100.0, max(0.0, float(value)))
