# src/cancellable_queue/tasks/admission.py

from __future__ import annotations

import logging
from collections.abc import Callable

from .task_models import ActiveTask, TaskEvent, TaskStatus

logger = logging.getLogger(__name__)


class AdmissionSource:
    """Records accepted submissions as pending. Never blocks."""

    def __init__(self, emit: Callable[[TaskEvent], None]) -> None:
        self._emit = emit

    def record(self, entry: ActiveTask) -> None:
        self._emit(
            TaskEvent(
                identity=entry.identity,
                ticket=entry.ticket,
                status=TaskStatus.PENDING,
                progress=0.0,
                payload=entry.payload,
            )
        )
        logger.debug("Task %s#%s -> pending", entry.identity, entry.ticket)
