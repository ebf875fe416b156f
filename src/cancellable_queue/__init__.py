"""Bounded-concurrency cancellable task queue for asyncio."""

from .core.errors import ConfigurationError, DuplicateTaskError, QueueClosedError, TaskQueueError
from .tasks.task_models import Task, TaskStatus
from .tasks.task_queue import TaskQueue

__all__ = [
    "ConfigurationError",
    "DuplicateTaskError",
    "QueueClosedError",
    "Task",
    "TaskQueue",
    "TaskQueueError",
    "TaskStatus",
]
