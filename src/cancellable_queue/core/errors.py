# src/cancellable_queue/core/errors.py

"""
Caller-facing errors.

Only API misuse surfaces as an exception. Failures inside a task's work
function are converted into a `failed` task state and never raised here.
"""

from __future__ import annotations


class TaskQueueError(Exception):
    """Base class for errors reported by the task queue."""


class ConfigurationError(TaskQueueError, ValueError):
    """Invalid construction arguments (e.g. max_concurrency < 1)."""


class DuplicateTaskError(TaskQueueError):
    """A submission reused an identity that is still pending or running."""

    def __init__(self, identity: str) -> None:
        self.identity = identity
        super().__init__(f"Task {identity!r} is already pending or running")


class QueueClosedError(TaskQueueError):
    """The queue was closed and no longer accepts submissions."""
