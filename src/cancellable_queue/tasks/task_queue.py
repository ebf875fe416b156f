# src/cancellable_queue/tasks/task_queue.py

from __future__ import annotations

"""
TaskQueue: the public entry point.

Wires the components together on one event loop:

    submit() -> AdmissionSource (pending) -> Scheduler (FIFO, max_concurrency)
             -> ExecutionRunner (running/progress/completed/failed)
    cancel() -> CancellationChannel (cancelled)

and every event goes through the Aggregator, the only writer of the snapshot.

submit(), cancel() and clear() never block; they must be called from the
loop the queue runs on.
"""

import asyncio
import itertools
import logging
import uuid
from typing import Any

from ..core.errors import QueueClosedError
from ..core.ports import Snapshot, SnapshotObserver, WorkFunction
from .admission import AdmissionSource
from .aggregator import Aggregator, Subscription
from .cancellation import CancellationChannel
from .registry import ProcessRegistry
from .runner import ExecutionRunner
from .task_models import ActiveTask, ClearEvent, Task
from .task_scheduler import Scheduler

logger = logging.getLogger(__name__)


class TaskQueue:
    def __init__(
        self,
        work: WorkFunction,
        *,
        max_concurrency: int,
        terminal_ttl_seconds: float | None = None,
        drop_cancelled: bool = True,
    ) -> None:
        self._work = work
        self._registry = ProcessRegistry(drop_cancelled=drop_cancelled)
        self._aggregator = Aggregator(self._registry, terminal_ttl_seconds=terminal_ttl_seconds)
        self._admission = AdmissionSource(self._aggregator.emit)
        self._runner = ExecutionRunner(self._aggregator.emit)
        # raises ConfigurationError for max_concurrency < 1
        self._scheduler = Scheduler(self._runner, max_concurrency=max_concurrency)
        # identities are free again as soon as their terminal event is emitted
        self._runner.on_settled = self._scheduler.release
        self._cancellation = CancellationChannel(self._scheduler, self._aggregator.emit)
        self._tickets = itertools.count(1)
        self._closed = False

        logger.info(
            "TaskQueue ready max_concurrency=%s terminal_ttl=%s drop_cancelled=%s",
            self._scheduler.max_concurrency,
            terminal_ttl_seconds,
            drop_cancelled,
        )

    @classmethod
    def from_settings(cls, settings, work: WorkFunction) -> TaskQueue:
        return cls(
            work,
            max_concurrency=settings.max_concurrency,
            terminal_ttl_seconds=settings.terminal_ttl_seconds,
            drop_cancelled=settings.drop_cancelled,
        )

    @property
    def max_concurrency(self) -> int:
        return self._scheduler.max_concurrency

    @property
    def closed(self) -> bool:
        return self._closed

    # ---- lifecycle ----

    def start(self) -> None:
        """Start the aggregator on the running loop. submit() does this lazily."""
        if self._closed:
            raise QueueClosedError("TaskQueue is closed")
        self._aggregator.start()

    async def __aenter__(self) -> TaskQueue:
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Cancel everything still pending or running, apply remaining events, stop."""
        if self._closed:
            return
        self._closed = True

        # pending first, so nothing gets admitted while running tasks unwind
        entries = sorted(self._scheduler.active_entries(), key=lambda e: e.admitted)
        for entry in entries:
            self._cancellation.cancel(entry.identity)

        handles = [e.handle for e in self._scheduler.in_flight_entries() if e.handle is not None]
        if handles:
            await asyncio.gather(*handles, return_exceptions=True)

        await self._aggregator.drain()
        await self._aggregator.stop()
        logger.info("TaskQueue closed (cancelled=%d)", len(entries))

    # ---- operations ----

    def submit(
        self,
        identity: str | None = None,
        payload: Any = None,
        *,
        work: WorkFunction | None = None,
    ) -> str:
        """
        Record a new task as pending and admit it when a slot is free.

        Raises DuplicateTaskError if `identity` is pending or running.
        A generated identity is returned when none is given.
        """
        if self._closed:
            raise QueueClosedError("TaskQueue is closed")

        identity = str(identity) if identity is not None else uuid.uuid4().hex
        self._scheduler.ensure_available(identity)
        self._aggregator.start()

        entry = ActiveTask(
            identity=identity,
            ticket=next(self._tickets),
            payload=payload,
            work=work or self._work,
        )
        self._admission.record(entry)
        self._scheduler.enqueue(entry)
        return identity

    def cancel(self, identity: str) -> bool:
        """Cancel a pending or running task. Never raises; False means nothing to cancel."""
        return self._cancellation.cancel(str(identity))

    def clear(self, identity: str) -> None:
        """Drop a completed/failed (or retained cancelled) task from the snapshot."""
        self._aggregator.emit(ClearEvent(identity=str(identity)))

    def clear_finished(self) -> None:
        for identity, task in self.snapshot().items():
            if task.status.is_terminal:
                self.clear(identity)

    # ---- observation ----

    def snapshot(self) -> Snapshot:
        return self._aggregator.latest()

    def get(self, identity: str) -> Task | None:
        return self.snapshot().get(identity)

    def ticket_of(self, identity: str) -> int | None:
        """Ticket of the pending or running submission of `identity`, if any."""
        entry = self._scheduler.lookup(str(identity))
        return entry.ticket if entry is not None else None

    def observe(self, *, replay_latest: bool = True) -> Subscription:
        return self._aggregator.subscribe(replay_latest=replay_latest)

    def add_observer(self, observer: SnapshotObserver) -> None:
        self._aggregator.add_observer(observer)

    def remove_observer(self, observer: SnapshotObserver) -> None:
        self._aggregator.remove_observer(observer)

    async def drain(self) -> None:
        """Wait until every event emitted so far is reflected in the snapshot."""
        await self._aggregator.drain()

    async def join(self) -> None:
        """Wait until nothing is pending or running and the snapshot is up to date."""
        await self._scheduler.wait_idle()
        await self._aggregator.drain()
