# src/cancellable_queue/tasks/aggregator.py

from __future__ import annotations

"""
Aggregator / snapshot publisher.

The only consumer of state-change events. Every producer (admission, runner,
cancellation) calls emit(); a single asyncio task applies the events to the
ProcessRegistry in arrival order and publishes the resulting snapshot to:
- synchronous observers registered with add_observer()
- async subscriptions created with subscribe()

Completed/failed tasks stay in the snapshot until cleared, or until
terminal_ttl_seconds elapse when configured.
"""

import asyncio
import logging
from typing import Any

from ..core.ports import Snapshot, SnapshotObserver
from .registry import ProcessRegistry
from .task_models import ClearEvent, TaskEvent

logger = logging.getLogger(__name__)

_STOP: Any = object()
_END: Any = object()


class Subscription:
    """
    Async iterator over published snapshots.

    Not restartable: it only sees snapshots published after it was created
    (plus the latest one, when replayed on subscribe). Ends when closed.
    """

    def __init__(self, aggregator: Aggregator) -> None:
        self._aggregator = aggregator
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def push(self, snapshot: Snapshot) -> None:
        if not self._closed:
            self._queue.put_nowait(snapshot)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_END)
        self._aggregator._unsubscribe(self)

    def __aiter__(self) -> Subscription:
        return self

    async def __anext__(self) -> Snapshot:
        item = await self._queue.get()
        if item is _END:
            # keep ending for repeated iteration after close
            self._queue.put_nowait(_END)
            raise StopAsyncIteration
        return item

    async def __aenter__(self) -> Subscription:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()


class Aggregator:
    def __init__(
        self,
        registry: ProcessRegistry,
        *,
        terminal_ttl_seconds: float | None = None,
    ) -> None:
        self._registry = registry
        self._ttl = terminal_ttl_seconds if terminal_ttl_seconds and terminal_ttl_seconds > 0 else None
        self._events: asyncio.Queue[Any] = asyncio.Queue()
        self._consumer: asyncio.Task[None] | None = None
        self._observers: list[SnapshotObserver] = []
        self._subscriptions: list[Subscription] = []
        self._expiry: dict[tuple[str, int], asyncio.TimerHandle] = {}
        self._latest: Snapshot = registry.snapshot()
        self._stopped = False

    @property
    def running(self) -> bool:
        return self._consumer is not None and not self._consumer.done()

    def latest(self) -> Snapshot:
        return self._latest

    def start(self) -> None:
        """Start the consumer task on the running loop (idempotent)."""
        if self._consumer is None:
            self._consumer = asyncio.get_running_loop().create_task(
                self._consume(), name="cancellable-queue-aggregator"
            )

    def emit(self, event: TaskEvent | ClearEvent) -> None:
        self._events.put_nowait(event)

    async def drain(self) -> None:
        """Wait until every event emitted so far has been applied."""
        if self._consumer is None:
            return
        await self._events.join()

    async def stop(self) -> None:
        self._stopped = True
        for handle in self._expiry.values():
            handle.cancel()
        self._expiry.clear()

        if self._consumer is not None and not self._consumer.done():
            self._events.put_nowait(_STOP)
            await self._consumer

        for sub in list(self._subscriptions):
            sub.close()

    # ---- observers ----

    def add_observer(self, observer: SnapshotObserver) -> None:
        self._observers.append(observer)

    def remove_observer(self, observer: SnapshotObserver) -> None:
        try:
            self._observers.remove(observer)
        except ValueError:
            pass

    def subscribe(self, *, replay_latest: bool = True) -> Subscription:
        sub = Subscription(self)
        if replay_latest:
            sub.push(self._latest)
        if self._stopped:
            # nothing will be published any more
            sub.close()
            return sub
        self._subscriptions.append(sub)
        return sub

    def _unsubscribe(self, sub: Subscription) -> None:
        try:
            self._subscriptions.remove(sub)
        except ValueError:
            pass

    # ---- consumer ----

    async def _consume(self) -> None:
        logger.debug("Aggregator started")
        while True:
            event = await self._events.get()
            try:
                if event is _STOP:
                    break
                self._apply(event)
            except Exception:
                logger.exception("Failed to apply event %r", event)
            finally:
                self._events.task_done()
        logger.debug("Aggregator stopped")

    def _apply(self, event: TaskEvent | ClearEvent) -> None:
        if isinstance(event, ClearEvent):
            self._cancel_expiry(event)

        if not self._registry.apply(event):
            return

        # dropped cancellations are already gone
        if isinstance(event, TaskEvent) and event.status.is_terminal and event.identity in self._registry:
            self._schedule_expiry(event)

        self._publish(self._registry.snapshot())

    def _cancel_expiry(self, event: ClearEvent) -> None:
        ticket = event.ticket
        if ticket is None:
            current = self._registry.get(event.identity)
            if current is None:
                return
            ticket = current.ticket
        handle = self._expiry.pop((event.identity, ticket), None)
        if handle is not None:
            handle.cancel()

    def _schedule_expiry(self, event: TaskEvent) -> None:
        if self._ttl is None:
            return
        key = (event.identity, event.ticket)
        loop = asyncio.get_running_loop()
        self._expiry[key] = loop.call_later(
            self._ttl, self.emit, ClearEvent(identity=event.identity, ticket=event.ticket)
        )

    def _publish(self, snapshot: Snapshot) -> None:
        self._latest = snapshot

        for observer in list(self._observers):
            try:
                observer(snapshot)
            except Exception:
                logger.exception("Snapshot observer %r failed", observer)

        for sub in list(self._subscriptions):
            sub.push(snapshot)
