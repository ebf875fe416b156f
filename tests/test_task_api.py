# tests/test_task_api.py

from __future__ import annotations

import asyncio

import pytest

from cancellable_queue.core.errors import DuplicateTaskError
from cancellable_queue.tasks.simulated import SimulatedFailure, SimulatedJob, run_simulated_job
from cancellable_queue.tasks.task_api import submit_many, summarize, wait_for_terminal
from cancellable_queue.tasks.task_models import TaskStatus
from cancellable_queue.tasks.task_queue import TaskQueue

from .fakes import GatedWork, fail_halfway, quick_work


@pytest.mark.asyncio
async def test_submit_many_keeps_order_and_stops_on_duplicate(work: GatedWork) -> None:
    async with TaskQueue(work, max_concurrency=1) as queue:
        ids = submit_many(queue, [("a", "a"), ("b", "b"), (None, "c")])
        assert ids[:2] == ["a", "b"]
        assert len(ids) == 3

        with pytest.raises(DuplicateTaskError):
            submit_many(queue, [("d", "d"), ("a", "again")])
        await queue.drain()
        assert list(queue.snapshot()) == ["a", "b", ids[2], "d"]

        for key in ("a", "b", "c", "d"):
            work.release(key)
        await queue.join()


@pytest.mark.asyncio
async def test_wait_for_terminal_returns_final_task() -> None:
    async with TaskQueue(quick_work, max_concurrency=1) as queue:
        queue.submit("a")
        task = await wait_for_terminal(queue, "a", timeout=2.0)
        assert task is not None
        assert task.status == TaskStatus.COMPLETED


@pytest.mark.asyncio
async def test_wait_for_terminal_returns_none_for_dropped_cancel(work: GatedWork) -> None:
    async with TaskQueue(work, max_concurrency=1) as queue:
        queue.submit("a", "a")
        await queue.drain()
        waiter = asyncio.create_task(wait_for_terminal(queue, "a", timeout=2.0))
        await asyncio.sleep(0)
        queue.cancel("a")
        assert await waiter is None


@pytest.mark.asyncio
async def test_wait_for_terminal_times_out(work: GatedWork) -> None:
    async with TaskQueue(work, max_concurrency=1) as queue:
        queue.submit("a", "a")
        with pytest.raises(TimeoutError):
            await wait_for_terminal(queue, "a", timeout=0.05)


@pytest.mark.asyncio
async def test_summarize_counts_statuses(work: GatedWork) -> None:
    async with TaskQueue(work, max_concurrency=1) as queue:
        queue.submit("a", "a")
        queue.submit("b", "b")
        await queue.drain()
        counts = summarize(queue.snapshot())
        assert counts[TaskStatus.RUNNING] == 1
        assert counts[TaskStatus.PENDING] == 1
        assert counts[TaskStatus.COMPLETED] == 0


@pytest.mark.asyncio
async def test_simulated_job_reports_each_stage() -> None:
    seen: list[float] = []
    await run_simulated_job(SimulatedJob(steps=4, step_seconds=0), seen.append)
    assert seen == [25.0, 50.0, 75.0, 100.0]


@pytest.mark.asyncio
async def test_simulated_job_fails_at_threshold() -> None:
    seen: list[float] = []
    with pytest.raises(SimulatedFailure):
        await run_simulated_job(SimulatedJob(steps=2, step_seconds=0, fail_at=50), seen.append)
    assert seen == [50]


@pytest.mark.asyncio
async def test_simulated_failure_becomes_failed_state() -> None:
    async with TaskQueue(run_simulated_job, max_concurrency=1) as queue:
        queue.submit("e", SimulatedJob(steps=2, step_seconds=0, fail_at=50))
        task = await wait_for_terminal(queue, "e", timeout=2.0)
        assert task.status == TaskStatus.FAILED
        assert task.progress == 50


@pytest.mark.asyncio
async def test_wait_for_terminal_ignores_result_of_earlier_submission(work: GatedWork) -> None:
    async with TaskQueue(fail_halfway, max_concurrency=1) as queue:
        queue.submit("a")
        await queue.join()
        assert queue.get("a").status == TaskStatus.FAILED

        queue.submit("a", "retry", work=work)
        waiter = asyncio.create_task(wait_for_terminal(queue, "a", timeout=2.0))
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        assert not waiter.done()

        work.release("retry")
        task = await waiter
        assert task is not None
        assert task.status == TaskStatus.COMPLETED
        assert task.payload == "retry"
