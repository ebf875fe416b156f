# src/cancellable_queue/tasks/simulated.py

"""
Simulated staged transfer.

Stands in for a real upload: sleeps through equal stages and reports progress
after each. Used by the console demo and by tests.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from ..core.ports import ProgressReporter

logger = logging.getLogger(__name__)


class SimulatedFailure(RuntimeError):
    pass


@dataclass(slots=True, frozen=True)
class SimulatedJob:
    steps: int = 5
    step_seconds: float = 1.0
    # fail once progress reaches this percentage (None = never fail)
    fail_at: float | None = None


async def run_simulated_job(job: SimulatedJob, progress: ProgressReporter) -> None:
    steps = max(1, int(job.steps))
    for i in range(1, steps + 1):
        await asyncio.sleep(max(0.0, float(job.step_seconds)))
        done = 100.0 * i / steps
        if job.fail_at is not None and done >= job.fail_at:
            progress(job.fail_at)
            raise SimulatedFailure(f"transfer aborted at {job.fail_at:g}%")
        progress(done)
