# src/cancellable_queue/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds a TaskQueue running the simulated transfer work
function, then runs the console until /exit, EOF or Ctrl+C.
"""

from __future__ import annotations

import asyncio
import logging

from ..config import get_settings
from ..core.errors import ConfigurationError
from ..core.state import AppState
from ..logging_setup import setup_logging
from ..tasks.simulated import run_simulated_job
from ..tasks.task_queue import TaskQueue
from .console import run_console_loop

logger = logging.getLogger(__name__)


async def _run(settings) -> None:
    async with TaskQueue.from_settings(settings, run_simulated_job) as queue:
        state = AppState(settings=settings, queue=queue)
        await run_console_loop(state)
        # aclose() on exit cancels whatever is still pending or running


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)

    try:
        asyncio.run(_run(settings))
    except ConfigurationError as e:
        logger.error("Invalid configuration: %s", e)
        raise SystemExit(2) from e
    except KeyboardInterrupt:
        logger.info("Interrupted.")
    finally:
        logger.info("Bye.")


if __name__ == "__main__":
    main()
