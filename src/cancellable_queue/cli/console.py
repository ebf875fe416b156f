# src/cancellable_queue/cli/console.py

from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
from datetime import datetime

from ..core.ports import Snapshot
from ..core.state import AppState
from ..tasks.task_models import Task
from .commands import registry as command_registry

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


class TransitionPrinter:
    """
    Snapshot observer that prints status changes (not every progress tick).

    Tasks that disappear while pending/running were cancelled (dropped).
    """

    def __init__(self) -> None:
        self._last: dict[str, Task] = {}

    def __call__(self, snapshot: Snapshot) -> None:
        for identity, task in snapshot.items():
            prev = self._last.get(identity)
            if prev is None or prev.ticket != task.ticket or prev.status != task.status:
                extra = f" ({task.error})" if task.error else ""
                _print_ts(f"[TASK] {identity} -> {task.status.value}{extra}")

        for identity, prev in self._last.items():
            if identity not in snapshot and not prev.status.is_terminal:
                _print_ts(f"[TASK] {identity} -> cancelled")

        self._last = dict(snapshot)


def _start_stdin_reader(lines: asyncio.Queue[str | None]) -> threading.Thread:
    """
    Read stdin in a daemon thread so a blocked input() never holds up shutdown.
    None is queued on EOF.
    """
    loop = asyncio.get_running_loop()

    def _put(item: str | None) -> None:
        # the loop may already be closed when the user types after exit
        with contextlib.suppress(RuntimeError):
            loop.call_soon_threadsafe(lines.put_nowait, item)

    def _read() -> None:
        while True:
            try:
                line = input(">>> ")
            except (EOFError, KeyboardInterrupt):
                _put(None)
                return
            _put(line)

    t = threading.Thread(target=_read, name="console-stdin", daemon=True)
    t.start()
    return t


async def run_console_loop(state: AppState) -> None:
    logger.info("Console started (max_concurrency=%s).", state.queue.max_concurrency)
    _print_ts("[CONSOLE] Use /help for commands. Use /exit to quit.\n")

    printer = TransitionPrinter()
    state.queue.add_observer(printer)

    def emit(text: str) -> None:
        _print_ts(text)

    lines: asyncio.Queue[str | None] = asyncio.Queue()
    _start_stdin_reader(lines)

    try:
        while True:
            line = await lines.get()
            if line is None:
                logger.info("Console EOF received, exiting.")
                break
            user_input = line.strip()

            if not user_input:
                continue

            if user_input.lower() in ("/exit", "/quit"):
                logger.info("Console exit command received.")
                break

            try:
                reply = command_registry.handle(state, user_input, emit=emit)
            except Exception:
                logger.exception("Command handler crashed.")
                reply = "Internal error while handling a command."

            if reply is None:
                reply = "Not a command. Use /help to list available commands."
            _print_ts(reply)
    finally:
        state.queue.remove_observer(printer)
        logger.info("Console finished.")
