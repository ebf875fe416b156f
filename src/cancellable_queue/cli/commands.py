# src/cancellable_queue/cli/commands.py

from __future__ import annotations

import logging
from collections.abc import Callable

from ..core.errors import DuplicateTaskError, QueueClosedError
from ..core.state import AppState
from ..tasks.simulated import SimulatedJob
from ..tasks.task_api import summarize

CommandEmitter = Callable[[str], None]
CommandHandler = Callable[[AppState, list[str], CommandEmitter | None], str]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /submit, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        return handler(state, args, emit)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def cmd_help(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    return registry.build_help()


def cmd_submit(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /submit <id>                  -> simulated transfer with default steps
    /submit <id> <steps>          -> custom number of stages
    /submit <id> <steps> <fail%>  -> fail once progress reaches fail%
    """
    if not args:
        return "Usage: /submit <id> [steps] [fail_at%]"

    identity = args[0]
    try:
        steps = int(args[1]) if len(args) > 1 else state.settings.demo_steps
        fail_at = float(args[2]) if len(args) > 2 else None
    except ValueError:
        return "Usage: /submit <id> [steps] [fail_at%] (steps: integer, fail_at: number)"

    job = SimulatedJob(steps=steps, step_seconds=state.settings.demo_step_seconds, fail_at=fail_at)
    try:
        state.queue.submit(identity, job)
    except DuplicateTaskError:
        return f"Task {identity} is already pending or running."
    except QueueClosedError:
        return "Queue is closed."

    logger.debug("Submitted %s via console (%s)", identity, job)
    return f"Submitted {identity} ({steps} steps{'' if fail_at is None else f', fails at {fail_at:g}%'})."


def cmd_cancel(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return "Usage: /cancel <id>"
    identity = args[0]
    if state.queue.cancel(identity):
        return f"Cancelled {identity}."
    return f"Nothing to cancel for {identity}."


def cmd_clear(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /clear       -> drop every finished task from the list
    /clear <id>  -> drop one finished task
    """
    if not args:
        state.queue.clear_finished()
        return "Cleared finished tasks."
    state.queue.clear(args[0])
    return f"Cleared {args[0]} (if finished)."


def cmd_list(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    snapshot = state.queue.snapshot()
    if not snapshot:
        return "No tasks."

    lines = [f"Tasks (max_concurrency={state.queue.max_concurrency}):"]
    for task in snapshot.values():
        err = f" - {task.error}" if task.error else ""
        lines.append(f"  {task.identity:<12} {task.status.value:<10} {task.progress:5.1f}%{err}")

    counts = summarize(snapshot)
    lines.append("  " + ", ".join(f"{status.value}={n}" for status, n in counts.items() if n))
    return "\n".join(lines)


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register(
    "submit", cmd_submit, help_text="Queue a simulated transfer: /submit <id> [steps] [fail_at%]."
)
registry.register("cancel", cmd_cancel, help_text="Cancel a pending or running task: /cancel <id>.")
registry.register("clear", cmd_clear, help_text="Drop finished tasks: /clear [<id>].")
registry.register("list", cmd_list, help_text="Show the current task snapshot.", aliases=["ls"])
