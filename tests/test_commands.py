# tests/test_commands.py

from __future__ import annotations

import pytest

from cancellable_queue.cli.commands import CommandRegistry, registry
from cancellable_queue.cli.console import TransitionPrinter
from cancellable_queue.core.state import AppState
from cancellable_queue.tasks.simulated import run_simulated_job
from cancellable_queue.tasks.task_models import TaskStatus
from cancellable_queue.tasks.task_queue import TaskQueue


def test_command_registry_routes_and_aliases(settings) -> None:
    reg = CommandRegistry()
    called = {"a": 0}

    def handler(state, args, emit):
        called["a"] += 1
        if emit is not None:
            emit("note")
        return f"a:{','.join(args)}"

    reg.register("a", handler, "does a", aliases=["alpha"])
    notes: list[str] = []

    assert reg.handle(None, "/a x y") == "a:x,y"  # type: ignore[arg-type]
    assert reg.handle(None, "/ALPHA", emit=notes.append) == "a:"  # type: ignore[arg-type]
    assert called["a"] == 2
    assert notes == ["note"]
    assert "/a - does a" in reg.build_help()


def test_command_registry_unknown_and_non_command() -> None:
    reg = CommandRegistry()
    assert reg.handle(None, "hello") is None  # type: ignore[arg-type]
    assert "Unknown command" in (reg.handle(None, "/nope") or "")  # type: ignore[arg-type]
    assert "Empty command" in (reg.handle(None, "/") or "")  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_console_commands_drive_the_queue(settings) -> None:
    settings.demo_step_seconds = 10.0
    async with TaskQueue.from_settings(settings, run_simulated_job) as queue:
        state = AppState(settings=settings, queue=queue)

        assert registry.handle(state, "/submit up1").startswith("Submitted up1")
        assert "already" in registry.handle(state, "/submit up1")
        assert "fails at 50%" in registry.handle(state, "/submit up2 4 50")
        assert registry.handle(state, "/submit up3 many").startswith("Usage")
        assert registry.handle(state, "/submit").startswith("Usage")

        await queue.drain()
        listing = registry.handle(state, "/list")
        assert "up1" in listing and "up2" in listing
        assert "running=2" in listing

        assert registry.handle(state, "/cancel up1") == "Cancelled up1."
        assert registry.handle(state, "/cancel up1") == "Nothing to cancel for up1."
        assert registry.handle(state, "/cancel").startswith("Usage")
        assert registry.handle(state, "/clear") == "Cleared finished tasks."
        assert "Available commands" in registry.handle(state, "/help")


@pytest.mark.asyncio
async def test_list_reports_empty_queue(settings) -> None:
    async with TaskQueue.from_settings(settings, run_simulated_job) as queue:
        state = AppState(settings=settings, queue=queue)
        assert registry.handle(state, "/ls") == "No tasks."


@pytest.mark.asyncio
async def test_transition_printer_reports_status_changes(settings, capsys) -> None:
    settings.demo_step_seconds = 0.0
    async with TaskQueue.from_settings(settings, run_simulated_job) as queue:
        queue.add_observer(TransitionPrinter())
        state = AppState(settings=settings, queue=queue)
        registry.handle(state, "/submit ok 2")
        registry.handle(state, "/submit bad 2 50")
        await queue.join()
        assert queue.get("bad").status == TaskStatus.FAILED

    out = capsys.readouterr().out
    assert "[TASK] ok -> running" in out
    assert "[TASK] ok -> completed" in out
    assert "[TASK] bad -> failed (SimulatedFailure: transfer aborted at 50%)" in out
