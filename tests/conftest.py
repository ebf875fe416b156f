# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from .fakes import GatedWork, SnapshotRecorder


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with TaskQueue.from_settings and the commands.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the environment.
    """
    return SimpleNamespace(
        app_name="cqueue-test",
        log_level="DEBUG",
        data_dir=tmp_path,
        max_concurrency=2,
        terminal_ttl_seconds=None,
        drop_cancelled=True,
        demo_steps=2,
        demo_step_seconds=0.0,
    )


@pytest.fixture()
def work() -> GatedWork:
    return GatedWork()


@pytest.fixture()
def recorder() -> SnapshotRecorder:
    return SnapshotRecorder()
