# tests/test_config.py

from __future__ import annotations

from pathlib import Path

import pytest

from cancellable_queue.config import Settings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "CQUEUE_APP_NAME",
        "CQUEUE_LOG_LEVEL",
        "CQUEUE_DATA_DIR",
        "CQUEUE_MAX_CONCURRENCY",
        "CQUEUE_TERMINAL_TTL_SECONDS",
        "CQUEUE_DROP_CANCELLED",
        "CQUEUE_DEMO_STEPS",
        "CQUEUE_DEMO_STEP_SECONDS",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    s = Settings.from_env()
    assert s.app_name == "cqueue"
    assert s.log_level == "INFO"
    assert s.data_dir == Path(".local/cqueue")
    assert s.max_concurrency == 2
    assert s.terminal_ttl_seconds is None
    assert s.drop_cancelled is True
    assert s.demo_steps == 5
    assert s.demo_step_seconds == 1.0


def test_values_from_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("CQUEUE_MAX_CONCURRENCY", "4")
    monkeypatch.setenv("CQUEUE_TERMINAL_TTL_SECONDS", "30")
    monkeypatch.setenv("CQUEUE_DROP_CANCELLED", "no")
    monkeypatch.setenv("CQUEUE_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("CQUEUE_DEMO_STEP_SECONDS", "0.25")

    s = Settings.from_env()
    assert s.max_concurrency == 4
    assert s.terminal_ttl_seconds == 30.0
    assert s.drop_cancelled is False
    assert s.data_dir == tmp_path
    assert s.demo_step_seconds == 0.25


def test_malformed_values_fall_back(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CQUEUE_MAX_CONCURRENCY", "lots")
    monkeypatch.setenv("CQUEUE_TERMINAL_TTL_SECONDS", "soon")
    monkeypatch.setenv("CQUEUE_DEMO_STEPS", "0")

    s = Settings.from_env()
    assert s.max_concurrency == 2
    assert s.terminal_ttl_seconds is None
    assert s.demo_steps == 1


def test_non_positive_ttl_disables_expiry(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CQUEUE_TERMINAL_TTL_SECONDS", "0")
    assert Settings.from_env().terminal_ttl_seconds is None


def test_zero_concurrency_is_passed_through_for_the_queue_to_reject(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CQUEUE_MAX_CONCURRENCY", "0")
    assert Settings.from_env().max_concurrency == 0
