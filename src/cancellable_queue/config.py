# src/cancellable_queue/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- Malformed values fall back to defaults; the queue validates what it needs.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

ENV_PREFIX = "CQUEUE"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _load_dotenv_if_available() -> None:
    """Load .env locally if python-dotenv is installed. Safe no-op otherwise."""
    try:
        from dotenv import load_dotenv  # type: ignore
    except Exception:
        return
    load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float | None) -> float | None:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    data_dir: Path

    # ---- Queue ----
    max_concurrency: int
    terminal_ttl_seconds: float | None
    drop_cancelled: bool

    # ---- Console demo ----
    demo_steps: int
    demo_step_seconds: float

    @staticmethod
    def from_env() -> "Settings":
        ttl = _env_float(_k("TERMINAL_TTL_SECONDS"), None)
        if ttl is not None and ttl <= 0:
            ttl = None

        return Settings(
            app_name=_env(_k("APP_NAME"), "cqueue") or "cqueue",
            log_level=_env(_k("LOG_LEVEL"), "INFO"),
            data_dir=_env_path(_k("DATA_DIR"), Path(".local/cqueue")),
            max_concurrency=_env_int(_k("MAX_CONCURRENCY"), 2),
            terminal_ttl_seconds=ttl,
            drop_cancelled=_env_bool(_k("DROP_CANCELLED"), True),
            demo_steps=max(1, _env_int(_k("DEMO_STEPS"), 5)),
            demo_step_seconds=max(0.0, _env_float(_k("DEMO_STEP_SECONDS"), 1.0) or 0.0),
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    global _SETTINGS
    if _SETTINGS is None:
        _load_dotenv_if_available()
        _SETTINGS = Settings.from_env()
    return _SETTINGS
