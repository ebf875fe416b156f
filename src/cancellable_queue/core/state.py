# src/cancellable_queue/core/state.py

from __future__ import annotations

from dataclasses import dataclass

from ..config import Settings
from ..tasks.task_queue import TaskQueue


@dataclass
class AppState:
    # Store Settings on the state for easy access in command handlers.
    settings: Settings
    queue: TaskQueue
