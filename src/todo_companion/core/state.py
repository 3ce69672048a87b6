# src/todo_companion/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field

from ..tasks.task_store import TaskStore
from .sessions import SessionTable


@dataclass
class AppState:
    # Store Settings on the state for easy access in connectors.
    settings: object

    task_store: TaskStore
    sessions: SessionTable = field(default_factory=SessionTable)
