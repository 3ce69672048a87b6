# src/todo_companion/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the task store and the session table into AppState.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.errors import StoreError
from ..core.sessions import SessionTable
from ..core.state import AppState
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    try:
        settings.data_dir.mkdir(parents=True, exist_ok=True)
        settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise StoreError(f"Cannot create data directories: {exc}") from exc


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().

    Raises StoreError if the task store cannot be initialized.
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    state = AppState(
        settings=settings,
        task_store=TaskStore(
            settings.tasks_db_path,
            pool_size=settings.db_pool_size,
            timeout=settings.db_timeout_seconds,
        ),
        sessions=SessionTable(timeout_seconds=settings.session_timeout_seconds),
    )
    return state
