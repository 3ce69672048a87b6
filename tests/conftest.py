# tests/conftest.py

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from types import SimpleNamespace

import pytest

from todo_companion.core.flow import FlowController
from todo_companion.core.sessions import SessionTable
from todo_companion.core.state import AppState
from todo_companion.tasks.task_store import TaskStore

from .fakes import FakeGateway

# Monday; tomorrow is 2026-10-20, the month has 31 days.
NOW = datetime(2026, 10, 19, 9, 30)


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the connectors.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="todo-test",
        bot_token="123456:TEST-token",
        data_dir=tmp_path,
        tasks_db_path=tmp_path / "tasks.sqlite3",
        db_pool_size=4,
        db_timeout_seconds=2.0,
        session_timeout_seconds=600.0,
        reminders_enabled=False,
        reminder_times=[],
        console_user_id="console",
    )


@pytest.fixture()
def store(settings: SimpleNamespace) -> TaskStore:
    return TaskStore(
        settings.tasks_db_path,
        pool_size=settings.db_pool_size,
        timeout=settings.db_timeout_seconds,
    )


@pytest.fixture()
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture()
def state(settings: SimpleNamespace, store: TaskStore) -> AppState:
    """
    AppState wired with a real SQLite TaskStore.

    NOTE: the store is real on purpose; its correctness is part of what we test.
    """
    return AppState(settings=settings, task_store=store, sessions=SessionTable())


@pytest.fixture()
def flow(state: AppState, gateway: FakeGateway) -> FlowController:
    return FlowController(state.task_store, gateway, state.sessions, clock=lambda: NOW)
