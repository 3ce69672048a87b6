# tests/test_bootstrap.py

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from types import SimpleNamespace

import pytest

from todo_companion.cli import main as main_module
from todo_companion.cli.bootstrap import create_initial_state
from todo_companion.config import Settings


def test_create_initial_state_wires_store_and_sessions(settings: SimpleNamespace) -> None:
    state = create_initial_state(settings=settings)

    assert state.settings is settings
    assert state.task_store.count_tasks() == 0
    assert len(state.sessions) == 0
    assert settings.tasks_db_path.exists()


def _settings(tmp_path: Path, **overrides) -> Settings:
    base = Settings(
        app_name="todo-test",
        log_level="INFO",
        connector="telegram",
        bot_token="123:abc",
        console_user_id="console",
        data_dir=tmp_path,
        tasks_db_path=tmp_path / "tasks.sqlite3",
        db_pool_size=2,
        db_timeout_seconds=1.0,
        session_timeout_seconds=600.0,
        reminders_enabled=True,
        reminder_times_raw="08:00,20:00",
    )
    return replace(base, **overrides)


@pytest.mark.parametrize(
    "overrides",
    [
        {"bot_token": None},
        {"connector": "irc"},
    ],
)
def test_main_exits_with_code_2_on_bad_config(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, overrides: dict
) -> None:
    monkeypatch.setattr(main_module, "setup_logging", lambda **kw: None)
    monkeypatch.setattr(main_module, "get_settings", lambda: _settings(tmp_path, **overrides))

    assert main_module.main() == 2


def test_main_exits_with_code_2_when_store_cannot_open(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setattr(main_module, "setup_logging", lambda **kw: None)
    # A directory where the database file should be.
    monkeypatch.setattr(main_module, "get_settings", lambda: _settings(tmp_path, tasks_db_path=tmp_path))

    assert main_module.main() == 2
