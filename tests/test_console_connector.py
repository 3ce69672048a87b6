# tests/test_console_connector.py

from __future__ import annotations

import asyncio

import pytest

from todo_companion.connectors.console_connector import ConsoleGateway, run_console_loop
from todo_companion.core.payloads import Button
from todo_companion.core.state import AppState


def test_gateway_numbers_only_interactive_buttons(capsys: pytest.CaptureFixture[str]) -> None:
    gateway = ConsoleGateway()
    buttons = [[Button("Su"), Button("1", "date_2026-10-01")], [Button("2", "date_2026-10-02")]]

    message_id = asyncio.run(gateway.send_message("console", "Select due date:", buttons=buttons))

    out = capsys.readouterr().out
    assert "[1] 1" in out
    assert "[2] 2" in out
    assert gateway.press(2) == (message_id, "date_2026-10-02")
    assert gateway.press(3) is None

    asyncio.run(gateway.delete_message("console", message_id))
    assert gateway.press(1) is None


def test_console_loop_adds_a_task(monkeypatch: pytest.MonkeyPatch, state: AppState) -> None:
    lines = iter(["/add", "Buy milk", "#1", "#20", "#abc", "/exit"])
    monkeypatch.setattr("builtins.input", lambda prompt="": next(lines))

    run_console_loop(state)

    (task,) = state.task_store.list_tasks_for_user("console")
    assert task.text == "Buy milk"
    assert task.priority.value == "high"
    assert task.due_date.day == 20
