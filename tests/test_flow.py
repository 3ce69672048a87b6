# tests/test_flow.py

from __future__ import annotations

from datetime import datetime

import pytest

from todo_companion.core.errors import StoreError
from todo_companion.core.flow import ADD_ERROR, BUTTON_EXPIRED, MAIN_MENU, FlowController
from todo_companion.core.sessions import FlowState
from todo_companion.tasks.task_models import Priority
from todo_companion.tasks.task_store import TaskStore

from .conftest import NOW
from .fakes import FakeGateway, message, press


async def _add_task(flow: FlowController, gateway: FakeGateway, text: str, priority: str, day: str) -> None:
    await flow.start_add(message("/add"))
    await flow.handle_text(message(text))
    await flow.handle_interaction(press(f"priority_{priority}", gateway.last.message_id))
    await flow.handle_interaction(press(f"date_{day}", gateway.last.message_id))


@pytest.mark.asyncio
async def test_add_flow_end_to_end(flow: FlowController, gateway: FakeGateway, store: TaskStore) -> None:
    await flow.start_add(message("/add"))
    assert gateway.last.text == "Please enter your task text:"
    assert flow.sessions.get("u1").state is FlowState.AWAITING_TEXT

    assert await flow.handle_text(message("  Buy milk ")) is True
    prompt = gateway.last
    assert prompt.text == "Select task priority:"
    assert prompt.payloads == ["priority_high", "priority_medium", "priority_low"]

    ix = press("priority_high", prompt.message_id)
    await flow.handle_interaction(ix)
    assert (ix.interaction_id, None) in gateway.answered
    assert ("u1", prompt.message_id) in gateway.deleted
    assert gateway.sent[-2].text == "Priority set to: high"
    calendar_msg = gateway.last
    assert calendar_msg.text == "Select due date:"
    assert len(calendar_msg.buttons) == 8
    assert calendar_msg.buttons[0][0].text == "October 2026"

    await flow.handle_interaction(press("date_2026-10-20", calendar_msg.message_id))
    assert gateway.last.text == "✅ Task added successfully!"
    assert flow.sessions.get("u1") is None

    (task,) = store.list_tomorrow_tasks("u1", now=NOW)
    assert task.text == "Buy milk"
    assert task.priority is Priority.HIGH
    assert task.due_date == datetime(2026, 10, 20)
    assert task.completed is False
    assert store.list_today_tasks("u1", now=NOW) == []

    # Mark done, then delete through the pickers.
    await flow.start_mark_done(message("/done"))
    picker = gateway.last
    assert picker.payloads == [f"done_{task.id}"]
    assert picker.buttons[0][0].text == "⭕ Buy milk (Due: 2026-10-20)"
    await flow.handle_interaction(press(picker.payloads[0], picker.message_id))
    assert gateway.last.text == "✅ Task marked as done!"
    assert store.require_task(task.id, "u1").completed is True

    await flow.start_delete(message("/delete"))
    picker = gateway.last
    assert picker.buttons[0][0].text == "✅ Buy milk (Due: 2026-10-20)"
    await flow.handle_interaction(press(f"delete_{task.id}", picker.message_id))
    assert gateway.last.text == "✅ Task deleted successfully!"
    assert store.list_tasks_for_user("u1") == []


@pytest.mark.asyncio
async def test_text_without_dialog_is_not_consumed(flow: FlowController, gateway: FakeGateway) -> None:
    assert await flow.handle_text(message("hello")) is False
    assert gateway.sent == []


@pytest.mark.asyncio
async def test_empty_text_reprompts(flow: FlowController, gateway: FakeGateway) -> None:
    await flow.start_add(message("/add"))
    assert await flow.handle_text(message("   ")) is True

    assert gateway.last.text.startswith("Task text cannot be empty.")
    assert flow.sessions.get("u1").state is FlowState.AWAITING_TEXT


@pytest.mark.asyncio
async def test_text_while_waiting_for_buttons(flow: FlowController, gateway: FakeGateway) -> None:
    await flow.start_add(message("/add"))
    await flow.handle_text(message("Buy milk"))
    await flow.handle_text(message("high please"))

    assert gateway.last.text == "Please use the buttons above, or /cancel to start over."
    assert flow.sessions.get("u1").state is FlowState.AWAITING_PRIORITY


@pytest.mark.asyncio
async def test_priority_press_without_dialog_is_expired(
    flow: FlowController, gateway: FakeGateway, store: TaskStore
) -> None:
    ix = press("priority_low", 5)
    await flow.handle_interaction(ix)

    assert gateway.answered == [(ix.interaction_id, BUTTON_EXPIRED)]
    assert gateway.sent == []
    assert store.count_tasks() == 0


@pytest.mark.asyncio
async def test_date_press_from_stale_keyboard_is_rejected(
    flow: FlowController, gateway: FakeGateway, store: TaskStore
) -> None:
    await flow.start_add(message("/add"))
    await flow.handle_text(message("Buy milk"))
    await flow.handle_interaction(press("priority_low", gateway.last.message_id))
    calendar_id = gateway.last.message_id

    await flow.handle_interaction(press("date_2026-10-20", calendar_id - 1))
    assert store.count_tasks() == 0
    assert gateway.answered[-1][1] == BUTTON_EXPIRED

    await flow.handle_interaction(press("date_2026-10-20", calendar_id))
    assert store.count_tasks() == 1


@pytest.mark.asyncio
async def test_double_date_press_creates_one_task(
    flow: FlowController, gateway: FakeGateway, store: TaskStore
) -> None:
    await flow.start_add(message("/add"))
    await flow.handle_text(message("Buy milk"))
    await flow.handle_interaction(press("priority_medium", gateway.last.message_id))
    calendar_id = gateway.last.message_id

    await flow.handle_interaction(press("date_2026-10-21", calendar_id))
    await flow.handle_interaction(press("date_2026-10-22", calendar_id))

    assert store.count_tasks() == 1


@pytest.mark.asyncio
async def test_sessions_are_per_user(flow: FlowController, gateway: FakeGateway, store: TaskStore) -> None:
    await flow.start_add(message("/add", user_id="alice"))
    await flow.start_add(message("/add", user_id="bob"))
    await flow.handle_text(message("alice task", user_id="alice"))
    await flow.handle_text(message("bob task", user_id="bob"))

    assert flow.sessions.get("alice").draft.text == "alice task"
    assert flow.sessions.get("bob").draft.text == "bob task"


@pytest.mark.asyncio
async def test_selection_with_no_tasks(flow: FlowController, gateway: FakeGateway) -> None:
    await flow.start_delete(message("/delete"))
    assert gateway.last.text == "You have no tasks to delete!"
    assert gateway.last.buttons is None

    await flow.start_mark_done(message("/done"))
    assert gateway.last.text == "You have no tasks to mark as done!"
    assert flow.sessions.get("u1") is None


@pytest.mark.asyncio
async def test_foreign_task_selection_reports_not_found(
    flow: FlowController, gateway: FakeGateway, store: TaskStore
) -> None:
    task_id = store.create_task(user_id="u2", text="not yours", due_date=NOW)

    await flow.handle_interaction(press(f"delete_{task_id}", 7))
    assert gateway.last.text == "❌ Task not found or you don't have permission to delete it."

    await flow.handle_interaction(press(f"done_{task_id}", 7))
    assert gateway.last.text == "❌ Task not found or you don't have permission to update it."

    assert store.require_task(task_id, "u2").completed is False


@pytest.mark.asyncio
async def test_malformed_and_ignore_payloads_are_only_acknowledged(
    flow: FlowController, gateway: FakeGateway
) -> None:
    for payload in ("ignore", "bogus_1", "date_not-a-date", None):
        await flow.handle_interaction(press(payload, 1))

    assert len(gateway.answered) == 4
    assert gateway.sent == []


@pytest.mark.asyncio
async def test_listings(flow: FlowController, gateway: FakeGateway, store: TaskStore) -> None:
    await flow.list_tasks(message("/list"))
    assert gateway.last.text == "You have no tasks yet!"
    await flow.today_tasks(message("/today"))
    assert gateway.last.text == "No tasks for today!"
    await flow.month_tasks(message("/month"))
    assert gateway.last.text == "No tasks for this month!"

    today_id = store.create_task(user_id="u1", text="Pay rent", due_date=datetime(2026, 10, 19), priority="high")
    store.create_task(user_id="u1", text="Call mom", due_date=datetime(2026, 11, 2))

    await flow.today_tasks(message("/today"))
    assert gateway.last.text == f"📅 Today's Tasks:\n\n⭕ Pay rent\nPriority: high\nID: {today_id}"

    await flow.month_tasks(message("/month"))
    assert "Pay rent" in gateway.last.text
    assert "Call mom" not in gateway.last.text
    assert gateway.last.text.startswith("📅 This Month's Tasks:")

    await flow.list_tasks(message("/list"))
    text = gateway.last.text
    assert text.startswith("📝 Your Tasks:")
    assert text.index("Pay rent") < text.index("Call mom")
    assert "Due: 2026-11-02" in text


@pytest.mark.asyncio
async def test_menu_and_cancel(flow: FlowController, gateway: FakeGateway) -> None:
    await flow.start_add(message("/add"))
    await flow.show_menu(message("/start"))
    assert gateway.last.menu == [list(row) for row in MAIN_MENU]
    assert flow.sessions.get("u1") is None

    await flow.cancel(message("/cancel"))
    assert gateway.last.text == "Nothing to cancel."

    await flow.start_add(message("/add"))
    await flow.cancel(message("/cancel"))
    assert gateway.last.text == "Cancelled."
    assert flow.sessions.get("u1") is None


class _BrokenStore(TaskStore):
    def create_task(self, **kwargs) -> int:
        raise StoreError("database is locked")

    def list_tasks_for_user(self, user_id: str):
        raise StoreError("database is locked")


@pytest.mark.asyncio
async def test_store_failures_are_reported_and_reset_the_dialog(tmp_path, gateway: FakeGateway) -> None:
    flow = FlowController(_BrokenStore(tmp_path / "broken.sqlite3"), gateway, clock=lambda: NOW)

    await _add_task(flow, gateway, "Buy milk", "high", "2026-10-20")
    assert gateway.last.text == ADD_ERROR
    assert flow.sessions.get("u1") is None

    await flow.start_delete(message("/delete"))
    assert gateway.last.text == "❌ Error deleting task. Please try again."

    await flow.list_tasks(message("/list"))
    assert gateway.last.text == "❌ Error fetching tasks. Please try again."


@pytest.mark.asyncio
async def test_expired_session_is_dropped(flow: FlowController, gateway: FakeGateway) -> None:
    await flow.start_add(message("/add"))
    flow.sessions.get("u1").updated_at -= 3600

    assert await flow.handle_text(message("Buy milk")) is False
    assert len(flow.sessions) == 0


@pytest.mark.asyncio
async def test_undeletable_prompts_do_not_block_confirmations(store: TaskStore) -> None:
    gateway = FakeGateway(fail_delete=True)
    flow = FlowController(store, gateway, clock=lambda: NOW)

    await _add_task(flow, gateway, "Buy milk", "high", "2026-10-20")
    assert "Priority set to: high" in gateway.texts
    assert gateway.last.text == "✅ Task added successfully!"
    (task,) = store.list_tasks_for_user("u1")

    await flow.start_mark_done(message("/done"))
    await flow.handle_interaction(press(f"done_{task.id}", gateway.last.message_id))
    assert gateway.last.text == "✅ Task marked as done!"

    # A picker from days ago: no session, and Telegram refuses the delete.
    await flow.handle_interaction(press(f"delete_{task.id}", 1))
    assert gateway.last.text == "✅ Task deleted successfully!"
    assert store.count_tasks() == 0
    assert gateway.deleted == []


@pytest.mark.asyncio
async def test_abandoned_sessions_are_swept(flow: FlowController, gateway: FakeGateway) -> None:
    await flow.start_add(message("/add", user_id="gone"))
    flow.sessions.get("gone").updated_at -= 3600

    await flow.start_add(message("/add", user_id="active"))

    assert len(flow.sessions) == 1
    assert flow.sessions.get("active") is not None
