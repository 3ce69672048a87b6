# src/todo_companion/core/flow.py

"""
Conversation flows.

Add flow:
  idle -> awaiting_text -> awaiting_priority -> awaiting_due_date -> task created

Selection flows (delete / mark done):
  idle -> awaiting_selection -> store call

A single FlowController serves every user. Per-user progress lives in the
SessionTable, so there is exactly one handler for text messages and one for
button presses; both dispatch on the session state and the payload kind.

Failures (store or transport) are logged, the user's session is dropped and a
generic "please try again" message is sent on a best-effort basis.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, time

from ..tasks.task_models import Priority
from .calendar_grid import generate_calendar
from .errors import InputError, StoreError
from .formatting import (
    PRIORITY_LABELS,
    format_month_list,
    format_task_list,
    format_today_list,
    selection_label,
)
from .payloads import (
    Button,
    Callback,
    CallbackKind,
    delete_payload,
    done_payload,
    parse_callback,
    priority_payload,
)
from .ports import ChatGateway, ChatId, InboundMessage, Interaction, TaskRepo
from .sessions import FlowState, Session, SessionTable, SelectionOp

logger = logging.getLogger(__name__)

ADD_LABEL = "📝 Add Task"
LIST_LABEL = "📋 List Tasks"
TODAY_LABEL = "📅 Today's Tasks"
MONTH_LABEL = "📆 Monthly Tasks"
DONE_LABEL = "✅ Mark Done"
DELETE_LABEL = "❌ Delete Task"

MAIN_MENU = (
    (ADD_LABEL, LIST_LABEL),
    (TODAY_LABEL, MONTH_LABEL),
    (DONE_LABEL, DELETE_LABEL),
)

WELCOME_TEXT = "Welcome to Todo Manager Bot! 📝\nSelect an action from the menu below:"
ADD_ERROR = "❌ Error adding task. Please try again."
BUTTON_EXPIRED = "This button has expired."

PRIORITY_ORDER = (Priority.HIGH, Priority.MEDIUM, Priority.LOW)

CallbackHandler = Callable[[Interaction, Callback], Awaitable[None]]


@dataclass(slots=True, frozen=True)
class SelectionTexts:
    prompt: str
    empty: str
    success: str
    not_found: str
    error: str


SELECTION_TEXTS = {
    SelectionOp.DELETE: SelectionTexts(
        prompt="Select a task to delete:",
        empty="You have no tasks to delete!",
        success="✅ Task deleted successfully!",
        not_found="❌ Task not found or you don't have permission to delete it.",
        error="❌ Error deleting task. Please try again.",
    ),
    SelectionOp.DONE: SelectionTexts(
        prompt="Select a task to mark as done:",
        empty="You have no tasks to mark as done!",
        success="✅ Task marked as done!",
        not_found="❌ Task not found or you don't have permission to update it.",
        error="❌ Error updating task. Please try again.",
    ),
}


class FlowController:
    def __init__(
        self,
        store: TaskRepo,
        gateway: ChatGateway,
        sessions: SessionTable | None = None,
        *,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.store = store
        self.gateway = gateway
        self.sessions = sessions or SessionTable()
        self._clock = clock
        self._callback_handlers: dict[CallbackKind, CallbackHandler] = {
            CallbackKind.PRIORITY: self._on_priority,
            CallbackKind.DATE: self._on_date,
            CallbackKind.DELETE: self._on_delete,
            CallbackKind.DONE: self._on_done,
            CallbackKind.IGNORE: self._on_ignore,
        }

    # ---- menu / housekeeping ----

    async def show_menu(self, msg: InboundMessage) -> None:
        self.sessions.discard(msg.user_id)
        await self.gateway.send_message(msg.chat_id, WELCOME_TEXT, menu=MAIN_MENU)

    async def cancel(self, msg: InboundMessage) -> None:
        session = self.sessions.discard(msg.user_id)
        text = "Cancelled." if session is not None else "Nothing to cancel."
        await self.gateway.send_message(msg.chat_id, text)

    # ---- add flow ----

    async def start_add(self, msg: InboundMessage) -> None:
        self.sessions.start(msg.user_id, msg.chat_id, FlowState.AWAITING_TEXT)
        try:
            await self.gateway.send_message(msg.chat_id, "Please enter your task text:")
        except Exception:
            logger.exception("add flow: prompt failed user=%s", msg.user_id)
            await self._fail(msg.user_id, msg.chat_id, ADD_ERROR)

    async def handle_text(self, msg: InboundMessage) -> bool:
        """
        Feed a plain text message into the user's dialog.

        Returns False when the user has no dialog waiting for input.
        """
        session = self.sessions.get(msg.user_id)
        if session is None or session.state is FlowState.IDLE:
            return False

        if session.state is not FlowState.AWAITING_TEXT:
            await self.gateway.send_message(
                msg.chat_id, "Please use the buttons above, or /cancel to start over."
            )
            return True

        text = (msg.text or "").strip()
        if not text:
            await self.gateway.send_message(
                msg.chat_id, "Task text cannot be empty. Please enter your task text:"
            )
            return True

        session.draft.text = text
        buttons = [[Button(PRIORITY_LABELS[p], priority_payload(p)) for p in PRIORITY_ORDER]]
        try:
            prompt_id = await self.gateway.send_message(
                msg.chat_id, "Select task priority:", buttons=buttons
            )
        except Exception:
            logger.exception("add flow: priority prompt failed user=%s", msg.user_id)
            await self._fail(msg.user_id, msg.chat_id, ADD_ERROR)
            return True

        session.advance(FlowState.AWAITING_PRIORITY, prompt_message_id=prompt_id)
        return True

    async def _on_priority(self, ix: Interaction, callback: Callback) -> None:
        session = self._current_session(ix, FlowState.AWAITING_PRIORITY)
        if session is None:
            await self._answer(ix, BUTTON_EXPIRED)
            return

        priority = callback.priority
        session.draft.priority = priority
        try:
            await self.gateway.answer_interaction(ix.interaction_id)
            await self._delete_prompt(ix)
            await self.gateway.send_message(ix.chat_id, f"Priority set to: {priority.value}")
            prompt_id = await self.gateway.send_message(
                ix.chat_id,
                "Select due date:",
                buttons=generate_calendar(self._clock().date()),
            )
        except Exception:
            logger.exception("add flow: calendar prompt failed user=%s", ix.user_id)
            await self._fail(ix.user_id, ix.chat_id, ADD_ERROR)
            return

        session.advance(FlowState.AWAITING_DUE_DATE, prompt_message_id=prompt_id)

    async def _on_date(self, ix: Interaction, callback: Callback) -> None:
        session = self._current_session(ix, FlowState.AWAITING_DUE_DATE)
        if session is None:
            await self._answer(ix, BUTTON_EXPIRED)
            return

        # Claim the session before any await so a double press cannot create two tasks.
        self.sessions.discard(ix.user_id)
        draft = session.draft
        draft.due_date = datetime.combine(callback.day, time.min)

        try:
            if not draft.text:
                raise InputError("draft has no task text")
            task_id = self.store.create_task(
                user_id=ix.user_id,
                text=draft.text,
                due_date=draft.due_date,
                priority=draft.priority,
            )
        except StoreError as exc:
            logger.error("add flow: store error user=%s: %s", ix.user_id, exc)
            await self._answer(ix)
            await self._fail(ix.user_id, ix.chat_id, ADD_ERROR)
            return
        except Exception:
            logger.exception("add flow: create failed user=%s", ix.user_id)
            await self._answer(ix)
            await self._fail(ix.user_id, ix.chat_id, ADD_ERROR)
            return

        logger.info("Task %s created user=%s due=%s", task_id, ix.user_id, draft.due_date.date())
        try:
            await self.gateway.answer_interaction(ix.interaction_id)
            await self._delete_prompt(ix)
            await self.gateway.send_message(ix.chat_id, "✅ Task added successfully!")
        except Exception:
            logger.exception("add flow: confirmation failed task=%s user=%s", task_id, ix.user_id)

    # ---- selection flows ----

    async def start_delete(self, msg: InboundMessage) -> None:
        await self._start_selection(msg, SelectionOp.DELETE)

    async def start_mark_done(self, msg: InboundMessage) -> None:
        await self._start_selection(msg, SelectionOp.DONE)

    async def _start_selection(self, msg: InboundMessage, op: SelectionOp) -> None:
        texts = SELECTION_TEXTS[op]
        encode = delete_payload if op is SelectionOp.DELETE else done_payload
        self.sessions.discard(msg.user_id)

        try:
            tasks = self.store.list_tasks_for_user(msg.user_id)
            if not tasks:
                await self.gateway.send_message(msg.chat_id, texts.empty)
                return
            buttons = [[Button(selection_label(t), encode(t.id))] for t in tasks]
            prompt_id = await self.gateway.send_message(msg.chat_id, texts.prompt, buttons=buttons)
        except StoreError as exc:
            logger.error("%s selection: store error user=%s: %s", op.value, msg.user_id, exc)
            await self._fail(msg.user_id, msg.chat_id, texts.error)
            return
        except Exception:
            logger.exception("%s selection: listing failed user=%s", op.value, msg.user_id)
            await self._fail(msg.user_id, msg.chat_id, texts.error)
            return

        session = self.sessions.start(msg.user_id, msg.chat_id, FlowState.AWAITING_SELECTION)
        session.operation = op
        session.prompt_message_id = prompt_id

    async def _on_delete(self, ix: Interaction, callback: Callback) -> None:
        await self._on_selected(ix, callback, SelectionOp.DELETE)

    async def _on_done(self, ix: Interaction, callback: Callback) -> None:
        await self._on_selected(ix, callback, SelectionOp.DONE)

    async def _on_selected(self, ix: Interaction, callback: Callback, op: SelectionOp) -> None:
        # The payload carries both the operation and the task id, and the store
        # filters on the caller's user id, so the press is valid without a session.
        texts = SELECTION_TEXTS[op]
        session = self.sessions.get(ix.user_id)
        if session is not None and session.state is FlowState.AWAITING_SELECTION:
            self.sessions.discard(ix.user_id)

        task_id = callback.task_id
        try:
            if op is SelectionOp.DELETE:
                ok = self.store.delete_task(task_id, ix.user_id)
            else:
                ok = self.store.mark_done(task_id, ix.user_id)
        except StoreError as exc:
            logger.error("%s task=%s: store error user=%s: %s", op.value, task_id, ix.user_id, exc)
            await self._answer(ix)
            await self._fail(ix.user_id, ix.chat_id, texts.error)
            return

        logger.info("%s task=%s user=%s ok=%s", op.value, task_id, ix.user_id, ok)
        try:
            await self.gateway.answer_interaction(ix.interaction_id)
            await self._delete_prompt(ix)
            await self.gateway.send_message(ix.chat_id, texts.success if ok else texts.not_found)
        except Exception:
            logger.exception("%s task=%s: reply failed user=%s", op.value, task_id, ix.user_id)

    # ---- listings ----

    async def list_tasks(self, msg: InboundMessage) -> None:
        await self._send_listing(
            msg,
            lambda: self.store.list_tasks_for_user(msg.user_id),
            format_task_list,
            empty="You have no tasks yet!",
            error="❌ Error fetching tasks. Please try again.",
        )

    async def today_tasks(self, msg: InboundMessage) -> None:
        await self._send_listing(
            msg,
            lambda: self.store.list_today_tasks(msg.user_id, now=self._clock()),
            format_today_list,
            empty="No tasks for today!",
            error="❌ Error fetching today's tasks. Please try again.",
        )

    async def month_tasks(self, msg: InboundMessage) -> None:
        await self._send_listing(
            msg,
            lambda: self.store.list_month_tasks(msg.user_id, now=self._clock()),
            format_month_list,
            empty="No tasks for this month!",
            error="❌ Error fetching month's tasks. Please try again.",
        )

    async def _send_listing(
        self,
        msg: InboundMessage,
        fetch: Callable[[], Sequence],
        render: Callable[[Sequence], str],
        *,
        empty: str,
        error: str,
    ) -> None:
        try:
            tasks = fetch()
        except StoreError as exc:
            logger.error("listing failed user=%s: %s", msg.user_id, exc)
            await self.gateway.send_message(msg.chat_id, error)
            return
        text = render(tasks) if tasks else empty
        await self.gateway.send_message(msg.chat_id, text)

    # ---- button dispatch ----

    async def handle_interaction(self, ix: Interaction) -> None:
        try:
            callback = parse_callback(ix.payload)
        except InputError as exc:
            logger.warning("Dropped interaction id=%s user=%s: %s", ix.interaction_id, ix.user_id, exc)
            await self._answer(ix)
            return

        await self._callback_handlers[callback.kind](ix, callback)

    async def _on_ignore(self, ix: Interaction, callback: Callback) -> None:
        await self._answer(ix)

    # ---- helpers ----

    def _current_session(self, ix: Interaction, expected: FlowState) -> Session | None:
        """The user's session if it is in `expected` state and the press came from its prompt."""
        session = self.sessions.get(ix.user_id)
        if session is None or session.state is not expected:
            return None
        if (
            session.prompt_message_id is not None
            and ix.message_id is not None
            and session.prompt_message_id != ix.message_id
        ):
            return None
        return session

    async def _answer(self, ix: Interaction, text: str | None = None) -> None:
        try:
            await self.gateway.answer_interaction(ix.interaction_id, text)
        except Exception:
            logger.warning("answer_interaction failed id=%s", ix.interaction_id, exc_info=True)

    async def _delete_prompt(self, ix: Interaction) -> None:
        """Remove the pressed keyboard (best-effort; old messages cannot be deleted)."""
        if ix.message_id is None:
            return
        try:
            await self.gateway.delete_message(ix.chat_id, ix.message_id)
        except Exception:
            logger.warning(
                "delete_message failed chat=%s message=%s", ix.chat_id, ix.message_id, exc_info=True
            )

    async def _fail(self, user_id: str, chat_id: ChatId, text: str) -> None:
        """Drop the user's dialog and tell them to retry (best-effort)."""
        self.sessions.discard(user_id)
        try:
            await self.gateway.send_message(chat_id, text)
        except Exception:
            logger.debug("Failed to deliver error notice to chat=%s", chat_id, exc_info=True)
