# src/todo_companion/core/sessions.py

"""
Per-user dialog sessions.

One Session per user id holds the current flow state and the draft being
collected. The FlowController is the only writer; connectors never touch
sessions directly.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from ..tasks.task_models import Priority
from .ports import ChatId


class FlowState(str, Enum):
    IDLE = "idle"
    AWAITING_TEXT = "awaiting_text"
    AWAITING_PRIORITY = "awaiting_priority"
    AWAITING_DUE_DATE = "awaiting_due_date"
    AWAITING_SELECTION = "awaiting_selection"


class SelectionOp(str, Enum):
    DELETE = "delete"
    DONE = "done"


@dataclass(slots=True)
class Draft:
    text: str | None = None
    priority: Priority | None = None
    due_date: datetime | None = None


@dataclass(slots=True)
class Session:
    user_id: str
    chat_id: ChatId
    state: FlowState = FlowState.IDLE
    draft: Draft = field(default_factory=Draft)
    operation: SelectionOp | None = None
    prompt_message_id: int | None = None
    updated_at: float = field(default_factory=time.monotonic)

    def advance(self, state: FlowState, *, prompt_message_id: int | None = None) -> None:
        self.state = state
        self.prompt_message_id = prompt_message_id
        self.updated_at = time.monotonic()


class SessionTable:
    """
    Thread-safe map user_id -> Session.

    Sessions untouched for longer than `timeout_seconds` are dropped on access;
    starting any session also sweeps every expired entry.
    """

    def __init__(self, timeout_seconds: float = 600.0) -> None:
        self._timeout = max(1.0, float(timeout_seconds))
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def get(self, user_id: str) -> Session | None:
        with self._lock:
            session = self._sessions.get(user_id)
            if session is None:
                return None
            if time.monotonic() - session.updated_at > self._timeout:
                del self._sessions[user_id]
                return None
            return session

    def start(self, user_id: str, chat_id: ChatId, state: FlowState) -> Session:
        """Replace any existing session for the user with a fresh one."""
        session = Session(user_id=user_id, chat_id=chat_id, state=state)
        with self._lock:
            self._sweep_locked()
            self._sessions[user_id] = session
        return session

    def _sweep_locked(self) -> None:
        # Users who walk away mid-dialog never touch their entry again.
        deadline = time.monotonic() - self._timeout
        stale = [uid for uid, s in self._sessions.items() if s.updated_at < deadline]
        for uid in stale:
            del self._sessions[uid]

    def discard(self, user_id: str) -> Session | None:
        with self._lock:
            return self._sessions.pop(user_id, None)
