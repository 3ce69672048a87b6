# src/todo_companion/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps connectors/storage swappable and makes testing easier.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol, Sequence

from .payloads import Button

ChatId = int | str


@dataclass(slots=True, frozen=True)
class InboundMessage:
    """A text message from a user, already stripped of transport details."""

    chat_id: ChatId
    user_id: str
    text: str


@dataclass(slots=True, frozen=True)
class Interaction:
    """An inline button press. `payload` is the raw callback data."""

    interaction_id: str
    chat_id: ChatId
    user_id: str
    message_id: int | None
    payload: str | None


class ChatGateway(Protocol):
    """
    Connector-side port: how the core talks to the chat transport.

    - buttons: inline keyboard rows attached to the message
    - menu: persistent reply keyboard rows (labels only)
    Returns the id of the sent message when the transport provides one.
    """

    async def send_message(
            self,
            chat_id: ChatId,
            text: str,
            *,
            buttons: Sequence[Sequence[Button]] | None = None,
            menu: Sequence[Sequence[str]] | None = None,
    ) -> int | None: ...

    async def delete_message(self, chat_id: ChatId, message_id: int) -> None: ...

    async def answer_interaction(self, interaction_id: str, text: str | None = None) -> None: ...


class TaskRepo(Protocol):
    # Add flow
    def create_task(
            self,
            *,
            user_id: str,
            text: str,
            due_date: datetime,
            priority: Any = None,  # Priority (kept as Any to avoid import coupling)
    ) -> int: ...

    # Listings
    def list_tasks_for_user(self, user_id: str) -> list[Any]: ...
    def list_today_tasks(self, user_id: str, now: datetime | None = None) -> list[Any]: ...
    def list_tomorrow_tasks(self, user_id: str, now: datetime | None = None) -> list[Any]: ...
    def list_month_tasks(self, user_id: str, now: datetime | None = None) -> list[Any]: ...

    # Selection flows (owner-scoped)
    def mark_done(self, task_id: int, user_id: str) -> bool: ...
    def delete_task(self, task_id: int, user_id: str) -> bool: ...

    # Reminder scheduler
    def list_user_ids(self) -> list[str]: ...
