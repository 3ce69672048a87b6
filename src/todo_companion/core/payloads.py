# src/todo_companion/core/payloads.py

"""
Inline button payloads.

Telegram echoes `callback_data` back verbatim, so every interactive button
carries a short "<kind>_<value>" string. Parsing turns it into a tagged
variant (`Callback`) that the flow controller dispatches on by kind.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from enum import Enum

from ..tasks.task_models import Priority
from .errors import InputError

IGNORE_PAYLOAD = "ignore"

# Telegram limit for callback_data.
MAX_PAYLOAD_BYTES = 64


class CallbackKind(str, Enum):
    PRIORITY = "priority"
    DATE = "date"
    DELETE = "delete"
    DONE = "done"
    IGNORE = "ignore"


@dataclass(slots=True, frozen=True)
class Button:
    """Inline keyboard button; the default payload makes it non-interactive."""

    text: str
    payload: str = IGNORE_PAYLOAD

    @property
    def interactive(self) -> bool:
        return self.payload != IGNORE_PAYLOAD


@dataclass(slots=True, frozen=True)
class Callback:
    kind: CallbackKind
    value: str = ""

    @property
    def priority(self) -> Priority:
        return Priority(self.value)

    @property
    def day(self) -> date:
        return date.fromisoformat(self.value)

    @property
    def task_id(self) -> int:
        return int(self.value)


def encode(kind: CallbackKind, value: object = "") -> str:
    if kind is CallbackKind.IGNORE:
        return IGNORE_PAYLOAD
    payload = f"{kind.value}_{value}"
    if len(payload.encode("utf-8")) > MAX_PAYLOAD_BYTES:
        raise ValueError(f"payload too long: {payload!r}")
    return payload


def priority_payload(priority: Priority) -> str:
    return encode(CallbackKind.PRIORITY, priority.value)


def date_payload(day: date) -> str:
    return encode(CallbackKind.DATE, day.isoformat())


def delete_payload(task_id: int) -> str:
    return encode(CallbackKind.DELETE, int(task_id))


def done_payload(task_id: int) -> str:
    return encode(CallbackKind.DONE, int(task_id))


def parse_callback(data: str | None) -> Callback:
    """
    Decode a button payload.

    Raises InputError for empty payloads, unknown kinds, and values that do not
    fit their kind (unknown priority, bad ISO date, non-numeric task id).
    """
    raw = (data or "").strip()
    if not raw:
        raise InputError("empty callback payload")
    if raw == IGNORE_PAYLOAD:
        return Callback(CallbackKind.IGNORE)

    prefix, sep, value = raw.partition("_")
    if not sep or not value:
        raise InputError(f"malformed callback payload: {raw!r}")

    try:
        kind = CallbackKind(prefix)
    except ValueError as exc:
        raise InputError(f"unknown callback kind: {raw!r}") from exc

    validate = _VALUE_PARSERS.get(kind)
    if validate is not None:
        try:
            validate(value)
        except ValueError as exc:
            raise InputError(f"invalid {kind.value} payload: {raw!r}") from exc
    return Callback(kind, value)


_VALUE_PARSERS: dict[CallbackKind, Callable[[str], object]] = {
    CallbackKind.PRIORITY: Priority,
    CallbackKind.DATE: date.fromisoformat,
    CallbackKind.DELETE: int,
    CallbackKind.DONE: int,
}
