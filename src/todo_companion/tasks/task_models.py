# tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum


class Priority(StrEnum):
    """Task priority as stored in the `priority` column."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def from_db(cls, raw: str | None) -> Priority:
        if not raw:
            return cls.MEDIUM
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return cls.MEDIUM


@dataclass(slots=True)
class Task:
    id: int
    user_id: str
    text: str
    priority: Priority
    due_date: datetime  # naive, server local time
    completed: bool
    created_at: float
