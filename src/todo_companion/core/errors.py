# src/todo_companion/core/errors.py

"""
Error taxonomy.

- InputError: malformed/missing inbound payload (logged, request dropped)
- StoreError: query/connection failure (logged, user gets a generic retry message)
- TaskNotFoundError: target row absent or owned by another user
- ConfigurationError: missing/invalid settings (fatal at startup)
"""

from __future__ import annotations


class InputError(ValueError):
    """Raised when an inbound message or button payload cannot be understood."""


class StoreError(RuntimeError):
    """Raised when the task store cannot complete a query."""


class TaskNotFoundError(LookupError):
    """Raised when a task does not exist or belongs to another user."""

    def __init__(self, task_id: int, user_id: str) -> None:
        super().__init__(f"Task {task_id} not found for user {user_id}")
        self.task_id = task_id
        self.user_id = user_id


class ConfigurationError(RuntimeError):
    """Raised when required configuration is missing."""
