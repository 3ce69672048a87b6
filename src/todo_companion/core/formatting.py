# src/todo_companion/core/formatting.py

from __future__ import annotations

from collections.abc import Sequence

from ..tasks.task_models import Priority, Task

DATE_FORMAT = "%Y-%m-%d"

DONE_GLYPH = "✅"
OPEN_GLYPH = "⭕"

PRIORITY_LABELS = {
    Priority.HIGH: "🔴 High",
    Priority.MEDIUM: "🟡 Medium",
    Priority.LOW: "🟢 Low",
}


def status_glyph(task: Task) -> str:
    return DONE_GLYPH if task.completed else OPEN_GLYPH


def format_due(task: Task) -> str:
    return task.due_date.strftime(DATE_FORMAT)


def selection_label(task: Task) -> str:
    """Button label used by the delete / mark-done pickers."""
    return f"{status_glyph(task)} {task.text} (Due: {format_due(task)})"


def format_task_list(tasks: Sequence[Task]) -> str:
    entries = [
        f"{status_glyph(t)} {t.text}\nPriority: {t.priority.value}\nDue: {format_due(t)}\nID: {t.id}\n"
        for t in tasks
    ]
    return "📝 Your Tasks:\n\n" + "\n".join(entries)


def format_today_list(tasks: Sequence[Task]) -> str:
    entries = [f"{status_glyph(t)} {t.text}\nPriority: {t.priority.value}\nID: {t.id}" for t in tasks]
    return "📅 Today's Tasks:\n\n" + "\n\n".join(entries)


def format_month_list(tasks: Sequence[Task]) -> str:
    entries = [
        f"📅 {format_due(t)}\n{status_glyph(t)} {t.text}\nPriority: {t.priority.value}\nID: {t.id}"
        for t in tasks
    ]
    return "📅 This Month's Tasks:\n\n" + "\n\n".join(entries)


def format_reminder_digest(tasks: Sequence[Task]) -> str | None:
    """Digest of tomorrow's tasks; None when there is nothing to remind about."""
    if not tasks:
        return None
    n = len(tasks)
    body = "\n\n".join(f"🎯 {t.text}\nPriority: {t.priority.value}" for t in tasks)
    plural = "s" if n > 1 else ""
    return (
        "👋 Friendly reminder!\n\n"
        f"You have {n} task{plural} scheduled for tomorrow:\n\n"
        f"{body}\n\n"
        "Have a great day! 🌟"
    )
