# src/todo_companion/tasks/reminder_scheduler.py

from __future__ import annotations

"""
Reminder scheduler.

A small asyncio loop that, at fixed local times of day (08:00 and 20:00 by
default):
- lists every user that owns at least one task,
- fetches each user's tasks due tomorrow,
- sends one digest message per user via the injected gateway.

One user's failure never stops the others. To stop the scheduler, cancel the
coroutine/task.
"""

import asyncio
import logging
from collections.abc import Callable, Sequence
from datetime import datetime, time, timedelta

from ..core.formatting import format_reminder_digest
from ..core.ports import ChatGateway, TaskRepo

logger = logging.getLogger(__name__)

DEFAULT_REMINDER_TIMES = (time(8, 0), time(20, 0))


def next_fire_time(after: datetime, times: Sequence[time] = DEFAULT_REMINDER_TIMES) -> datetime:
    """Earliest scheduled datetime strictly later than `after`."""
    if not times:
        raise ValueError("at least one reminder time is required")
    day = after.date()
    for offset in (0, 1):
        candidates = [
            datetime.combine(day + timedelta(days=offset), t)
            for t in sorted(times)
        ]
        for candidate in candidates:
            if candidate > after:
                return candidate
    # Unreachable: tomorrow's earliest time is always later than `after`.
    raise AssertionError("no fire time found")


async def send_tomorrow_reminders(
        task_store: TaskRepo,
        gateway: ChatGateway,
        *,
        now: datetime | None = None,
) -> int:
    """
    Send one digest per user with tasks due tomorrow.

    Returns the number of digests delivered.
    """
    try:
        user_ids = task_store.list_user_ids()
    except Exception:
        logger.exception("list_user_ids failed; skipping reminder run")
        return 0

    sent = 0
    for user_id in user_ids:
        try:
            tasks = task_store.list_tomorrow_tasks(user_id, now=now)
            digest = format_reminder_digest(tasks)
            if digest is None:
                continue
            await gateway.send_message(user_id, digest)
            sent += 1
            logger.info("Reminder sent user=%s tasks=%d", user_id, len(tasks))
        except Exception:
            logger.exception("Reminder failed user=%s", user_id)

    return sent


async def run_reminder_scheduler(
        task_store: TaskRepo,
        gateway: ChatGateway,
        *,
        times: Sequence[time] = DEFAULT_REMINDER_TIMES,
        clock: Callable[[], datetime] = datetime.now,
) -> None:
    """
    Sleep until the next configured time of day, send reminders, repeat.

    The next fire time is computed from the later of "now" and the previous
    fire time, so a run never fires twice for the same slot.
    """
    last_fired: datetime | None = None

    while True:
        now = clock()
        anchor = max(now, last_fired) if last_fired is not None else now
        fire_at = next_fire_time(anchor, times)
        delay = max(0.0, (fire_at - now).total_seconds())
        logger.debug("Next reminder run at %s (in %.0fs)", fire_at, delay)

        await asyncio.sleep(delay)

        last_fired = fire_at
        try:
            sent = await send_tomorrow_reminders(task_store, gateway, now=fire_at)
            logger.info("Reminder run at %s delivered %d digest(s)", fire_at, sent)
        except Exception:
            logger.exception("Reminder run at %s failed", fire_at)
