# src/todo_companion/connectors/console_connector.py

"""
Console connector for local runs without a bot token.

Inline keyboards are printed with numbered buttons; type "#<n>" to press
button n of the latest keyboard. Everything else is sent as a text message
(commands and menu labels included). Reminders run in a background thread
with their own event loop and print into the same console.
"""

from __future__ import annotations

import asyncio
import contextlib
import itertools
import logging
import threading
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from ..cli.commands import dispatch_message
from ..core.flow import FlowController
from ..core.payloads import Button
from ..core.ports import ChatGateway, ChatId, InboundMessage, Interaction
from ..core.state import AppState
from ..tasks.reminder_scheduler import run_reminder_scheduler

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


class ConsoleGateway:
    """ChatGateway that prints to stdout and remembers the latest inline keyboard."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._keyboards: dict[int, list[str]] = {}
        self._latest: int | None = None

    async def send_message(
        self,
        chat_id: ChatId,
        text: str,
        *,
        buttons: Sequence[Sequence[Button]] | None = None,
        menu: Sequence[Sequence[str]] | None = None,
    ) -> int | None:
        with self._lock:
            message_id = next(self._ids)
            lines = [f"[{_ts_local()}] <<< {text}"]

            if buttons:
                payloads: list[str] = []
                for row in buttons:
                    cells = []
                    for b in row:
                        if b.interactive:
                            payloads.append(b.payload)
                            cells.append(f"[{len(payloads)}] {b.text}")
                        else:
                            cells.append(b.text)
                    lines.append("    " + "  ".join(cells))
                self._keyboards[message_id] = payloads
                self._latest = message_id

            if menu:
                labels = " | ".join(label for row in menu for label in row)
                lines.append(f"    menu: {labels}")

            print("\n".join(lines), flush=True)
            return message_id

    async def delete_message(self, chat_id: ChatId, message_id: int) -> None:
        with self._lock:
            self._keyboards.pop(message_id, None)
            if self._latest == message_id:
                self._latest = None

    async def answer_interaction(self, interaction_id: str, text: str | None = None) -> None:
        if text:
            print(f"[{_ts_local()}] (!) {text}", flush=True)

    def press(self, index: int) -> tuple[int, str] | None:
        """(message_id, payload) of button `index` (1-based) on the latest keyboard."""
        with self._lock:
            if self._latest is None:
                return None
            payloads = self._keyboards.get(self._latest, [])
            if not 1 <= index <= len(payloads):
                return None
            return self._latest, payloads[index - 1]


@dataclass
class ReminderBackgroundRunner:
    thread: threading.Thread
    loop: asyncio.AbstractEventLoop
    stop_event: asyncio.Event

    def stop(self) -> None:
        try:
            self.loop.call_soon_threadsafe(self.stop_event.set)
        except RuntimeError:
            logger.debug("Failed to signal reminder stop.", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)


async def _run_reminders_until_stopped(
    state: AppState, gateway: ChatGateway, stop_event: asyncio.Event
) -> None:
    task = asyncio.create_task(
        run_reminder_scheduler(state.task_store, gateway, times=state.settings.reminder_times)
    )
    try:
        await stop_event.wait()
    finally:
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task


def start_reminders_in_background(state: AppState, gateway: ChatGateway) -> ReminderBackgroundRunner | None:
    """
    Start the reminder scheduler in a background thread.

    The console REPL is blocking (input()), so the scheduler gets its own loop.
    """
    ready = threading.Event()
    holder: dict[str, object] = {}

    def runner() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        stop_event = asyncio.Event()

        holder["loop"] = loop
        holder["stop_event"] = stop_event
        ready.set()

        try:
            loop.run_until_complete(_run_reminders_until_stopped(state, gateway, stop_event))
        except Exception:
            logger.exception("Reminder thread crashed.")
        finally:
            loop.close()

    t = threading.Thread(target=runner, name="reminders", daemon=True)
    t.start()

    ready.wait(timeout=5.0)
    loop = holder.get("loop")
    stop_event = holder.get("stop_event")

    if not isinstance(loop, asyncio.AbstractEventLoop) or not isinstance(stop_event, asyncio.Event):
        logger.error("Reminder thread did not initialize properly.")
        return None

    logger.info("Reminder background thread started.")
    return ReminderBackgroundRunner(thread=t, loop=loop, stop_event=stop_event)


def run_console_loop(state: AppState) -> None:
    settings = state.settings
    user_id = str(settings.console_user_id)
    gateway = ConsoleGateway()
    flow = FlowController(state.task_store, gateway, state.sessions)
    interaction_ids = itertools.count(1)

    runner = start_reminders_in_background(state, gateway) if settings.reminders_enabled else None
    loop = asyncio.new_event_loop()

    logger.info("Console connector started (user_id=%s).", user_id)
    print(f"[{_ts_local()}] Type /menu to start, #<n> to press a button, /exit to quit.\n")

    try:
        while True:
            try:
                line = input(">>> You: ").strip()
            except EOFError:
                logger.info("Console EOF received, exiting.")
                break
            except KeyboardInterrupt:
                logger.info("Console KeyboardInterrupt, exiting.")
                print()
                break

            if not line:
                continue

            if line.lower() in ("/exit", "/quit"):
                logger.info("Console exit command received.")
                break

            try:
                if line.startswith("#"):
                    try:
                        pressed = gateway.press(int(line[1:]))
                    except ValueError:
                        print(f"[{_ts_local()}] Usage: #<button number>")
                        continue
                    if pressed is None:
                        print(f"[{_ts_local()}] No such button.")
                        continue
                    message_id, payload = pressed
                    interaction = Interaction(
                        interaction_id=str(next(interaction_ids)),
                        chat_id=user_id,
                        user_id=user_id,
                        message_id=message_id,
                        payload=payload,
                    )
                    loop.run_until_complete(flow.handle_interaction(interaction))
                else:
                    msg = InboundMessage(chat_id=user_id, user_id=user_id, text=line)
                    loop.run_until_complete(dispatch_message(flow, msg))
            except Exception:
                logger.exception("Console handler crashed.")
                print(f"[{_ts_local()}] Internal error while handling the message.")
    finally:
        loop.close()
        if runner is not None:
            runner.stop()
            runner.join(timeout=10.0)
        logger.info("Console connector finished.")
