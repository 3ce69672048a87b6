# src/todo_companion/cli/commands.py

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from ..core.flow import (
    ADD_LABEL,
    DELETE_LABEL,
    DONE_LABEL,
    LIST_LABEL,
    MONTH_LABEL,
    TODAY_LABEL,
    FlowController,
)
from ..core.ports import InboundMessage

CommandHandler = Callable[[FlowController, InboundMessage], Awaitable[None]]

logger = logging.getLogger(__name__)

NO_DIALOG_HINT = "I didn't get that. Use /menu to see what I can do."


class CommandRegistry:
    """Slash-command and menu-label registry used by connectors (/add, 📝 Add Task, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}
        self._labels: dict[str, CommandHandler] = {}
        # Handlers that may run without abandoning the user's current dialog.
        self._keeps_dialog: set[CommandHandler] = set()

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
        menu_label: str | None = None,
        keeps_dialog: bool = False,
    ) -> None:
        aliases = aliases or []
        if keeps_dialog:
            self._keeps_dialog.add(handler)
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler
        if menu_label:
            self._labels[menu_label] = handler

    def resolve(self, line: str) -> CommandHandler | None:
        """Handler for "/command args", "/command@bot" or an exact menu label."""
        line = (line or "").strip()
        if line in self._labels:
            return self._labels[line]
        if not line.startswith("/"):
            return None
        parts = line[1:].split()
        if not parts:
            return None
        name = parts[0].split("@", 1)[0].lower()
        return self._handlers.get(name)

    async def handle(self, flow: FlowController, msg: InboundMessage) -> bool:
        """
        Run the matching command. Returns False if the text is not a command
        or menu label (so it can be fed to the user's dialog).
        """
        handler = self.resolve(msg.text)
        if handler is not None:
            if handler not in self._keeps_dialog:
                flow.sessions.discard(msg.user_id)
            await handler(flow, msg)
            return True

        text = msg.text.strip()
        if text.startswith("/"):
            name = (text[1:].split() or [""])[0]
            await flow.gateway.send_message(
                msg.chat_id, f"Unknown command: /{name}. Use /help to list available commands."
            )
            return True
        return False

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)

    def bot_commands(self) -> list[tuple[str, str]]:
        """(command, description) pairs for the transport's command menu."""
        return list(self._help.items())


registry = CommandRegistry()


async def dispatch_message(flow: FlowController, msg: InboundMessage) -> None:
    """Single entry point for inbound text: commands first, then the user's dialog."""
    if await registry.handle(flow, msg):
        logger.debug("Command handled user=%s text=%r", msg.user_id, msg.text)
        return
    if await flow.handle_text(msg):
        return
    await flow.gateway.send_message(msg.chat_id, NO_DIALOG_HINT)


async def cmd_start(flow: FlowController, msg: InboundMessage) -> None:
    await flow.show_menu(msg)


async def cmd_help(flow: FlowController, msg: InboundMessage) -> None:
    await flow.gateway.send_message(msg.chat_id, registry.build_help())


async def cmd_add(flow: FlowController, msg: InboundMessage) -> None:
    await flow.start_add(msg)


async def cmd_list(flow: FlowController, msg: InboundMessage) -> None:
    await flow.list_tasks(msg)


async def cmd_today(flow: FlowController, msg: InboundMessage) -> None:
    await flow.today_tasks(msg)


async def cmd_month(flow: FlowController, msg: InboundMessage) -> None:
    await flow.month_tasks(msg)


async def cmd_done(flow: FlowController, msg: InboundMessage) -> None:
    await flow.start_mark_done(msg)


async def cmd_delete(flow: FlowController, msg: InboundMessage) -> None:
    await flow.start_delete(msg)


async def cmd_cancel(flow: FlowController, msg: InboundMessage) -> None:
    await flow.cancel(msg)


registry.register("start", cmd_start, help_text="Show the main menu.", aliases=["menu"])
registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h"], keeps_dialog=True)
registry.register("add", cmd_add, help_text="Add a new task.", menu_label=ADD_LABEL)
registry.register("list", cmd_list, help_text="List all your tasks.", menu_label=LIST_LABEL)
registry.register("today", cmd_today, help_text="Tasks due today.", menu_label=TODAY_LABEL)
registry.register("month", cmd_month, help_text="Tasks due this month.", menu_label=MONTH_LABEL)
registry.register("done", cmd_done, help_text="Mark a task as done.", menu_label=DONE_LABEL)
registry.register("delete", cmd_delete, help_text="Delete a task.", menu_label=DELETE_LABEL)
registry.register("cancel", cmd_cancel, help_text="Abandon the current dialog.", keeps_dialog=True)
