# src/todo_companion/connectors/telegram_connector.py

"""
Telegram connector (python-telegram-bot, long polling).

init -> flow controller + reminder scheduler -> handlers -> polling loop

The connector only translates between Telegram updates and the core's
InboundMessage / Interaction types; all dialog logic lives in FlowController.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Sequence

from telegram import (
    Bot,
    InlineKeyboardButton,
    InlineKeyboardMarkup,
    KeyboardButton,
    ReplyKeyboardMarkup,
    Update,
)
from telegram.error import TelegramError
from telegram.ext import Application, CallbackQueryHandler, ContextTypes, MessageHandler, filters

from ..cli.commands import dispatch_message, registry as command_registry
from ..core.flow import FlowController
from ..core.payloads import Button
from ..core.ports import ChatId, InboundMessage, Interaction
from ..core.state import AppState
from ..tasks.reminder_scheduler import run_reminder_scheduler

logger = logging.getLogger(__name__)

FLOW_KEY = "flow"
REMINDER_TASK_KEY = "reminder_task"


class TelegramGateway:
    """ChatGateway backed by the Bot API."""

    def __init__(self, bot: Bot) -> None:
        self._bot = bot

    @staticmethod
    def _markup(
        buttons: Sequence[Sequence[Button]] | None,
        menu: Sequence[Sequence[str]] | None,
    ) -> InlineKeyboardMarkup | ReplyKeyboardMarkup | None:
        if buttons:
            return InlineKeyboardMarkup(
                [[InlineKeyboardButton(b.text, callback_data=b.payload) for b in row] for row in buttons]
            )
        if menu:
            return ReplyKeyboardMarkup(
                [[KeyboardButton(label) for label in row] for row in menu],
                resize_keyboard=True,
                one_time_keyboard=False,
            )
        return None

    async def send_message(
        self,
        chat_id: ChatId,
        text: str,
        *,
        buttons: Sequence[Sequence[Button]] | None = None,
        menu: Sequence[Sequence[str]] | None = None,
    ) -> int | None:
        message = await self._bot.send_message(
            chat_id=chat_id,
            text=text,
            reply_markup=self._markup(buttons, menu),
        )
        return message.message_id

    async def delete_message(self, chat_id: ChatId, message_id: int) -> None:
        await self._bot.delete_message(chat_id=chat_id, message_id=message_id)

    async def answer_interaction(self, interaction_id: str, text: str | None = None) -> None:
        await self._bot.answer_callback_query(callback_query_id=interaction_id, text=text)


def _flow(context: ContextTypes.DEFAULT_TYPE) -> FlowController:
    return context.application.bot_data[FLOW_KEY]


async def _on_text(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    message = update.effective_message
    user = update.effective_user
    if message is None or user is None or message.text is None:
        logger.warning("Dropped update %s: no text or sender", update.update_id)
        return

    logger.info("Telegram <%s> %s: %r", message.chat_id, user.id, message.text)
    await dispatch_message(
        _flow(context),
        InboundMessage(chat_id=message.chat_id, user_id=str(user.id), text=message.text),
    )


async def _on_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    query = update.callback_query
    if query is None:
        return

    message = query.message
    chat_id: ChatId = message.chat.id if message is not None else query.from_user.id
    interaction = Interaction(
        interaction_id=query.id,
        chat_id=chat_id,
        user_id=str(query.from_user.id),
        message_id=message.message_id if message is not None else None,
        payload=query.data,
    )
    logger.debug("Telegram callback user=%s data=%r", interaction.user_id, interaction.payload)
    await _flow(context).handle_interaction(interaction)


async def _on_error(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    update_id = update.update_id if isinstance(update, Update) else None
    logger.error("Telegram update %s failed", update_id, exc_info=context.error)


def build_application(state: AppState) -> Application:
    settings = state.settings

    async def post_init(app: Application) -> None:
        gateway = TelegramGateway(app.bot)
        app.bot_data[FLOW_KEY] = FlowController(state.task_store, gateway, state.sessions)

        try:
            await app.bot.set_my_commands(command_registry.bot_commands())
        except TelegramError:
            logger.warning("Failed to publish bot commands.", exc_info=True)

        if settings.reminders_enabled:
            app.bot_data[REMINDER_TASK_KEY] = asyncio.create_task(
                run_reminder_scheduler(state.task_store, gateway, times=settings.reminder_times)
            )
            logger.info(
                "Reminder scheduler started (times=%s).",
                ", ".join(t.strftime("%H:%M") for t in settings.reminder_times),
            )

    async def post_shutdown(app: Application) -> None:
        task = app.bot_data.pop(REMINDER_TASK_KEY, None)
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    app = (
        Application.builder()
        .token(settings.bot_token)
        .post_init(post_init)
        .post_shutdown(post_shutdown)
        .build()
    )
    # Edits of earlier messages are not new input.
    app.add_handler(MessageHandler(filters.TEXT & filters.UpdateType.MESSAGE, _on_text))
    app.add_handler(CallbackQueryHandler(_on_callback))
    app.add_error_handler(_on_error)
    return app


def run_telegram_bot(state: AppState) -> None:
    """Blocking: runs until SIGINT/SIGTERM (handled by python-telegram-bot)."""
    app = build_application(state)
    logger.info("Telegram connector starting (long polling).")
    app.run_polling(allowed_updates=Update.ALL_TYPES)
    logger.info("Telegram connector stopped.")
