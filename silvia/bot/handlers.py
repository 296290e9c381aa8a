"""Telegram update handlers."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.ext import ContextTypes

from silvia.bot.replies import LANGUAGE_LABELS, SUPPORTED_LOCALES, reply
from silvia.bot.transport import InboundMessage

if TYPE_CHECKING:
    from silvia.bot.dispatcher import Dispatcher
    from silvia.preferences.store import PreferenceStore

logger = logging.getLogger(__name__)

LANGUAGE_CALLBACK_PREFIX = "lang:"


def _dispatcher(context: ContextTypes.DEFAULT_TYPE) -> Dispatcher:
    return context.application.bot_data["dispatcher"]


def _preferences(context: ContextTypes.DEFAULT_TYPE) -> PreferenceStore:
    return context.application.bot_data["preferences"]


async def handle_message(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Hand text and voice messages to the dispatcher."""
    if update.effective_chat is None:
        return
    await _dispatcher(context).dispatch(InboundMessage.from_update(update))


async def handle_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start: offer the language choice."""
    chat_id = update.effective_chat.id
    locale = await _preferences(context).get_locale(chat_id)

    keyboard = InlineKeyboardMarkup([
        [InlineKeyboardButton(LANGUAGE_LABELS[code], callback_data=f"{LANGUAGE_CALLBACK_PREFIX}{code}")]
        for code in ("en", "es")
    ])
    await update.message.reply_text(reply("choose_language", locale), reply_markup=keyboard)


async def handle_language_choice(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle a language button press: store the chosen locale."""
    query = update.callback_query
    data = query.data or ""
    locale = data.removeprefix(LANGUAGE_CALLBACK_PREFIX)

    if not data.startswith(LANGUAGE_CALLBACK_PREFIX) or locale not in SUPPORTED_LOCALES:
        await query.answer("Invalid choice.")
        return

    chat_id = query.message.chat.id
    await _preferences(context).set_locale(chat_id, locale)
    await query.answer()
    await query.message.reply_text(reply("language_changed", locale, locale=locale))


async def handle_clear(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /clear: forget this chat's conversation history."""
    chat_id = update.effective_chat.id
    count = _dispatcher(context).clear_history(str(chat_id))
    locale = await _preferences(context).get_locale(chat_id)
    await update.message.reply_text(reply("cleared", locale, count=count))


async def handle_error(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Log errors raised by handlers or the polling loop; keep running."""
    logger.error("Unhandled error for update %s", update, exc_info=context.error)
