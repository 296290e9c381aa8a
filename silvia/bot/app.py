"""Telegram application factory."""

from __future__ import annotations

import logging

from telegram.ext import (
    Application,
    CallbackQueryHandler,
    CommandHandler,
    MessageHandler,
    filters,
)

from silvia.bot.dispatcher import Dispatcher
from silvia.bot.handlers import (
    LANGUAGE_CALLBACK_PREFIX,
    handle_clear,
    handle_error,
    handle_language_choice,
    handle_message,
    handle_start,
)
from silvia.bot.session import ConversationStore
from silvia.bot.transport import AdminChannel, TelegramTransport
from silvia.config import settings
from silvia.knowledge.wikipedia import WikipediaSummarizer
from silvia.llm.cache import ResponseCache
from silvia.preferences import PreferenceStore
from silvia.voice import SpeechTranscriber, VoicePipeline

logger = logging.getLogger(__name__)


def build_dispatcher(transport: TelegramTransport, preferences: PreferenceStore) -> Dispatcher:
    """Wire the dispatcher and its collaborators from settings."""
    return Dispatcher(
        transport,
        conversations=ConversationStore(
            window_size=settings.conversation_window_size,
            max_conversations=settings.conversation_max_count,
            idle_ttl=settings.conversation_idle_ttl_seconds,
        ),
        cache=ResponseCache(
            max_entries=settings.response_cache_max_entries,
            ttl=settings.response_cache_ttl_seconds,
        ),
        preferences=preferences,
        knowledge=WikipediaSummarizer(),
        voice=VoicePipeline(transport, SpeechTranscriber()),
        admin=AdminChannel(transport, settings.get_admin_chat_id()),
        assistant_name=settings.assistant_name,
        reply_mode=settings.reply_mode,
        route_voice_transcripts=settings.route_voice_transcripts,
        temperature=settings.llm_temperature,
        default_locale=settings.default_locale,
    )


async def _post_init(app: Application) -> None:
    """Called after the Application is fully initialized (event loop running)."""
    await app.bot_data["preferences"].initialise()
    logger.info("Bot ready as @%s", app.bot.username)


async def _post_shutdown(app: Application) -> None:
    """Called during graceful shutdown."""
    dispatcher: Dispatcher = app.bot_data["dispatcher"]
    await dispatcher.aclose()


def create_app() -> Application:
    """Build and configure the Telegram application."""
    app = Application.builder().token(settings.telegram_bot_token).concurrent_updates(True).build()

    preferences = PreferenceStore()
    app.bot_data["preferences"] = preferences
    app.bot_data["dispatcher"] = build_dispatcher(TelegramTransport(app.bot), preferences)

    if settings.get_admin_chat_id() is None:
        logger.warning("ADMIN_CHAT_ID is empty; alerts will not be delivered")

    app.add_handler(CommandHandler("start", handle_start))
    app.add_handler(CommandHandler("clear", handle_clear))
    app.add_handler(
        CallbackQueryHandler(handle_language_choice, pattern=f"^{LANGUAGE_CALLBACK_PREFIX}")
    )
    # Everything else, /historial included, goes through the dispatcher.
    app.add_handler(MessageHandler(filters.TEXT | filters.VOICE, handle_message))
    app.add_error_handler(handle_error)

    app.post_init = _post_init
    app.post_shutdown = _post_shutdown

    return app
