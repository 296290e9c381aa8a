"""Message dispatcher: routes each inbound message to its reply strategy."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from contextlib import asynccontextmanager
from enum import StrEnum
from typing import TYPE_CHECKING

from silvia.bot import intents, replies
from silvia.bot.intents import Intent
from silvia.bot.session import Turn
from silvia.bot.transport import split_message
from silvia.config import settings
from silvia.errors import (
    DownloadError,
    InvalidMessage,
    TranscriptionCredentialError,
    TranscriptionError,
    UnsupportedFormat,
)
from silvia.llm.client import complete_text, generate_reply

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from silvia.bot.session import ConversationStore
    from silvia.bot.transport import AdminChannel, InboundMessage, Transport
    from silvia.knowledge.wikipedia import WikipediaSummarizer
    from silvia.llm.cache import ResponseCache
    from silvia.llm.client import CompleteFn
    from silvia.preferences.store import PreferenceStore
    from silvia.voice.pipeline import VoicePipeline

logger = logging.getLogger(__name__)


class ReplyMode(StrEnum):
    # Keyword/welcome reply first, then a name, history or LLM reply.
    LAYERED = "layered"
    # Exactly one strategy per message.
    SINGLE = "single"


class Dispatcher:
    """Processes inbound messages one conversation at a time.

    Messages from the same conversation are handled strictly in arrival
    order (a lock per conversation id); different conversations proceed
    concurrently. A failure while handling one message is logged, answered
    with an apology, and never escapes ``dispatch``.
    """

    def __init__(
        self,
        transport: Transport,
        *,
        conversations: ConversationStore,
        cache: ResponseCache,
        preferences: PreferenceStore,
        knowledge: WikipediaSummarizer,
        voice: VoicePipeline,
        admin: AdminChannel,
        assistant_name: str,
        reply_mode: ReplyMode | str = ReplyMode.LAYERED,
        route_voice_transcripts: bool = False,
        complete: CompleteFn | None = None,
        temperature: float | None = None,
        default_locale: str = "es",
    ) -> None:
        self._transport = transport
        self.conversations = conversations
        self.cache = cache
        self._preferences = preferences
        self._knowledge = knowledge
        self._voice = voice
        self._admin = admin
        self.assistant_name = assistant_name
        self.reply_mode = ReplyMode(reply_mode)
        self.route_voice_transcripts = route_voice_transcripts
        self._complete = complete or complete_text
        self._temperature = temperature
        self._default_locale = default_locale
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: defaultdict[str, int] = defaultdict(int)

    # -- Serialization ---------------------------------------------------------

    @asynccontextmanager
    async def _serialized(self, conversation_id: str) -> AsyncIterator[None]:
        """Hold the conversation's lock; drop it once nobody else needs it."""
        lock = self._locks.setdefault(conversation_id, asyncio.Lock())
        self._lock_users[conversation_id] += 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[conversation_id] -= 1
            if self._lock_users[conversation_id] == 0:
                del self._lock_users[conversation_id]
                self._locks.pop(conversation_id, None)

    # -- Entry point -----------------------------------------------------------

    async def dispatch(self, message: InboundMessage) -> None:
        """Handle one inbound message end to end."""
        try:
            message.validate()
        except InvalidMessage as exc:
            logger.error("Dropping message: %s", exc)
            return

        cid = message.conversation_id
        async with self._serialized(cid):
            locale = self._default_locale
            try:
                locale = await self._locale(cid)
                intent = intents.classify_message(message.text, has_voice=message.is_voice)
                if intent is Intent.VOICE_MESSAGE:
                    await self._handle_voice(cid, message.voice_ref, locale)
                else:
                    await self._handle_text(cid, message.text, locale)
            except Exception:
                logger.exception("Error processing message from %s", cid)
                await self._send(cid, replies.reply("error", locale))

    async def _locale(self, cid: str) -> str:
        """The stored locale, or the default when the store does not answer in time."""
        try:
            async with asyncio.timeout(settings.external_call_timeout_seconds):
                return await self._preferences.get_locale(cid)
        except TimeoutError:
            logger.warning("Locale lookup for %s timed out; using %r", cid, self._default_locale)
            return self._default_locale

    def clear_history(self, conversation_id: str) -> int:
        return self.conversations.clear(conversation_id)

    async def aclose(self) -> None:
        """Release HTTP clients held by the collaborators."""
        await self._knowledge.aclose()
        await self._voice.aclose()

    async def _send(self, conversation_id: str, text: str) -> None:
        for chunk in split_message(text):
            if not await self._transport.send_message(conversation_id, chunk):
                logger.warning("Reply to %s was not delivered", conversation_id)
                return

    # -- Text ------------------------------------------------------------------

    async def _handle_text(self, cid: str, text: str, locale: str) -> None:
        logger.info("Text from %s: %s", cid, text[:80])
        # History as it stood before this message; /historial replays only this.
        previous = self.conversations.get(cid)
        self.conversations.append(cid, Turn.user(text))

        if self.reply_mode is ReplyMode.LAYERED:
            await self._reply_layered(cid, text, previous, locale)
        else:
            await self._reply_single(cid, text, previous, locale)

    async def _reply_layered(
        self, cid: str, text: str, previous: list[Turn], locale: str
    ) -> None:
        normalized = intents.normalize(text)

        alert = intents.match_alert(normalized)
        if alert is Intent.ALERT_KEYWORD_EXACT:
            await self._send(cid, replies.reply("loan_help", locale))
        elif alert is Intent.ALERT_KEYWORD_CONTEXTUAL:
            await self._escalate(text)
        else:
            await self._send(cid, replies.reply("welcome", locale, name=self.assistant_name))

        intent = intents.classify(text)
        if intent is Intent.NAME_QUERY:
            await self._send(cid, self.assistant_name)
        elif intent is Intent.HISTORY_QUERY:
            await self._send(cid, self._format_history(previous, locale))
        else:
            await self._reply_with_llm(cid, text, locale)

    async def _reply_single(
        self, cid: str, text: str, previous: list[Turn], locale: str
    ) -> None:
        intent = intents.classify(text)
        logger.debug("Intent for %s: %s", cid, intent)

        if intent is Intent.NAME_QUERY:
            await self._send(cid, self.assistant_name)
        elif intent is Intent.HISTORY_QUERY:
            await self._send(cid, self._format_history(previous, locale))
        elif intent is Intent.ALERT_KEYWORD_EXACT:
            await self._send(cid, replies.reply("loan_help", locale))
        elif intent is Intent.ALERT_KEYWORD_CONTEXTUAL:
            await self._escalate(text)
        elif intents.is_greeting(intents.normalize(text)):
            await self._send(cid, replies.reply("welcome", locale, name=self.assistant_name))
        else:
            await self._reply_with_llm(cid, text, locale)

    async def _escalate(self, text: str) -> None:
        alert = replies.reply("alert", self._default_locale, text=text)
        if await self._admin.send_alert(alert):
            logger.info("Escalated message to admin chat")
        else:
            logger.error("Escalation failed for message: %s", text[:80])

    def _format_history(self, previous: list[Turn], locale: str) -> str:
        if not previous:
            return replies.reply("no_history", locale)
        return replies.reply("history", locale, history="\n".join(t.content for t in previous))

    async def _reply_with_llm(self, cid: str, text: str, locale: str) -> None:
        turns = self.conversations.get(cid)
        reply = await generate_reply(
            turns, self.cache, complete=self._complete, temperature=self._temperature
        )
        if reply:
            self.conversations.append(cid, Turn.assistant(reply))
            await self._send(cid, reply)
            return

        summary = await self._knowledge.summarize(text, locale)
        await self._send(cid, summary or replies.reply("not_understood", locale))

    # -- Voice -----------------------------------------------------------------

    async def _handle_voice(self, cid: str, voice_ref: str, locale: str) -> None:
        logger.info("Voice message from %s: %s", cid, voice_ref)
        try:
            transcript = await self._voice.run(voice_ref)
        except UnsupportedFormat as exc:
            logger.warning("Voice from %s rejected: %s", cid, exc)
            await self._send(cid, replies.reply("voice_unsupported", locale))
            return
        except TranscriptionCredentialError as exc:
            logger.error("Speech credentials problem: %s", exc)
            await self._send(cid, replies.reply("voice_credentials", locale))
            return
        except (DownloadError, TranscriptionError) as exc:
            logger.warning("Voice from %s failed: %s", cid, exc)
            await self._send(cid, replies.reply("voice_failed", locale))
            return

        if not transcript.strip():
            await self._send(cid, replies.reply("voice_empty", locale))
            return

        logger.info("Transcript for %s: %s", cid, transcript[:80])
        await self._send(cid, transcript)

        if self.route_voice_transcripts:
            await self._handle_text(cid, transcript, locale)
