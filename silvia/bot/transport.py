"""Chat transport: the inbound message type and the outbound Telegram side."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import telegram

from silvia.errors import DownloadError, InvalidMessage

if TYPE_CHECKING:
    from telegram import Update

logger = logging.getLogger(__name__)

TELEGRAM_MESSAGE_LIMIT = 4096


def split_message(text: str, limit: int = TELEGRAM_MESSAGE_LIMIT) -> list[str]:
    """Split *text* into chunks of at most *limit* characters.

    Cuts at the last line break inside the limit when there is one, so
    history lines stay whole; a single over-long line is cut hard.
    """
    chunks: list[str] = []
    while len(text) > limit:
        cut = text.rfind("\n", 0, limit + 1)
        if cut <= 0:
            cut = limit
        chunks.append(text[:cut])
        text = text[cut:].lstrip("\n")
    if text or not chunks:
        chunks.append(text)
    return chunks


@dataclass(frozen=True)
class InboundMessage:
    """A message as the dispatcher sees it.

    Attributes:
        conversation_id: Platform chat id, as a string.
        text: Message text, if any.
        voice_ref: Platform file id of a voice attachment, if any.
    """

    conversation_id: str
    text: str | None = None
    voice_ref: str | None = None

    @classmethod
    def from_update(cls, update: Update) -> InboundMessage:
        message = update.effective_message
        voice = message.voice if message else None
        return cls(
            conversation_id=str(update.effective_chat.id),
            text=message.text if message else None,
            voice_ref=voice.file_id if voice else None,
        )

    @property
    def is_voice(self) -> bool:
        return bool(self.voice_ref)

    def validate(self) -> None:
        """Raise ``InvalidMessage`` if there is nothing to process."""
        if not self.voice_ref and not (self.text and self.text.strip()):
            msg = f"Message in chat {self.conversation_id} has neither text nor voice"
            raise InvalidMessage(msg)


@dataclass(frozen=True)
class VoiceResource:
    """Where a voice attachment can be fetched from."""

    path: str
    download_url: str


@runtime_checkable
class Transport(Protocol):
    """Outbound side of the chat platform."""

    async def send_message(self, conversation_id: str, text: str) -> bool:
        """Send a plain text message. Returns True on success."""
        ...

    async def resolve_voice_resource(self, voice_ref: str) -> VoiceResource:
        """Look up a voice attachment. Raises ``DownloadError`` on failure."""
        ...


class TelegramTransport:
    """Sends messages and resolves files via the Telegram Bot API."""

    def __init__(self, bot: telegram.Bot) -> None:
        self._bot = bot

    async def send_message(self, conversation_id: str, text: str) -> bool:
        try:
            await self._bot.send_message(chat_id=int(conversation_id), text=text)
            return True
        except (telegram.error.TelegramError, ValueError):
            logger.exception("send_message failed for chat %s", conversation_id)
            return False

    async def resolve_voice_resource(self, voice_ref: str) -> VoiceResource:
        try:
            tg_file = await self._bot.get_file(voice_ref)
        except telegram.error.TelegramError as exc:
            msg = f"Could not resolve voice file {voice_ref}: {exc}"
            raise DownloadError(msg) from exc

        if not tg_file.file_path:
            msg = f"Telegram returned no path for voice file {voice_ref}"
            raise DownloadError(msg)
        # The Bot API returns file_path as a full download URL.
        return VoiceResource(path=tg_file.file_path, download_url=tg_file.file_path)


class AdminChannel:
    """Escalation target: a fixed administrative chat."""

    def __init__(self, transport: Transport, chat_id: str | None) -> None:
        self._transport = transport
        self.chat_id = chat_id

    async def send_alert(self, text: str) -> bool:
        if not self.chat_id:
            logger.warning("ADMIN_CHAT_ID is not set; dropping alert: %s", text[:80])
            return False
        return await self._transport.send_message(self.chat_id, text)
