"""Shared test fixtures."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from silvia.bot.dispatcher import Dispatcher
from silvia.bot.session import ConversationStore
from silvia.bot.transport import AdminChannel, VoiceResource
from silvia.errors import DownloadError
from silvia.llm.cache import ResponseCache

ADMIN_CHAT = "-100999"


class FakeTransport:
    """Records outbound messages; resolves voice refs from a dict."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []
        self.resources: dict[str, VoiceResource] = {}

    async def send_message(self, conversation_id: str, text: str) -> bool:
        self.sent.append((conversation_id, text))
        return True

    async def resolve_voice_resource(self, voice_ref: str) -> VoiceResource:
        if voice_ref not in self.resources:
            msg = f"unknown file {voice_ref}"
            raise DownloadError(msg)
        return self.resources[voice_ref]

    def texts_to(self, conversation_id: str) -> list[str]:
        return [text for cid, text in self.sent if cid == conversation_id]


@pytest.fixture(autouse=False)
def _no_turso(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure tests use local file, not remote Turso."""
    monkeypatch.setattr("silvia.config.settings.turso_database_url", "")


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def preferences() -> AsyncMock:
    prefs = AsyncMock()
    prefs.get_locale.return_value = "es"
    prefs.set_locale.return_value = True
    return prefs


@pytest.fixture
def knowledge() -> AsyncMock:
    summarizer = AsyncMock()
    summarizer.summarize.return_value = None
    return summarizer


@pytest.fixture
def voice() -> AsyncMock:
    pipeline = AsyncMock()
    pipeline.run.return_value = "hola desde un audio"
    return pipeline


@pytest.fixture
def complete() -> AsyncMock:
    return AsyncMock(return_value="Respuesta del modelo")


@pytest.fixture
def make_dispatcher(transport, preferences, knowledge, voice, complete):
    """Factory for a Dispatcher wired to fakes; keyword args override."""

    def _make(**overrides) -> Dispatcher:
        kwargs = {
            "conversations": ConversationStore(window_size=50),
            "cache": ResponseCache(max_entries=100),
            "preferences": preferences,
            "knowledge": knowledge,
            "voice": voice,
            "admin": AdminChannel(transport, ADMIN_CHAT),
            "assistant_name": "SilvIA+",
            "complete": complete,
            "temperature": 0.7,
        }
        kwargs.update(overrides)
        return Dispatcher(transport, **kwargs)

    return _make
