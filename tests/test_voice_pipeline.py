"""Tests for the voice download + transcription pipeline."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock

import httpx
import pytest

from silvia.bot.transport import VoiceResource
from silvia.errors import (
    DownloadError,
    TranscriptionCredentialError,
    TranscriptionError,
    UnsupportedFormat,
)
from silvia.voice.pipeline import VoicePipeline, check_format

OGG_URL = "https://api.telegram.org/file/botTOKEN/voice/file_1.ogg"
AUDIO = b"OggS\x00fake-opus-payload"


@pytest.fixture
def work_dir(tmp_path: Path) -> Path:
    return tmp_path / "voice"


@pytest.fixture
def transcriber() -> AsyncMock:
    t = AsyncMock()
    t.transcribe.return_value = ["hola", "¿cómo estás?"]
    return t


def _http(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _ok(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, content=AUDIO)


def _pipeline(transport, transcriber, work_dir, handler=_ok) -> VoicePipeline:
    return VoicePipeline(transport, transcriber, work_dir=work_dir, http_client=_http(handler))


# -- check_format --------------------------------------------------------------


@pytest.mark.parametrize("path", ["voice/file_1.ogg", "voice/file_1.oga", "VOICE/FILE.OGG"])
def test_accepted_extensions(path: str) -> None:
    assert check_format(VoiceResource(path=path, download_url=path)) in (".ogg", ".oga")


@pytest.mark.parametrize("path", ["voice/file_1.mp3", "voice/file_1.ogg.txt", "voice/file"])
def test_rejected_extensions(path: str) -> None:
    with pytest.raises(UnsupportedFormat):
        check_format(VoiceResource(path=path, download_url=path))


# -- run -----------------------------------------------------------------------


async def test_success_joins_segments_and_cleans_up(transport, transcriber, work_dir) -> None:
    transport.resources["f1"] = VoiceResource(path=OGG_URL, download_url=OGG_URL)

    text = await _pipeline(transport, transcriber, work_dir).run("f1")

    assert text == "hola\n¿cómo estás?"
    transcriber.transcribe.assert_awaited_once_with(AUDIO)
    assert list(work_dir.iterdir()) == []


async def test_mp3_is_unsupported_and_never_downloaded(transport, transcriber, work_dir) -> None:
    transport.resources["f1"] = VoiceResource(path="voice/file_1.mp3", download_url="x")
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, content=AUDIO)

    with pytest.raises(UnsupportedFormat):
        await _pipeline(transport, transcriber, work_dir, handler).run("f1")

    assert requests == []
    transcriber.transcribe.assert_not_awaited()


async def test_ogg_proceeds_to_download(transport, transcriber, work_dir) -> None:
    transport.resources["f1"] = VoiceResource(path=OGG_URL, download_url=OGG_URL)
    requests: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(str(request.url))
        return httpx.Response(200, content=AUDIO)

    await _pipeline(transport, transcriber, work_dir, handler).run("f1")
    assert requests == [OGG_URL]


async def test_unresolvable_file_is_download_error(transport, transcriber, work_dir) -> None:
    with pytest.raises(DownloadError):
        await _pipeline(transport, transcriber, work_dir).run("missing")


async def test_http_error_is_download_error_and_cleans_up(
    transport, transcriber, work_dir
) -> None:
    transport.resources["f1"] = VoiceResource(path=OGG_URL, download_url=OGG_URL)

    with pytest.raises(DownloadError):
        await _pipeline(transport, transcriber, work_dir, lambda r: httpx.Response(404)).run("f1")

    assert list(work_dir.iterdir()) == []
    transcriber.transcribe.assert_not_awaited()


async def test_network_error_is_download_error(transport, transcriber, work_dir) -> None:
    transport.resources["f1"] = VoiceResource(path=OGG_URL, download_url=OGG_URL)

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(DownloadError):
        await _pipeline(transport, transcriber, work_dir, handler).run("f1")
    assert list(work_dir.iterdir()) == []


@pytest.mark.parametrize("error", [TranscriptionError("bad"), TranscriptionCredentialError("creds")])
async def test_transcription_errors_propagate_and_clean_up(
    transport, transcriber, work_dir, error
) -> None:
    transport.resources["f1"] = VoiceResource(path=OGG_URL, download_url=OGG_URL)
    transcriber.transcribe.side_effect = error

    with pytest.raises(type(error)):
        await _pipeline(transport, transcriber, work_dir).run("f1")

    assert list(work_dir.iterdir()) == []


async def test_no_segments_gives_empty_text(transport, transcriber, work_dir) -> None:
    transport.resources["f1"] = VoiceResource(path=OGG_URL, download_url=OGG_URL)
    transcriber.transcribe.return_value = []

    assert await _pipeline(transport, transcriber, work_dir).run("f1") == ""
