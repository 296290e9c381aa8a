"""Voice message → text: resolve, download, transcribe, clean up."""

from __future__ import annotations

import asyncio
import logging
import os
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

import httpx

from silvia.config import settings
from silvia.errors import DownloadError, UnsupportedFormat

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from silvia.bot.transport import Transport, VoiceResource

logger = logging.getLogger(__name__)

ACCEPTED_EXTENSIONS: tuple[str, ...] = (".ogg", ".oga")

MAX_VOICE_SIZE = 20 * 1024 * 1024  # 20 MB, the Bot API download limit


class Transcriber(Protocol):
    async def transcribe(self, audio: bytes) -> list[str]: ...


def check_format(resource: VoiceResource) -> str:
    """Return the accepted extension of *resource*, or raise ``UnsupportedFormat``."""
    path = resource.path.lower()
    for ext in ACCEPTED_EXTENSIONS:
        if path.endswith(ext):
            return ext
    msg = f"Unsupported voice file {resource.path!r}; expected Ogg audio"
    raise UnsupportedFormat(msg)


class VoicePipeline:
    """Turns a voice attachment reference into transcript text.

    The downloaded audio lives in a temporary file under *work_dir* that is
    removed on every exit path.
    """

    def __init__(
        self,
        transport: Transport,
        transcriber: Transcriber,
        *,
        work_dir: Path | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._transport = transport
        self._transcriber = transcriber
        self._work_dir = work_dir or settings.voice_dir
        self._http = http_client

    def _get_http(self) -> httpx.AsyncClient:
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(timeout=settings.external_call_timeout_seconds)
        return self._http

    async def aclose(self) -> None:
        if self._http is not None:
            await self._http.aclose()

    @asynccontextmanager
    async def _temp_file(self, suffix: str) -> AsyncIterator[Path]:
        self._work_dir.mkdir(parents=True, exist_ok=True)
        fd, name = tempfile.mkstemp(suffix=suffix, prefix="voice_", dir=self._work_dir)
        os.close(fd)
        path = Path(name)
        try:
            yield path
        finally:
            path.unlink(missing_ok=True)
            logger.debug("Removed temporary voice file %s", path.name)

    async def _download(self, resource: VoiceResource, target: Path) -> int:
        """Stream *resource* into *target*. Returns the byte count."""
        size = 0
        try:
            async with self._get_http().stream("GET", resource.download_url) as resp:
                resp.raise_for_status()
                with target.open("wb") as fh:
                    async for chunk in resp.aiter_bytes():
                        size += len(chunk)
                        if size > MAX_VOICE_SIZE:
                            msg = f"Voice file exceeds {MAX_VOICE_SIZE} bytes"
                            raise DownloadError(msg)
                        fh.write(chunk)
        except (httpx.HTTPError, OSError) as exc:
            msg = f"Could not download voice file: {exc}"
            raise DownloadError(msg) from exc
        return size

    async def run(self, voice_ref: str) -> str:
        """Resolve, download and transcribe a voice attachment.

        Raises ``UnsupportedFormat``, ``DownloadError``,
        ``TranscriptionCredentialError`` or ``TranscriptionError``.
        """
        resource = await self._transport.resolve_voice_resource(voice_ref)
        ext = check_format(resource)

        async with self._temp_file(ext) as path:
            size = await self._download(resource, path)
            logger.info("Downloaded voice %s (%d bytes)", voice_ref, size)
            audio = await asyncio.to_thread(path.read_bytes)
            segments = await self._transcriber.transcribe(audio)

        return "\n".join(segments)
