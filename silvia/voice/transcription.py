"""Speech-to-text via Google Cloud Speech."""

from __future__ import annotations

import logging

from google.api_core import exceptions as api_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import speech

from silvia.config import settings
from silvia.errors import TranscriptionCredentialError, TranscriptionError

logger = logging.getLogger(__name__)

_CREDENTIAL_ERRORS = (
    auth_exceptions.GoogleAuthError,
    api_exceptions.Unauthenticated,
    api_exceptions.PermissionDenied,
)


class SpeechTranscriber:
    """Transcribes short Ogg/Opus voice notes.

    The Speech client is created on first use, since building it is where
    missing application-default credentials surface.
    """

    def __init__(
        self,
        *,
        language_code: str | None = None,
        sample_rate_hertz: int | None = None,
        timeout: float | None = None,
        client: speech.SpeechAsyncClient | None = None,
    ) -> None:
        self.language_code = language_code or settings.speech_language_code
        self.sample_rate_hertz = sample_rate_hertz or settings.speech_sample_rate_hertz
        self.timeout = timeout or settings.external_call_timeout_seconds
        self._client = client

    def _get_client(self) -> speech.SpeechAsyncClient:
        if self._client is None:
            self._client = speech.SpeechAsyncClient()
        return self._client

    def recognition_config(self) -> speech.RecognitionConfig:
        return speech.RecognitionConfig(
            encoding=speech.RecognitionConfig.AudioEncoding.OGG_OPUS,
            sample_rate_hertz=self.sample_rate_hertz,
            language_code=self.language_code,
        )

    async def transcribe(self, audio: bytes) -> list[str]:
        """Return the best transcript of each recognized segment, in order."""
        try:
            client = self._get_client()
            response = await client.recognize(
                config=self.recognition_config(),
                audio=speech.RecognitionAudio(content=audio),
                timeout=self.timeout,
            )
        except _CREDENTIAL_ERRORS as exc:
            msg = f"Speech credentials unavailable: {exc}"
            raise TranscriptionCredentialError(msg) from exc
        except api_exceptions.GoogleAPIError as exc:
            msg = f"Speech recognition failed: {exc}"
            raise TranscriptionError(msg) from exc

        segments = [
            result.alternatives[0].transcript
            for result in response.results
            if result.alternatives
        ]
        logger.info("Transcribed %d segment(s) from %d bytes", len(segments), len(audio))
        return segments
