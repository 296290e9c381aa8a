"""Voice message transcription."""

from silvia.voice.pipeline import ACCEPTED_EXTENSIONS, VoicePipeline
from silvia.voice.transcription import SpeechTranscriber

__all__ = [
    "ACCEPTED_EXTENSIONS",
    "SpeechTranscriber",
    "VoicePipeline",
]
