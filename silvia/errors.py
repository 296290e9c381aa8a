"""Exception types raised by the message pipeline and its collaborators."""


class SilviaError(Exception):
    """Base class for all SilvIA+ errors."""


class InvalidMessage(SilviaError):
    """Inbound message carries neither text nor a voice attachment."""


class UnsupportedFormat(SilviaError):
    """Voice attachment is not in an accepted audio container."""


class DownloadError(SilviaError):
    """Voice attachment could not be resolved or downloaded."""


class TranscriptionError(SilviaError):
    """Speech-to-text failed."""


class TranscriptionCredentialError(TranscriptionError):
    """Speech-to-text credentials are missing or were rejected."""


class LLMCallFailure(SilviaError):
    """The LLM call failed or returned nothing usable."""


class PreferenceStoreError(SilviaError):
    """The user preference database could not be read or written."""
