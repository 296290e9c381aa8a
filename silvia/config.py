"""Application settings loaded from environment variables."""

import os
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_file() -> str | None:
    if os.getenv("PYTEST_CURRENT_TEST"):
        return None
    return ".env"


class Settings(BaseSettings):
    """SilvIA+ configuration. All values come from environment variables."""

    # Telegram
    telegram_bot_token: str = Field(default="")
    admin_chat_id: str = Field(default="")

    # Anthropic
    anthropic_api_key: str = Field(default="")
    claude_model: str = Field(default="claude-haiku-4-5-20251001")
    llm_temperature: float = Field(default=0.7, ge=0.0, le=1.0)
    llm_max_tokens: int = Field(default=1024)

    # Assistant
    assistant_name: str = Field(default="SilvIA+")
    default_locale: str = Field(default="es")

    # Database (user preferences)
    database_path: Path = Field(default=Path("data/silvia.db"))

    # Turso (hosted libSQL); when set, overrides local database_path
    turso_database_url: str = Field(default="")
    turso_auth_token: str = Field(default="")

    # Conversation history
    conversation_window_size: int = Field(default=50)
    conversation_max_count: int = Field(default=1000)
    conversation_idle_ttl_seconds: int = Field(default=6 * 3600)

    # LLM response cache
    response_cache_max_entries: int = Field(default=512)
    response_cache_ttl_seconds: int = Field(default=24 * 3600)

    # Routing: "layered" sends the keyword/welcome reply and then a second
    # reply; "single" picks exactly one strategy per message.
    reply_mode: Literal["layered", "single"] = Field(default="layered")
    route_voice_transcripts: bool = Field(default=False)

    # Upper bound for every outbound call (LLM, download, speech, Wikipedia)
    external_call_timeout_seconds: float = Field(default=30.0)

    # Voice
    voice_dir: Path = Field(default=Path("data/voice"))
    speech_language_code: str = Field(default="es-ES")
    speech_sample_rate_hertz: int = Field(default=48000)

    # Logging
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(env_file=_env_file(), env_file_encoding="utf-8")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        if os.getenv("PYTEST_CURRENT_TEST"):
            return (init_settings,)
        return (init_settings, env_settings, dotenv_settings, file_secret_settings)

    def get_admin_chat_id(self) -> str | None:
        """Return ADMIN_CHAT_ID stripped, or None when unset."""
        value = self.admin_chat_id.strip()
        return value or None


settings = Settings()
