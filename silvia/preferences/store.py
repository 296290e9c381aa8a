"""PreferenceStore: per-chat locale persisted via libsql."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from silvia.config import settings
from silvia.db import connect
from silvia.errors import PreferenceStoreError

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS users (
    chat_id TEXT PRIMARY KEY,
    locale  TEXT NOT NULL DEFAULT 'es'
)
"""


class PreferenceStore:
    """Stores each chat's preferred locale.

    Read and write failures are soft: they are logged, reads fall back to
    the default locale and writes report False.
    """

    def __init__(self, db_path: Path | None = None, default_locale: str | None = None) -> None:
        self._db_path = db_path
        self.default_locale = default_locale or settings.default_locale
        self._initialised = False

    async def _ensure_table(self, db) -> None:  # noqa: ANN001
        if not self._initialised:
            await db.execute(_CREATE_TABLE)
            await db.commit()
            self._initialised = True

    async def initialise(self) -> None:
        """Create the table up front so the first message does not pay for it."""
        try:
            async with (
                asyncio.timeout(settings.external_call_timeout_seconds),
                connect(self._db_path) as db,
            ):
                await self._ensure_table(db)
        except Exception:
            logger.exception("Could not initialise the preferences table")

    async def _fetch_locale(self, conversation_id: str) -> str | None:
        try:
            async with (
                asyncio.timeout(settings.external_call_timeout_seconds),
                connect(self._db_path) as db,
            ):
                await self._ensure_table(db)
                row = await db.fetchone(
                    "SELECT locale FROM users WHERE chat_id = ?", (conversation_id,)
                )
        except Exception as exc:
            msg = f"Could not read locale for chat {conversation_id}"
            raise PreferenceStoreError(msg) from exc
        return row[0] if row else None

    async def get_locale(self, conversation_id: str | int) -> str:
        """Return the chat's locale, or the default when unset or unreadable."""
        try:
            locale = await self._fetch_locale(str(conversation_id))
        except PreferenceStoreError as exc:
            logger.warning("%s; using default %r", exc, self.default_locale)
            return self.default_locale
        return locale or self.default_locale

    async def _write_locale(self, conversation_id: str, locale: str) -> None:
        try:
            async with (
                asyncio.timeout(settings.external_call_timeout_seconds),
                connect(self._db_path) as db,
            ):
                await self._ensure_table(db)
                await db.execute(
                    """
                    INSERT INTO users (chat_id, locale) VALUES (?, ?)
                    ON CONFLICT (chat_id) DO UPDATE SET locale = excluded.locale
                    """,
                    (conversation_id, locale),
                )
                await db.commit()
        except Exception as exc:
            msg = f"Could not store locale for chat {conversation_id}"
            raise PreferenceStoreError(msg) from exc

    async def set_locale(self, conversation_id: str | int, locale: str) -> bool:
        """Insert or update the chat's locale. Returns True on success."""
        try:
            await self._write_locale(str(conversation_id), locale)
        except PreferenceStoreError as exc:
            logger.warning("%s: %s", exc, exc.__cause__)
            return False
        logger.info("Locale for chat %s set to %s", conversation_id, locale)
        return True
