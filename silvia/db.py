"""Async access to the preferences database over libsql.

The ``libsql`` driver is synchronous, so every call is pushed to a worker
thread with ``asyncio.to_thread()``. The target is chosen from settings:

- **Production**: ``TURSO_DATABASE_URL`` + ``TURSO_AUTH_TOKEN`` → remote Turso
- **Dev/test**: no Turso env vars → local SQLite file at ``database_path``
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

import libsql

from silvia.config import settings

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from pathlib import Path


class Connection:
    """Async facade over a synchronous libsql connection."""

    def __init__(self, conn: Any) -> None:
        self._conn = conn

    async def execute(self, sql: str, params: tuple = ()) -> Any:
        return await asyncio.to_thread(self._conn.execute, sql, params)

    async def fetchone(self, sql: str, params: tuple = ()) -> tuple | None:
        cursor = await self.execute(sql, params)
        return await asyncio.to_thread(cursor.fetchone)

    async def commit(self) -> None:
        await asyncio.to_thread(self._conn.commit)

    async def close(self) -> None:
        await asyncio.to_thread(self._conn.close)


def _open_local(path: str) -> Any:
    """Open a local libsql connection with WAL mode and busy timeout."""
    conn = libsql.connect(path)
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA busy_timeout=5000")
    return conn


async def _open(local_path_override: Path | None) -> Any:
    if local_path_override:
        local_path_override.parent.mkdir(parents=True, exist_ok=True)
        return await asyncio.to_thread(_open_local, str(local_path_override))

    if settings.turso_database_url:
        return await asyncio.to_thread(
            libsql.connect,
            database=settings.turso_database_url,
            auth_token=settings.turso_auth_token,
        )

    settings.database_path.parent.mkdir(parents=True, exist_ok=True)
    return await asyncio.to_thread(_open_local, str(settings.database_path))


@asynccontextmanager
async def connect(local_path_override: Path | None = None) -> AsyncIterator[Connection]:
    """Yield a connection that is closed on exit.

    *local_path_override* (test isolation) takes priority over Turso and the
    configured ``database_path``.
    """
    conn = Connection(await _open(local_path_override))
    try:
        yield conn
    finally:
        await conn.close()
