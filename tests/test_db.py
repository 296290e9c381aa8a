"""Tests for the async libsql connection wrapper."""

from pathlib import Path

import pytest

from silvia.db import Connection, connect

pytestmark = pytest.mark.usefixtures("_no_turso")


class TestConnect:
    async def test_yields_connection(self, tmp_path: Path):
        async with connect(tmp_path / "test.db") as conn:
            assert isinstance(conn, Connection)

    async def test_creates_parent_dirs(self, tmp_path: Path):
        db_path = tmp_path / "nested" / "dir" / "test.db"
        async with connect(db_path):
            pass
        assert db_path.parent.exists()

    async def test_falls_back_to_configured_path(self, tmp_path: Path, monkeypatch):
        db_path = tmp_path / "configured" / "silvia.db"
        monkeypatch.setattr("silvia.config.settings.database_path", db_path)
        async with connect() as conn:
            await conn.execute("CREATE TABLE t (id INTEGER PRIMARY KEY)")
            await conn.commit()
        assert db_path.exists()


class TestConnection:
    async def test_execute_and_fetchone(self, tmp_path: Path):
        async with connect(tmp_path / "test.db") as conn:
            await conn.execute("CREATE TABLE t (id INTEGER PRIMARY KEY, val TEXT)")
            await conn.execute("INSERT INTO t (val) VALUES (?)", ("hello",))
            await conn.commit()

            row = await conn.fetchone("SELECT val FROM t WHERE id = ?", (1,))
            assert row == ("hello",)

    async def test_fetchone_returns_none_when_empty(self, tmp_path: Path):
        async with connect(tmp_path / "test.db") as conn:
            await conn.execute("CREATE TABLE t (id INTEGER PRIMARY KEY)")
            assert await conn.fetchone("SELECT * FROM t WHERE id = 999") is None

    async def test_data_persists_across_connections(self, tmp_path: Path):
        db_path = tmp_path / "test.db"
        async with connect(db_path) as conn:
            await conn.execute("CREATE TABLE t (name TEXT)")
            await conn.execute("INSERT INTO t (name) VALUES (?)", ("alice",))
            await conn.commit()

        async with connect(db_path) as conn:
            assert await conn.fetchone("SELECT name FROM t") == ("alice",)
