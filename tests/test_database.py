"""Test the connection manager's transaction handling."""

import asyncio
import logging

import pytest

from import_staging.utils.database import DatabaseManager


def run_with_db(tmp_path, scenario):
    async def runner():
        db = DatabaseManager(str(tmp_path / "db" / "test.db"))
        await db.open()
        try:
            await db.execute("CREATE TABLE item (id INTEGER PRIMARY KEY, name TEXT NOT NULL)")
            return await scenario(db)
        finally:
            await db.close()

    return asyncio.run(runner())


def test_transaction_commits(tmp_path):
    async def scenario(db):
        async with db.transaction():
            await db.execute("INSERT INTO item (id, name) VALUES (1, 'a')")
            await db.executemany("INSERT INTO item (id, name) VALUES (?, ?)", [(2, "b"), (3, "c")])
        return await db.fetchcol("SELECT name FROM item ORDER BY id")

    assert run_with_db(tmp_path, scenario) == ["a", "b", "c"]


def test_transaction_rolls_back_and_reraises(tmp_path):
    async def scenario(db):
        with pytest.raises(ValueError):
            async with db.transaction():
                await db.execute("INSERT INTO item (id, name) VALUES (1, 'a')")
                raise ValueError("bad record")
        return await db.fetchval("SELECT COUNT(*) FROM item")

    assert run_with_db(tmp_path, scenario) == 0


def test_failed_rollback_does_not_hide_original_error(tmp_path, caplog):
    async def scenario(db):
        with pytest.raises(ValueError, match="bad record"):
            async with db.transaction():
                await db.execute("INSERT INTO item (id, name) VALUES (1, 'a')")
                # ending the transaction early makes the ROLLBACK fail
                await db.execute("COMMIT")
                raise ValueError("bad record")
        return await db.fetchval("SELECT COUNT(*) FROM item")

    with caplog.at_level(logging.ERROR):
        assert run_with_db(tmp_path, scenario) == 1
    assert "bad record" in caplog.text


def test_closed_manager_refuses_queries(tmp_path):
    db = DatabaseManager(str(tmp_path / "unused.db"))
    with pytest.raises(RuntimeError):
        db.conn
