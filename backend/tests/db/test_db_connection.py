"""Integration tests for database connection and schema."""

import os
import tempfile

import aiosqlite
import pytest

from threadchat.db.connection import Database


class TestDatabaseConnection:
    async def test_connect_creates_tables(self):
        db = await Database.connect(":memory:")
        try:
            rows = await db.fetchall(
                "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
            )
            assert {row["name"] for row in rows} >= {"conversations", "messages"}
        finally:
            await db.close()

    async def test_wal_mode_on_file_database(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            db = await Database.connect(os.path.join(tmpdir, "test.db"))
            try:
                row = await db.fetchone("PRAGMA journal_mode")
                assert row["journal_mode"] == "wal"
            finally:
                await db.close()

    async def test_foreign_keys_enabled(self):
        db = await Database.connect(":memory:")
        try:
            row = await db.fetchone("PRAGMA foreign_keys")
            assert row["foreign_keys"] == 1
        finally:
            await db.close()

    async def test_schema_idempotent(self):
        db = await Database.connect(":memory:")
        try:
            await db._ensure_schema()
            rows = await db.fetchall("SELECT name FROM sqlite_master WHERE type='table'")
            assert len(rows) >= 2
        finally:
            await db.close()


class TestSchemaConstraints:
    async def _insert_conversation(self, db: Database, conversation_id: str = "c1") -> None:
        await db.execute(
            "INSERT INTO conversations (conversation_id, owner_id, title, created_at, updated_at) "
            "VALUES (?, 'u1', NULL, '2025-01-01', '2025-01-01')",
            (conversation_id,),
        )

    async def _insert_message(self, db: Database, message_id: str, **overrides) -> None:
        row = {
            "message_id": message_id,
            "conversation_id": "c1",
            "parent_id": None,
            "thread_root_id": message_id,
            "depth": 0,
            "role": "user",
            "content": "hi",
            "created_at": "2025-01-01",
        }
        row.update(overrides)
        columns = ", ".join(row)
        placeholders = ", ".join("?" for _ in row)
        await db.execute(
            f"INSERT INTO messages ({columns}) VALUES ({placeholders})", tuple(row.values())
        )

    async def test_deleting_conversation_deletes_messages(self, db):
        await self._insert_conversation(db)
        await self._insert_message(db, "m1")
        await db.execute("DELETE FROM conversations WHERE conversation_id = 'c1'")
        assert await db.fetchall("SELECT * FROM messages") == []

    async def test_message_requires_existing_conversation(self, db):
        with pytest.raises(aiosqlite.IntegrityError):
            await self._insert_message(db, "m1", conversation_id="missing")

    async def test_unknown_role_rejected(self, db):
        await self._insert_conversation(db)
        with pytest.raises(aiosqlite.IntegrityError):
            await self._insert_message(db, "m1", role="system")

    async def test_negative_depth_rejected(self, db):
        await self._insert_conversation(db)
        with pytest.raises(aiosqlite.IntegrityError):
            await self._insert_message(db, "m1", depth=-1)

    async def test_rows_come_back_as_dicts(self, db):
        await self._insert_conversation(db)
        row = await db.fetchone("SELECT * FROM conversations")
        assert isinstance(row, dict)
        assert row["owner_id"] == "u1"
