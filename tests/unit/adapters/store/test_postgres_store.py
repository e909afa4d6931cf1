"""Unit tests for PostgresDocumentStore."""

from __future__ import annotations

import json
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from fitteam.adapters.store import PostgresDocumentStore
from fitteam.adapters.store.postgres import _containment, decode, encode
from fitteam.core.documents import Filter
from fitteam.core.exceptions import NotFoundError, PreconditionFailedError

WHEN = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)


class TestCodec:
    """Tests for JSON encoding of document data."""

    def test_datetimes_survive(self) -> None:
        """Datetimes are tagged on the way in and restored on the way out."""
        data = {"expiresAt": WHEN, "nested": {"at": WHEN}, "status": "pending"}
        assert decode(encode(data)) == data

    def test_decode_accepts_parsed_json(self) -> None:
        """asyncpg may hand back JSONB already parsed."""
        assert decode({"at": {"$date": WHEN.isoformat()}}) == {"at": WHEN}

    def test_unsupported_type(self) -> None:
        """Non-JSON values are rejected."""
        with pytest.raises(TypeError):
            encode({"bad": object()})

    def test_containment_uses_equalities_only(self) -> None:
        """Dotted equality filters become nested containment."""
        contained = _containment(
            [
                Filter("memberUid", "==", "p1"),
                Filter("modules.workouts", "==", True),
                Filter("createdAt", ">", WHEN),
            ]
        )
        assert contained is not None
        assert json.loads(contained) == {"memberUid": "p1", "modules": {"workouts": True}}

    def test_no_containment(self) -> None:
        """No equality filters means no containment clause."""
        assert _containment([Filter("rank", ">", 1)]) is None


class TestPostgresDocumentStore:
    """Tests for PostgresDocumentStore."""

    @pytest.fixture
    def pg_store(self, mock_conn: MagicMock) -> PostgresDocumentStore:
        """Return a store whose pool hands out the mock connection."""
        pg_store = PostgresDocumentStore("postgresql://localhost:5432/test")

        mock_pool = MagicMock()

        @asynccontextmanager
        async def mock_acquire():
            yield mock_conn

        mock_pool.acquire = mock_acquire
        mock_pool.close = AsyncMock()
        pg_store.pool = mock_pool
        return pg_store

    async def test_connect_creates_pool_and_schema(self, mock_conn: MagicMock) -> None:
        """Connecting creates the pool and the documents table."""
        pg_store = PostgresDocumentStore("postgresql://user:pw@db:5432/test")
        mock_pool = MagicMock()

        @asynccontextmanager
        async def mock_acquire():
            yield mock_conn

        mock_pool.acquire = mock_acquire

        async def mock_create_pool(*args, **kwargs):
            return mock_pool

        with patch(
            "fitteam.adapters.store.postgres.asyncpg.create_pool", side_effect=mock_create_pool
        ):
            await pg_store.connect()

        assert pg_store.pool is mock_pool
        assert "CREATE TABLE IF NOT EXISTS documents" in mock_conn.execute.call_args.args[0]

    async def test_acquire_without_pool(self) -> None:
        """Using the store before connecting fails loudly."""
        with pytest.raises(RuntimeError):
            await PostgresDocumentStore("postgresql://localhost/test").get("users/u1")

    async def test_close(self, pg_store: PostgresDocumentStore) -> None:
        """Closing closes the pool."""
        await pg_store.close()
        pg_store.pool.close.assert_awaited_once()

    async def test_get(self, pg_store: PostgresDocumentStore, mock_conn: MagicMock) -> None:
        """Rows are decoded into documents."""
        mock_conn.fetchrow.return_value = {
            "path": "users/u1",
            "data": encode({"uid": "u1", "createdAt": WHEN}),
        }

        doc = await pg_store.get("/users/u1/")

        assert doc is not None
        assert doc.data == {"uid": "u1", "createdAt": WHEN}
        assert mock_conn.fetchrow.call_args.args[1] == "users/u1"

    async def test_get_missing(self, pg_store: PostgresDocumentStore) -> None:
        """No row means no document."""
        assert await pg_store.get("users/u1") is None

    async def test_query_pushes_equalities(
        self, pg_store: PostgresDocumentStore, mock_conn: MagicMock
    ) -> None:
        """Equality filters go to SQL, range filters run on the rows."""
        mock_conn.fetch.return_value = [
            {"path": "trainees/t1/invites/A", "data": encode({"status": "pending", "n": 1})},
            {"path": "trainees/t1/invites/B", "data": encode({"status": "pending", "n": 5})},
        ]

        docs = await pg_store.query(
            "trainees/t1/invites",
            [Filter("status", "==", "pending"), Filter("n", ">", 2)],
        )

        sql, column_value, contained = mock_conn.fetch.call_args.args
        assert "collection_path = $1" in sql
        assert "data @> $2::jsonb" in sql
        assert column_value == "trainees/t1/invites"
        assert json.loads(contained) == {"status": "pending"}
        assert [doc.id for doc in docs] == ["B"]

    async def test_collection_group_by_id(
        self, pg_store: PostgresDocumentStore, mock_conn: MagicMock
    ) -> None:
        """Group queries match on the collection id."""
        await pg_store.collection_group("grants")
        sql, value = mock_conn.fetch.call_args.args
        assert "collection_id = $1" in sql
        assert value == "grants"

    async def test_apply_upserts_in_transaction(
        self, pg_store: PostgresDocumentStore, mock_conn: MagicMock
    ) -> None:
        """Writes lock rows and upsert inside one transaction."""
        await pg_store.set("trainees/t1/grants/p1", {"active": True})

        assert mock_conn.mock_transaction.entered
        assert "FOR UPDATE" in mock_conn.fetchrow.call_args.args[0]
        _, path, parent, collection_id, data = mock_conn.execute.call_args.args
        assert (path, parent, collection_id) == (
            "trainees/t1/grants/p1",
            "trainees/t1/grants",
            "grants",
        )
        assert json.loads(data) == {"active": True}

    async def test_update_missing(self, pg_store: PostgresDocumentStore) -> None:
        """Updating an absent row is not found."""
        with pytest.raises(NotFoundError):
            await pg_store.update("trainees/t1/grants/p1", {"active": True})

    async def test_precondition_rolls_back(
        self, pg_store: PostgresDocumentStore, mock_conn: MagicMock
    ) -> None:
        """A failed precondition aborts the transaction before any write."""
        mock_conn.fetchrow.return_value = {"data": encode({"status": "accepted"})}

        with pytest.raises(PreconditionFailedError):
            await pg_store.update(
                "trainees/t1/invites/ABC123",
                {"status": "accepted"},
                precondition={"status": "pending"},
            )

        assert mock_conn.mock_transaction.exited_with is PreconditionFailedError
        mock_conn.execute.assert_not_called()

    async def test_delete(self, pg_store: PostgresDocumentStore, mock_conn: MagicMock) -> None:
        """Deletes issue a DELETE by path."""
        mock_conn.fetchrow.return_value = {"data": encode({"active": True})}

        await pg_store.delete("trainees/t1/grants/p1")

        sql, path = mock_conn.execute.call_args.args
        assert sql.startswith("DELETE FROM documents")
        assert path == "trainees/t1/grants/p1"
