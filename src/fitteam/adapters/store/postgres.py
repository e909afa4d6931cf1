"""Document store on PostgreSQL using asyncpg.

Documents live in one table keyed by path with JSONB data. Equality
filters are pushed into SQL as JSONB containment; range filters, ordering
and limits are applied to the fetched rows.
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any

import asyncpg
import structlog

from fitteam.core.documents import (
    Document,
    Filter,
    OrderBy,
    Write,
    WriteKind,
    apply_write,
    collection_path,
    document_path,
    parent_collection,
    precondition_holds,
    refine,
    segments,
)
from fitteam.core.exceptions import NotFoundError, PreconditionFailedError

logger = structlog.get_logger()

SCHEMA = """
CREATE TABLE IF NOT EXISTS documents (
    path TEXT PRIMARY KEY,
    collection_path TEXT NOT NULL,
    collection_id TEXT NOT NULL,
    data JSONB NOT NULL,
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
CREATE INDEX IF NOT EXISTS documents_collection_path_idx ON documents (collection_path);
CREATE INDEX IF NOT EXISTS documents_collection_id_idx ON documents (collection_id);
CREATE INDEX IF NOT EXISTS documents_data_idx ON documents USING GIN (data jsonb_path_ops);
"""

_DATE_KEY = "$date"


def _default(value: Any) -> Any:
    if isinstance(value, datetime):
        return {_DATE_KEY: value.isoformat()}
    raise TypeError(f"Cannot store {type(value).__name__} in a document")


def _object_hook(obj: dict[str, Any]) -> Any:
    if len(obj) == 1 and _DATE_KEY in obj:
        return datetime.fromisoformat(obj[_DATE_KEY])
    return obj


def encode(data: dict[str, Any]) -> str:
    """Serialize document data, tagging datetimes."""
    return json.dumps(data, default=_default)


def decode(raw: str | dict[str, Any]) -> dict[str, Any]:
    """Deserialize document data, restoring datetimes."""
    if isinstance(raw, dict):
        raw = json.dumps(raw)
    result: dict[str, Any] = json.loads(raw, object_hook=_object_hook)
    return result


def _containment(filters: list[Filter] | None) -> str | None:
    """JSONB containment document for the equality filters."""
    contained: dict[str, Any] = {}
    for f in filters or []:
        if f.op != "==":
            continue
        target = contained
        keys = f.field.split(".")
        for key in keys[:-1]:
            target = target.setdefault(key, {})
        target[keys[-1]] = f.value
    if not contained:
        return None
    return encode(contained)


class PostgresWriteBatch:
    """Batch committed inside one transaction."""

    def __init__(self, store: PostgresDocumentStore) -> None:
        self._store = store
        self.writes: list[Write] = []

    def set(self, path: str, data: dict[str, Any], *, merge: bool = False) -> PostgresWriteBatch:
        """Queue a full or merged write."""
        self.writes.append(Write(WriteKind.SET, document_path(path), dict(data), merge=merge))
        return self

    def update(
        self,
        path: str,
        fields: dict[str, Any],
        *,
        precondition: dict[str, Any] | None = None,
    ) -> PostgresWriteBatch:
        """Queue a field-scoped update."""
        self.writes.append(
            Write(WriteKind.UPDATE, document_path(path), dict(fields), precondition=precondition)
        )
        return self

    def delete(self, path: str) -> PostgresWriteBatch:
        """Queue a delete."""
        self.writes.append(Write(WriteKind.DELETE, document_path(path)))
        return self

    async def commit(self) -> None:
        """Apply all writes in one transaction."""
        await self._store.apply(self.writes)


class PostgresDocumentStore:
    """DocumentStore backed by a PostgreSQL ``documents`` table."""

    def __init__(self, dsn: str):
        """Initialize the store adapter."""
        self.dsn = dsn
        self.pool: asyncpg.Pool[asyncpg.Connection[asyncpg.Record]] | None = None

    async def connect(self) -> None:
        """Create connection pool and ensure the table exists."""
        self.pool = await asyncpg.create_pool(
            self.dsn,
            min_size=2,
            max_size=10,
            command_timeout=60,
        )
        async with self.acquire() as conn:
            await conn.execute(SCHEMA)
        logger.info("document_store_connected", dsn=self.dsn.split("@")[-1])

    async def close(self) -> None:
        """Close connection pool."""
        if self.pool:
            await self.pool.close()
            logger.info("document_store_disconnected")

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[asyncpg.Connection[asyncpg.Record]]:
        """Acquire a connection from the pool."""
        if self.pool is None:
            raise RuntimeError("Database pool not initialized")
        async with self.pool.acquire() as conn:
            yield conn

    async def get(self, path: str) -> Document | None:
        """Get a document."""
        key = document_path(path)
        async with self.acquire() as conn:
            row = await conn.fetchrow("SELECT path, data FROM documents WHERE path = $1", key)
        if not row:
            return None
        return Document(row["path"], decode(row["data"]))

    async def set(self, path: str, data: dict[str, Any], *, merge: bool = False) -> None:
        """Create or overwrite a document."""
        await self.batch().set(path, data, merge=merge).commit()

    async def update(
        self,
        path: str,
        fields: dict[str, Any],
        *,
        precondition: dict[str, Any] | None = None,
    ) -> None:
        """Update fields of an existing document."""
        await self.batch().update(path, fields, precondition=precondition).commit()

    async def delete(self, path: str) -> None:
        """Delete a document if present."""
        await self.batch().delete(path).commit()

    async def query(
        self,
        collection: str,
        filters: list[Filter] | None = None,
        order_by: list[OrderBy] | None = None,
        limit: int | None = None,
    ) -> list[Document]:
        """Query a single collection."""
        rows = await self._fetch("collection_path", collection_path(collection), filters)
        return refine(rows, filters, order_by, limit)

    async def collection_group(
        self,
        collection_id: str,
        filters: list[Filter] | None = None,
        limit: int | None = None,
    ) -> list[Document]:
        """Query every collection with the given name."""
        rows = await self._fetch("collection_id", collection_id, filters)
        return refine(rows, filters, None, limit)

    def batch(self) -> PostgresWriteBatch:
        """Start a batch."""
        return PostgresWriteBatch(self)

    async def _fetch(
        self, column: str, value: str, filters: list[Filter] | None
    ) -> list[Document]:
        contained = _containment(filters)
        async with self.acquire() as conn:
            if contained is None:
                rows = await conn.fetch(
                    f"SELECT path, data FROM documents WHERE {column} = $1",  # noqa: S608
                    value,
                )
            else:
                rows = await conn.fetch(
                    f"SELECT path, data FROM documents WHERE {column} = $1 "  # noqa: S608
                    "AND data @> $2::jsonb",
                    value,
                    contained,
                )
        return [Document(row["path"], decode(row["data"])) for row in rows]

    async def apply(self, writes: list[Write]) -> None:
        """Apply writes in a transaction, locking each touched row.

        ``SELECT ... FOR UPDATE`` serializes concurrent writers on the same
        document, so a precondition checked here cannot be invalidated
        before the transaction commits.
        """
        async with self.acquire() as conn, conn.transaction():
            staged: dict[str, dict[str, Any] | None] = {}
            for write in writes:
                if write.path in staged:
                    existing = staged[write.path]
                else:
                    row = await conn.fetchrow(
                        "SELECT data FROM documents WHERE path = $1 FOR UPDATE",
                        write.path,
                    )
                    existing = decode(row["data"]) if row else None

                if write.kind is WriteKind.UPDATE:
                    if existing is None:
                        raise NotFoundError(f"No document to update at {write.path}")
                    if write.precondition and not precondition_holds(
                        existing, write.precondition
                    ):
                        logger.info("precondition_failed", path=write.path)
                        raise PreconditionFailedError()
                staged[write.path] = apply_write(existing, write)

            for path, data in staged.items():
                if data is None:
                    await conn.execute("DELETE FROM documents WHERE path = $1", path)
                    continue
                parent = parent_collection(path)
                await conn.execute(
                    """
                    INSERT INTO documents (path, collection_path, collection_id, data)
                    VALUES ($1, $2, $3, $4::jsonb)
                    ON CONFLICT (path) DO UPDATE
                    SET data = EXCLUDED.data, updated_at = NOW()
                    """,
                    path,
                    parent,
                    segments(path)[-2],
                    encode(data),
                )
