"""In-memory document store.

This store is useful for:
- Unit testing without a real database
- Integration testing of the full access flow
- Development without database setup
"""

from __future__ import annotations

import asyncio
import copy
from typing import Any

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


class MemoryWriteBatch:
    """Batch committed under the store lock."""

    def __init__(self, store: MemoryDocumentStore) -> None:
        self._store = store
        self.writes: list[Write] = []

    def set(self, path: str, data: dict[str, Any], *, merge: bool = False) -> MemoryWriteBatch:
        """Queue a full or merged write."""
        self.writes.append(Write(WriteKind.SET, document_path(path), dict(data), merge=merge))
        return self

    def update(
        self,
        path: str,
        fields: dict[str, Any],
        *,
        precondition: dict[str, Any] | None = None,
    ) -> MemoryWriteBatch:
        """Queue a field-scoped update."""
        self.writes.append(
            Write(WriteKind.UPDATE, document_path(path), dict(fields), precondition=precondition)
        )
        return self

    def delete(self, path: str) -> MemoryWriteBatch:
        """Queue a delete."""
        self.writes.append(Write(WriteKind.DELETE, document_path(path)))
        return self

    async def commit(self) -> None:
        """Apply all writes, or none of them."""
        await self._store.apply(self.writes)


class MemoryDocumentStore:
    """Dict-backed implementation of the DocumentStore protocol.

    Attributes:
        documents: Map of document path to data.
    """

    def __init__(self, documents: dict[str, dict[str, Any]] | None = None) -> None:
        """Initialize the store.

        Args:
            documents: Optional initial documents keyed by path.
        """
        self.documents: dict[str, dict[str, Any]] = {
            document_path(path): copy.deepcopy(data) for path, data in (documents or {}).items()
        }
        self._lock = asyncio.Lock()

    async def get(self, path: str) -> Document | None:
        """Get a document snapshot."""
        key = document_path(path)
        data = self.documents.get(key)
        if data is None:
            return None
        return Document(key, copy.deepcopy(data))

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
        target = collection_path(collection)
        docs = [
            Document(path, copy.deepcopy(data))
            for path, data in self.documents.items()
            if parent_collection(path) == target
        ]
        return refine(docs, filters, order_by, limit)

    async def collection_group(
        self,
        collection_id: str,
        filters: list[Filter] | None = None,
        limit: int | None = None,
    ) -> list[Document]:
        """Query every collection with the given name."""
        docs = [
            Document(path, copy.deepcopy(data))
            for path, data in self.documents.items()
            if segments(path)[-2] == collection_id
        ]
        return refine(docs, filters, None, limit)

    def batch(self) -> MemoryWriteBatch:
        """Start a batch."""
        return MemoryWriteBatch(self)

    async def apply(self, writes: list[Write]) -> None:
        """Validate then apply writes atomically."""
        async with self._lock:
            staged: dict[str, dict[str, Any] | None] = {}

            def current(path: str) -> dict[str, Any] | None:
                if path in staged:
                    return staged[path]
                return self.documents.get(path)

            for write in writes:
                existing = current(write.path)
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
                    self.documents.pop(path, None)
                else:
                    self.documents[path] = data
