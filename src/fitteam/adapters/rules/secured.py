"""Rule-enforcing document store wrapper.

``SecuredDocumentStore`` binds a base store to one caller identity and
evaluates the rule set on every access. This is the authoritative
enforcement point; everything above it is a convenience.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any

import structlog

from fitteam.adapters.rules.engine import Operation, RuleContext, RuleSet
from fitteam.core.access.types import Identity
from fitteam.core.documents import (
    Document,
    Filter,
    OrderBy,
    Write,
    WriteKind,
    apply_write,
    collection_path,
    document_path,
    segments,
)
from fitteam.core.exceptions import PermissionDeniedError
from fitteam.core.interfaces import DocumentStore

logger = structlog.get_logger()

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current UTC time."""
    return datetime.now(UTC)


class SecuredWriteBatch:
    """Batch whose writes are each checked against the post-batch state."""

    def __init__(self, store: SecuredDocumentStore) -> None:
        self._store = store
        self.writes: list[Write] = []

    def set(self, path: str, data: dict[str, Any], *, merge: bool = False) -> SecuredWriteBatch:
        """Queue a full or merged write."""
        self.writes.append(Write(WriteKind.SET, document_path(path), dict(data), merge=merge))
        return self

    def update(
        self,
        path: str,
        fields: dict[str, Any],
        *,
        precondition: dict[str, Any] | None = None,
    ) -> SecuredWriteBatch:
        """Queue a field-scoped update."""
        self.writes.append(
            Write(WriteKind.UPDATE, document_path(path), dict(fields), precondition=precondition)
        )
        return self

    def delete(self, path: str) -> SecuredWriteBatch:
        """Queue a delete."""
        self.writes.append(Write(WriteKind.DELETE, document_path(path)))
        return self

    async def commit(self) -> None:
        """Authorize every write, then commit atomically on the base store."""
        await self._store.authorize_writes(self.writes)
        batch = self._store.base.batch()
        for write in self.writes:
            if write.kind is WriteKind.SET:
                batch.set(write.path, write.data, merge=write.merge)
            elif write.kind is WriteKind.UPDATE:
                batch.update(write.path, write.data, precondition=write.precondition)
            else:
                batch.delete(write.path)
        await batch.commit()


class SecuredDocumentStore:
    """DocumentStore that enforces a RuleSet for one caller."""

    def __init__(
        self,
        base: DocumentStore,
        rules: RuleSet,
        identity: Identity | None,
        clock: Clock = utc_now,
    ) -> None:
        """Initialize the secured store.

        Args:
            base: Unsecured store holding the data.
            rules: Rules to evaluate on every access.
            identity: Verified caller identity, or None when signed out.
            clock: Source of ``now`` for time-based conditions.
        """
        self.base = base
        self.rules = rules
        self.identity = identity
        self._clock = clock

    def _context(
        self,
        operation: Operation,
        path: str,
        params: Mapping[str, str | None],
        *,
        resource: Mapping[str, Any] | None = None,
        request_data: Mapping[str, Any] | None = None,
        query_filters: Mapping[str, Any] | None = None,
        pending: Mapping[str, Mapping[str, Any] | None] | None = None,
    ) -> RuleContext:
        return RuleContext(
            auth=self.identity,
            operation=operation,
            path=path,
            params=params,
            resource=resource,
            request_data=request_data,
            query_filters=query_filters,
            now=self._clock(),
            store=self.base,
            pending=pending,
        )

    def _deny(self, operation: Operation, path: str) -> PermissionDeniedError:
        logger.info(
            "access_denied",
            operation=operation.value,
            path=path,
            uid=self.identity.uid if self.identity else None,
        )
        return PermissionDeniedError()

    async def get(self, path: str) -> Document | None:
        """Get a document if the rules allow it."""
        key = document_path(path)
        doc = await self.base.get(key)
        resource = doc.data if doc else None
        allowed = await self.rules.evaluate(
            Operation.GET,
            list(segments(key)),
            lambda params: self._context(Operation.GET, key, params, resource=resource),
        )
        if not allowed:
            raise self._deny(Operation.GET, key)
        return doc

    async def query(
        self,
        collection: str,
        filters: list[Filter] | None = None,
        order_by: list[OrderBy] | None = None,
        limit: int | None = None,
    ) -> list[Document]:
        """Run a query the rules allow as a whole."""
        key = collection_path(collection)
        equalities = _equalities(filters)
        allowed = await self.rules.evaluate(
            Operation.LIST,
            [*segments(key), None],
            lambda params: self._context(Operation.LIST, key, params, query_filters=equalities),
        )
        if not allowed:
            raise self._deny(Operation.LIST, key)
        return await self.base.query(key, filters, order_by, limit)

    async def collection_group(
        self,
        collection_id: str,
        filters: list[Filter] | None = None,
        limit: int | None = None,
    ) -> list[Document]:
        """Run a collection-group query the rules allow as a whole."""
        equalities = _equalities(filters)
        allowed = await self.rules.evaluate(
            Operation.LIST,
            [collection_id, None],
            lambda params: self._context(
                Operation.LIST, collection_id, params, query_filters=equalities
            ),
            group=True,
        )
        if not allowed:
            raise self._deny(Operation.LIST, f"**/{collection_id}")
        return await self.base.collection_group(collection_id, filters, limit)

    async def set(self, path: str, data: dict[str, Any], *, merge: bool = False) -> None:
        """Create or overwrite a document if allowed."""
        await self.batch().set(path, data, merge=merge).commit()

    async def update(
        self,
        path: str,
        fields: dict[str, Any],
        *,
        precondition: dict[str, Any] | None = None,
    ) -> None:
        """Update a document if allowed."""
        await self.batch().update(path, fields, precondition=precondition).commit()

    async def delete(self, path: str) -> None:
        """Delete a document if allowed."""
        await self.batch().delete(path).commit()

    def batch(self) -> SecuredWriteBatch:
        """Start a rule-checked batch."""
        return SecuredWriteBatch(self)

    async def authorize_writes(self, writes: list[Write]) -> None:
        """Check every write against the state the whole batch produces.

        Raises:
            PermissionDeniedError: If any write is not allowed.
        """
        before: dict[str, Mapping[str, Any] | None] = {}
        after: dict[str, Mapping[str, Any] | None] = {}
        for write in writes:
            if write.path not in after:
                doc = await self.base.get(write.path)
                before[write.path] = doc.data if doc else None
                after[write.path] = before[write.path]
            after[write.path] = apply_write(after[write.path], write)

        for write in writes:
            resource = before[write.path]
            if write.kind is WriteKind.DELETE:
                operation = Operation.DELETE
            elif resource is None and write.kind is WriteKind.SET:
                operation = Operation.CREATE
            else:
                operation = Operation.UPDATE
            request_data = after[write.path]
            allowed = await self.rules.evaluate(
                operation,
                list(segments(write.path)),
                lambda params, w=write, r=resource, d=request_data, o=operation: self._context(
                    o, w.path, params, resource=r, request_data=d, pending=after
                ),
            )
            if not allowed:
                raise self._deny(operation, write.path)


def _equalities(filters: list[Filter] | None) -> dict[str, Any]:
    return {f.field: f.value for f in filters or [] if f.op == "=="}
