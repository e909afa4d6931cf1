"""Protocol definitions for external dependencies.

The core domain only depends on these protocols, never on a concrete
document store. Services receive a store handle explicitly; there is no
module-level client.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from fitteam.core.documents import Document, Filter, OrderBy


@runtime_checkable
class WriteBatch(Protocol):
    """A group of writes committed atomically.

    Either every write lands or none does. Preconditions are checked at
    commit time, inside the same atomic unit.
    """

    def set(self, path: str, data: dict[str, Any], *, merge: bool = False) -> WriteBatch:
        """Queue a full or merged write."""
        ...

    def update(
        self,
        path: str,
        fields: dict[str, Any],
        *,
        precondition: dict[str, Any] | None = None,
    ) -> WriteBatch:
        """Queue a field-scoped update of an existing document."""
        ...

    def delete(self, path: str) -> WriteBatch:
        """Queue a delete. Missing documents are ignored."""
        ...

    async def commit(self) -> None:
        """Apply all queued writes atomically.

        Raises:
            NotFoundError: If an update targets a missing document.
            PreconditionFailedError: If a precondition does not hold.
        """
        ...


@runtime_checkable
class DocumentStore(Protocol):
    """Interface for the document database.

    Implementations must provide:
    - Path-addressed document CRUD
    - Equality/range filtered queries with ordering and limits
    - Collection-group queries across all sub-collections sharing a name
    - Atomic batches with compare-and-swap preconditions
    """

    async def get(self, path: str) -> Document | None:
        """Get a document, or None if absent."""
        ...

    async def set(self, path: str, data: dict[str, Any], *, merge: bool = False) -> None:
        """Create or overwrite a document (deep-merge when ``merge``)."""
        ...

    async def update(
        self,
        path: str,
        fields: dict[str, Any],
        *,
        precondition: dict[str, Any] | None = None,
    ) -> None:
        """Update fields of an existing document.

        Raises:
            NotFoundError: If the document does not exist.
            PreconditionFailedError: If ``precondition`` does not hold.
        """
        ...

    async def delete(self, path: str) -> None:
        """Delete a document. No error if it is already gone."""
        ...

    async def query(
        self,
        collection: str,
        filters: list[Filter] | None = None,
        order_by: list[OrderBy] | None = None,
        limit: int | None = None,
    ) -> list[Document]:
        """Query a single collection."""
        ...

    async def collection_group(
        self,
        collection_id: str,
        filters: list[Filter] | None = None,
        limit: int | None = None,
    ) -> list[Document]:
        """Query every collection named ``collection_id`` at any depth."""
        ...

    def batch(self) -> WriteBatch:
        """Start an atomic write batch."""
        ...


@runtime_checkable
class QueryCache(Protocol):
    """Short-lived cache of read views keyed by tuples."""

    def get(self, key: tuple[str, ...]) -> Any | None:
        """Get a fresh cached value, or None."""
        ...

    def set(self, key: tuple[str, ...], value: Any) -> None:
        """Cache a value."""
        ...

    def invalidate(self, prefix: tuple[str, ...]) -> int:
        """Drop every key starting with ``prefix``. Returns how many were dropped."""
        ...
