"""Document store adapters."""

from fitteam.adapters.store.memory import MemoryDocumentStore, MemoryWriteBatch
from fitteam.adapters.store.postgres import PostgresDocumentStore, PostgresWriteBatch

__all__ = [
    "MemoryDocumentStore",
    "MemoryWriteBatch",
    "PostgresDocumentStore",
    "PostgresWriteBatch",
]
