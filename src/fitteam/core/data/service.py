"""Reads and writes of a trainee's module data.

Professionals without access get a restricted view: an empty list with
``restricted=True``. The view never says why (not on the team, grant
disabled or module off).
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

import structlog

from fitteam.core import query_keys
from fitteam.core.access.gate import AccessGate
from fitteam.core.access.policy import MODULE_COLLECTIONS, module_for_collection, trainee_path
from fitteam.core.access.types import Identity, ModuleKey
from fitteam.core.exceptions import PermissionDeniedError, ValidationError
from fitteam.core.interfaces import DocumentStore, QueryCache

logger = structlog.get_logger()


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass
class ModuleView:
    """Entries of one module collection as seen by the requester."""

    collection: str
    module: ModuleKey
    entries: list[dict[str, Any]] = field(default_factory=list)
    restricted: bool = False


def _module(collection: str) -> ModuleKey:
    module = module_for_collection(collection)
    if module is None:
        known = ", ".join(sorted(MODULE_COLLECTIONS.values()))
        raise ValidationError(f"Unknown data collection: {collection}. Expected one of {known}.")
    return module


class TraineeDataService:
    """Module data access for one requester."""

    def __init__(
        self,
        store: DocumentStore,
        identity: Identity,
        *,
        gate: AccessGate | None = None,
        cache: QueryCache | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.store = store
        self.identity = identity
        self.gate = gate or AccessGate(store, cache=cache)
        self.cache = cache
        self._clock = clock

    def _is_owner(self, trainee_id: str) -> bool:
        return self.identity.uid == trainee_id

    async def list_entries(self, trainee_id: str, collection: str) -> ModuleView:
        """Entries of a module collection, or a restricted view."""
        module = _module(collection)
        restricted = ModuleView(collection=collection, module=module, restricted=True)

        if not await self.gate.can_access(self.identity, trainee_id, collection, "list"):
            logger.debug("module_view_restricted", trainee_id=trainee_id, module=module.value)
            return restricted

        key = query_keys.module_entries(trainee_id, module)
        if self._is_owner(trainee_id) and self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                return ModuleView(collection=collection, module=module, entries=list(cached))

        try:
            docs = await self.store.query(f"{trainee_path(trainee_id)}/{collection}")
        except PermissionDeniedError:
            # Grant changed between the gate check and the read
            return restricted

        entries = [{"id": doc.id, **doc.data} for doc in docs]
        if self._is_owner(trainee_id) and self.cache is not None:
            self.cache.set(key, entries)
        return ModuleView(collection=collection, module=module, entries=entries)

    async def get_entry(
        self, trainee_id: str, collection: str, doc_id: str
    ) -> dict[str, Any] | None:
        """One entry, or None when absent.

        Raises:
            PermissionDeniedError: If the requester may not read the module.
        """
        _module(collection)
        doc = await self.store.get(f"{trainee_path(trainee_id)}/{collection}/{doc_id}")
        if doc is None:
            return None
        return {"id": doc.id, **doc.data}

    async def put_entry(
        self,
        trainee_id: str,
        collection: str,
        doc_id: str,
        data: dict[str, Any],
    ) -> dict[str, Any]:
        """Create or replace an entry. Only the trainee may write.

        Raises:
            PermissionDeniedError: If the requester is not the owner.
        """
        module = _module(collection)
        payload = {key: value for key, value in data.items() if key != "id"}
        payload["updatedAt"] = self._clock()
        await self.store.set(f"{trainee_path(trainee_id)}/{collection}/{doc_id}", payload)
        self._invalidate(trainee_id, module)
        logger.info("module_entry_saved", trainee_id=trainee_id, module=module.value)
        return {"id": doc_id, **payload}

    async def delete_entry(self, trainee_id: str, collection: str, doc_id: str) -> None:
        """Delete an entry. Only the trainee may delete."""
        module = _module(collection)
        await self.store.delete(f"{trainee_path(trainee_id)}/{collection}/{doc_id}")
        self._invalidate(trainee_id, module)
        logger.info("module_entry_deleted", trainee_id=trainee_id, module=module.value)

    def _invalidate(self, trainee_id: str, module: ModuleKey) -> None:
        if self.cache is not None:
            self.cache.invalidate(query_keys.module_entries(trainee_id, module))
