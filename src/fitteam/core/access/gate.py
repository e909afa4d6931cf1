"""Application-side access gate.

Answers "may this identity read that module?" ahead of a query so the app
can skip the read and show a restricted view. It evaluates the same
``module_read_allowed`` predicate as the store rules, over documents the
requester is itself allowed to fetch. The rules stay authoritative; a
wrong answer here can only hide data, never expose it.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog

from fitteam.core import query_keys
from fitteam.core.access.policy import (
    grant_path,
    member_path,
    module_for_collection,
    module_read_allowed,
)
from fitteam.core.access.types import Identity, ModuleKey, ModulePermissions
from fitteam.core.exceptions import PermissionDeniedError
from fitteam.core.interfaces import DocumentStore, QueryCache

logger = structlog.get_logger()

READ_OPERATIONS = frozenset({"read", "get", "list"})


class AccessGate:
    """Module visibility for one requester.

    Attributes:
        store: Rule-enforcing store scoped to the requester.
    """

    def __init__(self, store: DocumentStore, *, cache: QueryCache | None = None) -> None:
        self.store = store
        self.cache = cache

    async def module_access(self, requester: Identity | None, trainee_id: str) -> ModulePermissions:
        """Modules ``requester`` may read on ``trainee_id``.

        Owners see everything. Any lookup the requester is not allowed to
        make collapses to "no access".
        """
        if requester is None:
            return ModulePermissions.none()
        if requester.uid == trainee_id:
            return ModulePermissions.only(*ModuleKey)

        key = query_keys.module_access(trainee_id, requester.uid)
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                return cached

        member = await self._fetch(member_path(trainee_id, requester.uid))
        grant = await self._fetch(grant_path(trainee_id, requester.uid))
        access = ModulePermissions(
            {module: module_read_allowed(member, grant, module) for module in ModuleKey}
        )
        if self.cache is not None:
            self.cache.set(key, access)
        return access

    async def can_access(
        self,
        requester: Identity | None,
        trainee_id: str,
        collection: str,
        operation: str = "read",
    ) -> bool:
        """Whether ``requester`` may perform ``operation`` on a trainee sub-collection.

        Owners may do anything with their own data. Everyone else may only
        read module collections they hold an active grant for.
        """
        if requester is None:
            return False
        if requester.uid == trainee_id:
            return True
        if operation not in READ_OPERATIONS:
            return False
        module = module_for_collection(collection)
        if module is None:
            return False
        access = await self.module_access(requester, trainee_id)
        return access[module]

    async def _fetch(self, path: str) -> Mapping[str, Any] | None:
        try:
            doc = await self.store.get(path)
        except PermissionDeniedError:
            logger.debug("access_gate_lookup_denied", path=path)
            return None
        return doc.data if doc else None
