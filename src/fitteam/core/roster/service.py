"""Professional-side discovery of clients through their grants."""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from fitteam.core import query_keys
from fitteam.core.access.policy import GRANTS, user_path
from fitteam.core.access.types import (
    ClientGrant,
    ClientRoster,
    Grant,
    ModuleKey,
    RosterSummary,
)
from fitteam.core.documents import Filter
from fitteam.core.interfaces import DocumentStore, QueryCache

logger = structlog.get_logger()

ROSTER_LIMIT = 200


def summarize(clients: Iterable[ClientGrant]) -> RosterSummary:
    """Count active clients and, among them, who shared each module.

    Inactive grants count toward nothing.
    """
    summary = RosterSummary(module_clients={module: 0 for module in ModuleKey})
    for client in clients:
        if not client.active:
            continue
        summary.active_clients += 1
        for module in client.modules.enabled():
            summary.module_clients[module] += 1
    return summary


class RosterService:
    """Client list for a professional."""

    def __init__(
        self,
        store: DocumentStore,
        *,
        limit: int = ROSTER_LIMIT,
        cache: QueryCache | None = None,
    ) -> None:
        self.store = store
        self.limit = limit
        self.cache = cache

    async def list_clients(self, professional_uid: str) -> ClientRoster:
        """Every trainee that holds a grant for ``professional_uid``.

        Results are capped at ``limit``; the trainee id is the parent of
        each grant document.

        Raises:
            PermissionDeniedError: If the caller is not ``professional_uid``.
        """
        # Profile read is rule-checked; the cached roster is not
        await self.store.get(user_path(professional_uid))
        key = query_keys.pro_clients(professional_uid)
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                return cached

        docs = await self.store.collection_group(
            GRANTS,
            filters=[Filter("memberUid", "==", professional_uid)],
            limit=self.limit,
        )
        clients: list[ClientGrant] = []
        for doc in docs:
            trainee_id = doc.parent_id
            if trainee_id is None:
                continue
            grant = Grant.from_document(professional_uid, doc.data)
            clients.append(
                ClientGrant(
                    trainee_id=trainee_id,
                    active=grant.active,
                    role=grant.role,
                    modules=grant.modules,
                )
            )

        roster = ClientRoster(clients=clients, summary=summarize(clients))
        logger.debug(
            "roster_loaded",
            professional_uid=professional_uid,
            clients=len(clients),
            active_clients=roster.summary.active_clients,
        )
        if self.cache is not None:
            self.cache.set(key, roster)
        return roster
