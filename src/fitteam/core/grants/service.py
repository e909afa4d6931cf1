"""Trainee-side management of team members and their grants."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

import structlog

from fitteam.core import query_keys
from fitteam.core.access.policy import (
    GRANTS,
    TEAM_MEMBERS,
    default_modules_for_role,
    grant_path,
    member_path,
    trainee_path,
)
from fitteam.core.access.types import Grant, ModuleKey, TeamMember, TeamMemberView
from fitteam.core.exceptions import NotFoundError
from fitteam.core.interfaces import DocumentStore, QueryCache

logger = structlog.get_logger()


def _utc_now() -> datetime:
    return datetime.now(UTC)


class GrantService:
    """Operations a trainee performs on their care team.

    Every write goes through the rule-enforcing store, so only the owning
    trainee can succeed; anyone else gets ``PermissionDeniedError``.
    """

    def __init__(
        self,
        store: DocumentStore,
        *,
        cache: QueryCache | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.store = store
        self.cache = cache
        self._clock = clock

    async def toggle_module(
        self,
        trainee_id: str,
        member_uid: str,
        module: ModuleKey,
        enabled: bool,
    ) -> Grant:
        """Switch one module for a professional.

        Only ``modules.<module>`` is written, so concurrent toggles of other
        modules are preserved. Toggling also re-activates the grant.

        Raises:
            NotFoundError: If the professional has no grant.
        """
        module = ModuleKey(module)
        path = grant_path(trainee_id, member_uid)
        await self.store.update(
            path,
            {
                f"modules.{module.value}": bool(enabled),
                "active": True,
                "updatedAt": self._clock(),
            },
        )
        self._invalidate(trainee_id, member_uid)
        logger.info(
            "grant_module_toggled",
            trainee_id=trainee_id,
            member_uid=member_uid,
            module=module.value,
            enabled=bool(enabled),
        )
        return await self._load_grant(trainee_id, member_uid)

    async def set_grant_active(self, trainee_id: str, member_uid: str, active: bool) -> Grant:
        """Flip the master switch without touching module flags.

        Raises:
            NotFoundError: If the professional has no grant.
        """
        await self.store.update(
            grant_path(trainee_id, member_uid),
            {"active": bool(active), "updatedAt": self._clock()},
        )
        self._invalidate(trainee_id, member_uid)
        logger.info(
            "grant_active_set",
            trainee_id=trainee_id,
            member_uid=member_uid,
            active=bool(active),
        )
        return await self._load_grant(trainee_id, member_uid)

    async def apply_role_defaults(self, trainee_id: str, member_uid: str) -> Grant:
        """Share the suggested module bundle for the member's role.

        An explicit trainee action; acceptance never applies it.

        Raises:
            NotFoundError: If the professional has no grant.
        """
        grant = await self._load_grant(trainee_id, member_uid)
        modules = default_modules_for_role(grant.role)
        await self.store.update(
            grant_path(trainee_id, member_uid),
            {"modules": modules.to_document(), "active": True, "updatedAt": self._clock()},
        )
        self._invalidate(trainee_id, member_uid)
        logger.info(
            "grant_role_defaults_applied",
            trainee_id=trainee_id,
            member_uid=member_uid,
            modules=[m.value for m in modules.enabled()],
        )
        return await self._load_grant(trainee_id, member_uid)

    async def revoke_access(self, trainee_id: str, member_uid: str) -> None:
        """Remove a professional from the team.

        Deletes the member and the grant together. Revoking someone who is
        already gone is a no-op.
        """
        batch = self.store.batch()
        batch.delete(member_path(trainee_id, member_uid))
        batch.delete(grant_path(trainee_id, member_uid))
        await batch.commit()
        self._invalidate(trainee_id, member_uid)
        logger.info("team_member_revoked", trainee_id=trainee_id, member_uid=member_uid)

    async def list_team(self, trainee_id: str) -> list[TeamMemberView]:
        """Team members joined with their grants.

        The cached view is shared by everyone, so the trainee root is read
        through the rules first; only the owner gets past it.

        Raises:
            PermissionDeniedError: If the caller is not the trainee.
        """
        await self.store.get(trainee_path(trainee_id))
        key = query_keys.team_access(trainee_id)
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                return list(cached)

        base = trainee_path(trainee_id)
        member_docs = await self.store.query(f"{base}/{TEAM_MEMBERS}")
        grant_docs = await self.store.query(f"{base}/{GRANTS}")
        grants = {doc.id: Grant.from_document(doc.id, doc.data) for doc in grant_docs}
        views = [
            TeamMemberView(
                member=TeamMember.from_document(doc.id, doc.data),
                grant=grants.get(doc.id),
            )
            for doc in member_docs
        ]
        if self.cache is not None:
            self.cache.set(key, views)
        return views

    async def _load_grant(self, trainee_id: str, member_uid: str) -> Grant:
        doc = await self.store.get(grant_path(trainee_id, member_uid))
        if doc is None:
            raise NotFoundError("Grant not found.")
        return Grant.from_document(member_uid, doc.data)

    def _invalidate(self, trainee_id: str, member_uid: str) -> None:
        if self.cache is None:
            return
        self.cache.invalidate(query_keys.trainee(trainee_id))
        self.cache.invalidate(query_keys.pro_clients(member_uid))
