"""Invite lifecycle: create, accept, revoke and list invites.

Acceptance is the only path by which a professional joins a trainee's
team. It is committed as a single batch whose invite update is a
compare-and-swap on ``status == pending``, so two professionals racing on
one code cannot both win and a failure never leaves a half-joined member.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

import structlog

from fitteam.core import query_keys
from fitteam.core.access.policy import (
    INVITES,
    grant_path,
    invite_path,
    member_path,
    trainee_path,
)
from fitteam.core.access.types import (
    AcceptedInvite,
    Account,
    Grant,
    Identity,
    Invite,
    InviteLink,
    InviteStatus,
    MemberStatus,
    ModulePermissions,
    ProfessionalRole,
    TeamMember,
)
from fitteam.core.documents import Filter, OrderBy
from fitteam.core.exceptions import (
    EmailMismatchError,
    InviteExpiredError,
    InviteInactiveError,
    NotFoundError,
    PermissionDeniedError,
    PreconditionFailedError,
    RoleMismatchError,
    ValidationError,
)
from fitteam.core.interfaces import DocumentStore, QueryCache
from fitteam.core.invites.codes import (
    INVITE_TTL_DAYS,
    build_invite_link,
    generate_invite_code,
    get_invite_expiry,
    is_invite_expired,
    normalize_invite_code,
    validate_trainee_id,
)

logger = structlog.get_logger()


def _utc_now() -> datetime:
    return datetime.now(UTC)


class InviteService:
    """Invite operations performed on behalf of one identity.

    The store handed in is expected to enforce access rules for that
    identity; this service checks the user-facing conditions and turns
    them into specific errors before any write is attempted.
    """

    def __init__(
        self,
        store: DocumentStore,
        identity: Identity,
        *,
        base_url: str,
        ttl_days: int = INVITE_TTL_DAYS,
        cache: QueryCache | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        """Initialize the invite service.

        Args:
            store: Document store scoped to ``identity``.
            identity: Caller.
            base_url: Origin used for invite deep links.
            ttl_days: Days until a new invite expires.
            cache: Optional read-view cache to invalidate on changes.
            clock: Source of the current time.
        """
        self.store = store
        self.identity = identity
        self.base_url = base_url
        self.ttl_days = ttl_days
        self.cache = cache
        self._clock = clock

    async def create_invite(
        self,
        trainee_id: str,
        role: ProfessionalRole,
        target_email: str | None = None,
    ) -> InviteLink:
        """Create a pending invite for one professional role.

        Args:
            trainee_id: Trainee issuing the invite.
            role: Role the accepting professional must hold.
            target_email: Optionally restrict acceptance to one email.

        Returns:
            Code, shareable link and expiry.
        """
        trainee_id = validate_trainee_id(trainee_id)
        now = self._clock()
        code = generate_invite_code()
        invite = Invite(
            code=code,
            trainee_id=trainee_id,
            role=ProfessionalRole(role),
            created_by=self.identity.uid,
            created_at=now,
            expires_at=get_invite_expiry(now, self.ttl_days),
            target_email=target_email.strip().lower() if target_email else None,
        )
        await self.store.set(invite_path(trainee_id, code), invite.to_document())

        self._invalidate(query_keys.team_access(trainee_id))
        if invite.target_email:
            self._invalidate(query_keys.incoming_invites(invite.target_email))

        logger.info(
            "invite_created",
            trainee_id=trainee_id,
            role=invite.role.value,
            targeted=invite.target_email is not None,
        )
        return InviteLink(
            code=code,
            link=build_invite_link(self.base_url, trainee_id, code),
            expires_at=invite.expires_at,
        )

    async def accept_invite(self, trainee_id: str, code: str, account: Account) -> AcceptedInvite:
        """Accept an invite and join the trainee's team.

        Args:
            trainee_id: Trainee that issued the invite.
            code: Invite code as typed or pasted.
            account: Accepting professional's account.

        Returns:
            The accepted invite with the created member and grant.

        Raises:
            ValidationError: If the code, trainee id or account role is malformed.
            NotFoundError: If no such invite exists.
            InviteInactiveError: If the invite is not pending.
            RoleMismatchError: If the invite is for another role.
            InviteExpiredError: If the invite has expired.
            EmailMismatchError: If the invite targets another email.
        """
        code = normalize_invite_code(code)
        trainee_id = validate_trainee_id(trainee_id)
        role = account.professional_role
        if role is None:
            raise ValidationError("Only professional accounts can accept invites.")

        path = invite_path(trainee_id, code)
        doc = await self.store.get(path)
        if doc is None:
            raise NotFoundError("Invite not found.")
        invite = Invite.from_document(code, doc.data)

        now = self._clock()
        self._check_acceptable(invite, role, account.email, now)

        email = account.email.lower()
        member = TeamMember(
            uid=account.uid,
            role=role,
            email=email,
            display_name=account.display_name,
            status=MemberStatus.ACTIVE,
            invite_code=code,
            invited_at=invite.created_at,
            accepted_at=now,
            updated_at=now,
        )
        grant = Grant(
            member_uid=account.uid,
            role=role,
            active=True,
            modules=ModulePermissions.none(),
            invite_code=code,
            created_at=now,
            updated_at=now,
        )

        batch = self.store.batch()
        batch.update(
            path,
            {
                "status": InviteStatus.ACCEPTED.value,
                "acceptedAt": now,
                "acceptedByUid": account.uid,
                "acceptedByEmail": email,
                "updatedAt": now,
            },
            precondition={"status": InviteStatus.PENDING.value},
        )
        batch.set(member_path(trainee_id, account.uid), member.to_document())
        batch.set(grant_path(trainee_id, account.uid), grant.to_document())
        try:
            await batch.commit()
        except PreconditionFailedError:
            logger.info("invite_accept_lost_race", trainee_id=trainee_id, uid=account.uid)
            raise InviteInactiveError() from None
        except PermissionDeniedError:
            # A concurrent acceptor may have committed between our read and the rule check
            if await self._no_longer_pending(path):
                raise InviteInactiveError() from None
            raise

        invite.status = InviteStatus.ACCEPTED
        invite.accepted_at = now
        invite.accepted_by_uid = account.uid
        invite.accepted_by_email = email
        invite.updated_at = now

        self._invalidate(query_keys.team_access(trainee_id))
        self._invalidate(query_keys.pro_clients(account.uid))
        self._invalidate(query_keys.incoming_invites(email))

        logger.info(
            "invite_accepted",
            trainee_id=trainee_id,
            uid=account.uid,
            role=role.value,
        )
        return AcceptedInvite(trainee_id=trainee_id, invite=invite, member=member, grant=grant)

    def _check_acceptable(
        self,
        invite: Invite,
        role: ProfessionalRole,
        email: str,
        now: datetime,
    ) -> None:
        """Raise the first failing acceptance condition, in a fixed order."""
        if invite.status is not InviteStatus.PENDING:
            raise InviteInactiveError("Invite is no longer active.")
        if invite.role is not role:
            raise RoleMismatchError("Invite role does not match your account role.")
        if is_invite_expired(invite.expires_at, now):
            raise InviteExpiredError("Invite has expired.")
        if invite.target_email and invite.target_email.lower() != email.lower():
            raise EmailMismatchError("This invite was sent to a different email address.")

    async def _no_longer_pending(self, path: str) -> bool:
        try:
            doc = await self.store.get(path)
        except PermissionDeniedError:
            return False
        return doc is None or doc.data.get("status") != InviteStatus.PENDING.value

    async def revoke_invite(self, trainee_id: str, code: str) -> Invite:
        """Withdraw a pending invite.

        Raises:
            NotFoundError: If no such invite exists.
            InviteInactiveError: If the invite is no longer pending.
        """
        code = normalize_invite_code(code)
        path = invite_path(trainee_id, code)
        doc = await self.store.get(path)
        if doc is None:
            raise NotFoundError("Invite not found.")
        invite = Invite.from_document(code, doc.data)
        if invite.status is not InviteStatus.PENDING:
            raise InviteInactiveError("Invite is no longer active.")

        now = self._clock()
        try:
            await self.store.update(
                path,
                {"status": InviteStatus.REVOKED.value, "updatedAt": now},
                precondition={"status": InviteStatus.PENDING.value},
            )
        except PreconditionFailedError:
            raise InviteInactiveError() from None

        invite.status = InviteStatus.REVOKED
        invite.updated_at = now
        self._invalidate(query_keys.team_access(trainee_id))
        if invite.target_email:
            self._invalidate(query_keys.incoming_invites(invite.target_email))

        logger.info("invite_revoked", trainee_id=trainee_id, code=code)
        return invite

    async def list_invites(self, trainee_id: str) -> list[Invite]:
        """All invites a trainee has issued, newest first."""
        docs = await self.store.query(
            f"{trainee_path(trainee_id)}/{INVITES}",
            order_by=[OrderBy("createdAt", descending=True)],
        )
        return [Invite.from_document(doc.id, doc.data) for doc in docs]

    async def list_incoming(self) -> list[Invite]:
        """Pending invites addressed to the caller's email, across trainees."""
        email = (self.identity.email or "").lower()
        if not email:
            return []

        key = query_keys.incoming_invites(email)
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                return list(cached)

        docs = await self.store.collection_group(
            INVITES,
            filters=[
                Filter("targetEmail", "==", email),
                Filter("status", "==", InviteStatus.PENDING.value),
            ],
        )
        invites = [Invite.from_document(doc.id, doc.data) for doc in docs]
        if self.cache is not None:
            self.cache.set(key, invites)
        return invites

    def _invalidate(self, prefix: tuple[str, ...]) -> None:
        if self.cache is not None:
            self.cache.invalidate(prefix)
