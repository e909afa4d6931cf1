"""Account profiles and trainee namespaces."""

from __future__ import annotations

import structlog

from fitteam.core.access.policy import trainee_path, user_path
from fitteam.core.access.types import Account, AccountRole, Identity, Trainee
from fitteam.core.exceptions import NotFoundError, ValidationError
from fitteam.core.interfaces import DocumentStore

logger = structlog.get_logger()


class AccountService:
    """Profile setup and lookup for the calling identity."""

    def __init__(self, store: DocumentStore, identity: Identity) -> None:
        self.store = store
        self.identity = identity

    async def create_profile(
        self,
        role: AccountRole,
        display_name: str | None = None,
    ) -> Account:
        """Create the caller's profile, choosing their role.

        Trainees also get their ``trainees/{uid}`` namespace. Calling again
        with the same role is a no-op that returns the existing profile.

        Raises:
            ValidationError: If a profile with a different role exists.
        """
        role = AccountRole(role)
        uid = self.identity.uid
        existing = await self.store.get(user_path(uid))
        if existing is not None:
            account = Account.from_document(existing.data)
            if account.role is not role:
                raise ValidationError("Account role cannot be changed.")
            return account

        account = Account(
            uid=uid,
            email=self.identity.email.lower(),
            role=role,
            display_name=display_name or self.identity.display_name,
        )
        # The profile must exist before the trainee rule can read the role
        await self.store.set(user_path(uid), account.to_document())
        if role is AccountRole.TRAINEE:
            await self.store.set(trainee_path(uid), Trainee(uid=uid, owner_id=uid).to_document())

        logger.info("account_created", uid=uid, role=role.value)
        return account

    async def get_account(self, uid: str | None = None) -> Account:
        """Get a profile, the caller's by default.

        Raises:
            NotFoundError: If no profile exists.
        """
        doc = await self.store.get(user_path(uid or self.identity.uid))
        if doc is None:
            raise NotFoundError("Profile not found.")
        return Account.from_document(doc.data)
