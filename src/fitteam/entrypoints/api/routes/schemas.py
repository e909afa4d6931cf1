"""Response models shared by several route modules."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from fitteam.core.access.types import (
    Grant,
    Invite,
    InviteStatus,
    ModulePermissions,
    ProfessionalRole,
)


def modules_response(modules: ModulePermissions) -> dict[str, bool]:
    """Module flags keyed by module name."""
    return modules.to_document()


class GrantResponse(BaseModel):
    """A professional's grant on a trainee."""

    member_uid: str
    role: ProfessionalRole
    active: bool
    modules: dict[str, bool]
    invite_code: str | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_grant(cls, grant: Grant) -> GrantResponse:
        """Build from the domain record."""
        return cls(
            member_uid=grant.member_uid,
            role=grant.role,
            active=grant.active,
            modules=modules_response(grant.modules),
            invite_code=grant.invite_code,
            updated_at=grant.updated_at,
        )


class InviteResponse(BaseModel):
    """An invite as shown to its trainee or its target."""

    code: str
    trainee_id: str
    role: ProfessionalRole
    status: InviteStatus
    target_email: str | None = None
    created_at: datetime
    expires_at: datetime
    accepted_at: datetime | None = None
    accepted_by_uid: str | None = None
    accepted_by_email: str | None = None

    @classmethod
    def from_invite(cls, invite: Invite) -> InviteResponse:
        """Build from the domain record."""
        return cls(
            code=invite.code,
            trainee_id=invite.trainee_id,
            role=invite.role,
            status=invite.status,
            target_email=invite.target_email,
            created_at=invite.created_at,
            expires_at=invite.expires_at,
            accepted_at=invite.accepted_at,
            accepted_by_uid=invite.accepted_by_uid,
            accepted_by_email=invite.accepted_by_email,
        )


class InviteListResponse(BaseModel):
    """Response for listing invites."""

    invites: list[InviteResponse]
    total: int
