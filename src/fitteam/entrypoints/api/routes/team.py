"""Trainee team management API routes."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, EmailStr

from fitteam.core.access.types import (
    MemberStatus,
    ModuleKey,
    ProfessionalRole,
    TeamMemberView,
)
from fitteam.core.exceptions import FitteamError
from fitteam.core.grants import GrantService
from fitteam.core.invites import InviteService
from fitteam.entrypoints.api.deps import get_grant_service, get_invite_service
from fitteam.entrypoints.api.errors import to_http_exception
from fitteam.entrypoints.api.routes.schemas import (
    GrantResponse,
    InviteListResponse,
    InviteResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/trainees", tags=["team"])

# Annotated types for dependency injection
GrantServiceDep = Annotated[GrantService, Depends(get_grant_service)]
InviteServiceDep = Annotated[InviteService, Depends(get_invite_service)]


class InviteCreate(BaseModel):
    """Invite creation request."""

    role: ProfessionalRole
    target_email: EmailStr | None = None


class InviteLinkResponse(BaseModel):
    """Created invite."""

    code: str
    link: str
    expires_at: datetime


class ModuleToggle(BaseModel):
    """Module toggle request."""

    enabled: bool


class GrantActiveUpdate(BaseModel):
    """Master switch request."""

    active: bool


class TeamMemberResponse(BaseModel):
    """A team member with their grant."""

    uid: str
    role: ProfessionalRole
    email: str
    display_name: str
    status: MemberStatus
    invited_at: datetime | None = None
    accepted_at: datetime | None = None
    grant: GrantResponse | None = None

    @classmethod
    def from_view(cls, view: TeamMemberView) -> TeamMemberResponse:
        """Build from a member joined with its grant."""
        member = view.member
        return cls(
            uid=member.uid,
            role=member.role,
            email=member.email,
            display_name=member.display_name,
            status=member.status,
            invited_at=member.invited_at,
            accepted_at=member.accepted_at,
            grant=GrantResponse.from_grant(view.grant) if view.grant else None,
        )


class TeamResponse(BaseModel):
    """Response for listing a trainee's team."""

    members: list[TeamMemberResponse]
    total: int


@router.get("/{trainee_id}/team", response_model=TeamResponse)
async def list_team(trainee_id: str, service: GrantServiceDep) -> TeamResponse:
    """List the trainee's care team with each member's grant."""
    try:
        views = await service.list_team(trainee_id)
    except FitteamError as e:
        raise to_http_exception(e) from None
    members = [TeamMemberResponse.from_view(view) for view in views]
    return TeamResponse(members=members, total=len(members))


@router.post(
    "/{trainee_id}/invites",
    response_model=InviteLinkResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_invite(
    trainee_id: str,
    body: InviteCreate,
    service: InviteServiceDep,
) -> InviteLinkResponse:
    """Create an invite for one professional role.

    Only the trainee can invite to their own team.
    """
    try:
        link = await service.create_invite(trainee_id, body.role, body.target_email)
    except FitteamError as e:
        raise to_http_exception(e) from None
    return InviteLinkResponse(code=link.code, link=link.link, expires_at=link.expires_at)


@router.get("/{trainee_id}/invites", response_model=InviteListResponse)
async def list_invites(trainee_id: str, service: InviteServiceDep) -> InviteListResponse:
    """List the trainee's invites, newest first."""
    try:
        invites = await service.list_invites(trainee_id)
    except FitteamError as e:
        raise to_http_exception(e) from None
    return InviteListResponse(
        invites=[InviteResponse.from_invite(invite) for invite in invites],
        total=len(invites),
    )


@router.post("/{trainee_id}/invites/{code}/revoke", response_model=InviteResponse)
async def revoke_invite(trainee_id: str, code: str, service: InviteServiceDep) -> InviteResponse:
    """Withdraw a pending invite."""
    try:
        invite = await service.revoke_invite(trainee_id, code)
    except FitteamError as e:
        raise to_http_exception(e) from None
    return InviteResponse.from_invite(invite)


@router.put("/{trainee_id}/grants/{member_uid}/modules/{module}", response_model=GrantResponse)
async def toggle_module(
    trainee_id: str,
    member_uid: str,
    module: ModuleKey,
    body: ModuleToggle,
    service: GrantServiceDep,
) -> GrantResponse:
    """Share or unshare one module with a professional."""
    try:
        grant = await service.toggle_module(trainee_id, member_uid, module, body.enabled)
    except FitteamError as e:
        raise to_http_exception(e) from None
    return GrantResponse.from_grant(grant)


@router.put("/{trainee_id}/grants/{member_uid}/active", response_model=GrantResponse)
async def set_grant_active(
    trainee_id: str,
    member_uid: str,
    body: GrantActiveUpdate,
    service: GrantServiceDep,
) -> GrantResponse:
    """Pause or resume all access for a professional."""
    try:
        grant = await service.set_grant_active(trainee_id, member_uid, body.active)
    except FitteamError as e:
        raise to_http_exception(e) from None
    return GrantResponse.from_grant(grant)


@router.post("/{trainee_id}/grants/{member_uid}/defaults", response_model=GrantResponse)
async def apply_role_defaults(
    trainee_id: str,
    member_uid: str,
    service: GrantServiceDep,
) -> GrantResponse:
    """Share the suggested modules for the professional's role."""
    try:
        grant = await service.apply_role_defaults(trainee_id, member_uid)
    except FitteamError as e:
        raise to_http_exception(e) from None
    return GrantResponse.from_grant(grant)


@router.delete(
    "/{trainee_id}/team/{member_uid}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def revoke_access(trainee_id: str, member_uid: str, service: GrantServiceDep) -> Response:
    """Remove a professional from the team. Idempotent."""
    try:
        await service.revoke_access(trainee_id, member_uid)
    except FitteamError as e:
        raise to_http_exception(e) from None
    logger.info(f"team_member_removed: trainee_id={trainee_id}, member_uid={member_uid}")
    return Response(status_code=204)
