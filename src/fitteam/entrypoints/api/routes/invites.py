"""Professional-side invite API routes."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from fitteam.core.accounts import AccountService
from fitteam.core.exceptions import FitteamError
from fitteam.core.invites import InviteService
from fitteam.entrypoints.api.deps import get_account_service, get_invite_service
from fitteam.entrypoints.api.errors import to_http_exception
from fitteam.entrypoints.api.routes.schemas import (
    GrantResponse,
    InviteListResponse,
    InviteResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/invites", tags=["invites"])

AccountServiceDep = Annotated[AccountService, Depends(get_account_service)]
InviteServiceDep = Annotated[InviteService, Depends(get_invite_service)]


class InviteAccept(BaseModel):
    """Invite acceptance request, as carried by the invite link."""

    trainee_id: str = Field(min_length=1, max_length=200)
    code: str = Field(min_length=1, max_length=64)


class AcceptedInviteResponse(BaseModel):
    """Result of accepting an invite."""

    trainee_id: str
    invite: InviteResponse
    grant: GrantResponse


@router.post("/accept", response_model=AcceptedInviteResponse)
async def accept_invite(
    body: InviteAccept,
    accounts: AccountServiceDep,
    service: InviteServiceDep,
) -> AcceptedInviteResponse:
    """Accept an invite and join the trainee's team.

    The new grant starts with every module off; the trainee decides what
    to share afterwards.
    """
    try:
        account = await accounts.get_account()
        accepted = await service.accept_invite(body.trainee_id, body.code, account)
    except FitteamError as e:
        logger.info(f"invite_accept_failed: trainee_id={body.trainee_id}, error={e}")
        raise to_http_exception(e) from None
    return AcceptedInviteResponse(
        trainee_id=accepted.trainee_id,
        invite=InviteResponse.from_invite(accepted.invite),
        grant=GrantResponse.from_grant(accepted.grant),
    )


@router.get("/incoming", response_model=InviteListResponse)
async def list_incoming(service: InviteServiceDep) -> InviteListResponse:
    """Pending invites addressed to the caller's email."""
    try:
        invites = await service.list_incoming()
    except FitteamError as e:
        raise to_http_exception(e) from None
    return InviteListResponse(
        invites=[InviteResponse.from_invite(invite) for invite in invites],
        total=len(invites),
    )
