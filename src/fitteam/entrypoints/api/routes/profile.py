"""Profile API routes."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from fitteam.core.access.types import Account, AccountRole
from fitteam.core.accounts import AccountService
from fitteam.core.exceptions import FitteamError
from fitteam.entrypoints.api.deps import get_account_service
from fitteam.entrypoints.api.errors import to_http_exception

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/me", tags=["profile"])

AccountServiceDep = Annotated[AccountService, Depends(get_account_service)]


class ProfileCreate(BaseModel):
    """Profile creation request."""

    role: AccountRole
    display_name: str | None = Field(default=None, max_length=120)


class ProfileResponse(BaseModel):
    """Profile response."""

    uid: str
    email: str
    role: AccountRole
    display_name: str
    plan: str

    @classmethod
    def from_account(cls, account: Account) -> ProfileResponse:
        """Build from the domain record."""
        return cls(
            uid=account.uid,
            email=account.email,
            role=account.role,
            display_name=account.display_name,
            plan=account.plan,
        )


@router.post("/profile", response_model=ProfileResponse, status_code=status.HTTP_201_CREATED)
async def create_profile(body: ProfileCreate, service: AccountServiceDep) -> ProfileResponse:
    """Create the caller's profile.

    The role chosen here cannot be changed later.
    """
    try:
        account = await service.create_profile(body.role, body.display_name)
    except FitteamError as e:
        raise to_http_exception(e) from None
    return ProfileResponse.from_account(account)


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(service: AccountServiceDep) -> ProfileResponse:
    """Get the caller's profile."""
    try:
        account = await service.get_account()
    except FitteamError as e:
        raise to_http_exception(e) from None
    return ProfileResponse.from_account(account)
