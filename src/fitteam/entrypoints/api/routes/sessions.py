"""Session and enrollment API routes."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, Field

from fitteam.core.access.types import (
    Enrollment,
    ProfessionalRole,
    SessionAudience,
    SessionOffer,
)
from fitteam.core.accounts import AccountService
from fitteam.core.exceptions import FitteamError
from fitteam.core.sessions import EnrollmentService, SessionDraft, SessionService
from fitteam.entrypoints.api.deps import (
    get_account_service,
    get_enrollment_service,
    get_session_service,
)
from fitteam.entrypoints.api.errors import to_http_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["sessions"])

AccountServiceDep = Annotated[AccountService, Depends(get_account_service)]
SessionServiceDep = Annotated[SessionService, Depends(get_session_service)]
EnrollmentServiceDep = Annotated[EnrollmentService, Depends(get_enrollment_service)]


class SessionCreate(BaseModel):
    """Session creation request."""

    title: str = Field(min_length=3)
    description: str = Field(min_length=3)
    audience: SessionAudience
    scheduled_at: datetime
    is_default: bool = False


class SessionUpdate(BaseModel):
    """Session update request. Omitted fields are unchanged."""

    title: str | None = Field(default=None, min_length=3)
    description: str | None = Field(default=None, min_length=3)
    audience: SessionAudience | None = None
    scheduled_at: datetime | None = None


class SessionResponse(BaseModel):
    """A session offer."""

    id: str
    title: str
    description: str
    audience: SessionAudience
    scheduled_at: datetime
    created_by_uid: str
    created_by_role: ProfessionalRole
    created_by_name: str
    is_default: bool

    @classmethod
    def from_session(cls, session: SessionOffer) -> SessionResponse:
        """Build from the domain record."""
        return cls(
            id=session.id,
            title=session.title,
            description=session.description,
            audience=session.audience,
            scheduled_at=session.scheduled_at,
            created_by_uid=session.created_by_uid,
            created_by_role=session.created_by_role,
            created_by_name=session.created_by_name,
            is_default=session.is_default,
        )


class EnrollmentResponse(BaseModel):
    """A trainee's enrollment."""

    id: str
    session_id: str
    trainee_id: str
    created_at: datetime | None = None

    @classmethod
    def from_enrollment(cls, enrollment: Enrollment) -> EnrollmentResponse:
        """Build from the domain record."""
        return cls(
            id=enrollment.id,
            session_id=enrollment.session_id,
            trainee_id=enrollment.trainee_id,
            created_at=enrollment.created_at,
        )


@router.get("/sessions", response_model=list[SessionResponse])
async def list_sessions(
    service: SessionServiceDep,
    filter: Annotated[Literal["upcoming", "all"], Query()] = "upcoming",
) -> list[SessionResponse]:
    """List upcoming sessions, or all of them."""
    try:
        sessions = await service.list(filter)
    except FitteamError as e:
        raise to_http_exception(e) from None
    return [SessionResponse.from_session(session) for session in sessions]


@router.post("/sessions", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def create_session(
    body: SessionCreate,
    accounts: AccountServiceDep,
    service: SessionServiceDep,
) -> SessionResponse:
    """Offer a session. Professionals only."""
    draft = SessionDraft(
        title=body.title,
        description=body.description,
        audience=body.audience,
        scheduled_at=body.scheduled_at,
        is_default=body.is_default,
    )
    try:
        account = await accounts.get_account()
        session = await service.create(draft, account)
    except FitteamError as e:
        raise to_http_exception(e) from None
    return SessionResponse.from_session(session)


@router.patch("/sessions/{session_id}", response_model=SessionResponse)
async def update_session(
    session_id: str,
    body: SessionUpdate,
    service: SessionServiceDep,
) -> SessionResponse:
    """Edit one of the caller's sessions."""
    try:
        session = await service.update(session_id, **body.model_dump(exclude_none=True))
    except FitteamError as e:
        raise to_http_exception(e) from None
    return SessionResponse.from_session(session)


@router.delete(
    "/sessions/{session_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def delete_session(session_id: str, service: SessionServiceDep) -> Response:
    """Withdraw one of the caller's sessions."""
    try:
        await service.delete(session_id)
    except FitteamError as e:
        raise to_http_exception(e) from None
    return Response(status_code=204)


@router.get("/sessions/{session_id}/enrollments", response_model=list[EnrollmentResponse])
async def list_session_enrollments(
    session_id: str,
    service: EnrollmentServiceDep,
) -> list[EnrollmentResponse]:
    """Enrollments in a session. Only its creator may list them."""
    try:
        enrollments = await service.list_for_session(session_id)
    except FitteamError as e:
        raise to_http_exception(e) from None
    return [EnrollmentResponse.from_enrollment(e) for e in enrollments]


@router.put("/sessions/{session_id}/enrollment", response_model=EnrollmentResponse)
async def enroll(session_id: str, service: EnrollmentServiceDep) -> EnrollmentResponse:
    """Enroll the caller in a session. Idempotent."""
    try:
        enrollment = await service.enroll(session_id)
    except FitteamError as e:
        raise to_http_exception(e) from None
    return EnrollmentResponse.from_enrollment(enrollment)


@router.delete(
    "/sessions/{session_id}/enrollment",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def cancel_enrollment(session_id: str, service: EnrollmentServiceDep) -> Response:
    """Cancel the caller's enrollment. Idempotent."""
    try:
        await service.cancel(session_id)
    except FitteamError as e:
        raise to_http_exception(e) from None
    return Response(status_code=204)


@router.get("/enrollments", response_model=list[EnrollmentResponse])
async def list_my_enrollments(service: EnrollmentServiceDep) -> list[EnrollmentResponse]:
    """The caller's enrollments, newest first."""
    try:
        enrollments = await service.list_by_trainee()
    except FitteamError as e:
        raise to_http_exception(e) from None
    return [EnrollmentResponse.from_enrollment(e) for e in enrollments]
