"""Session offers by professionals and trainee enrollments."""

from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Literal

import structlog

from fitteam.core.access.policy import (
    SESSION_ENROLLMENTS,
    SESSIONS,
    enrollment_id,
    enrollment_path,
    session_path,
)
from fitteam.core.access.types import (
    Account,
    Enrollment,
    Identity,
    SessionAudience,
    SessionOffer,
)
from fitteam.core.documents import Filter, OrderBy
from fitteam.core.exceptions import NotFoundError, ValidationError
from fitteam.core.interfaces import DocumentStore

logger = structlog.get_logger()

MIN_TEXT_LENGTH = 3

SessionFilter = Literal["upcoming", "all"]


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _aware(value: datetime) -> datetime:
    # Handle timezone-naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _require_text(value: str, field_name: str) -> str:
    text = (value or "").strip()
    if len(text) < MIN_TEXT_LENGTH:
        raise ValidationError(f"{field_name} must be at least {MIN_TEXT_LENGTH} characters.")
    return text


@dataclass
class SessionDraft:
    """Fields a professional fills in to offer a session."""

    title: str
    description: str
    audience: SessionAudience
    scheduled_at: datetime
    is_default: bool = False


class SessionService:
    """List, create and edit session offers."""

    def __init__(
        self,
        store: DocumentStore,
        identity: Identity,
        *,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.store = store
        self.identity = identity
        self._clock = clock

    async def list(self, filter: SessionFilter = "upcoming") -> list[SessionOffer]:
        """Upcoming sessions soonest first, or every session latest first."""
        if filter == "upcoming":
            docs = await self.store.query(
                SESSIONS,
                filters=[Filter("scheduledAt", ">", self._clock())],
                order_by=[OrderBy("scheduledAt")],
            )
        elif filter == "all":
            docs = await self.store.query(
                SESSIONS, order_by=[OrderBy("scheduledAt", descending=True)]
            )
        else:
            raise ValidationError(f"Unknown session filter: {filter}")
        return [SessionOffer.from_document(doc.id, doc.data) for doc in docs]

    async def get(self, session_id: str) -> SessionOffer:
        """Get one session.

        Raises:
            NotFoundError: If the session does not exist.
        """
        doc = await self.store.get(session_path(session_id))
        if doc is None:
            raise NotFoundError("Session not found.")
        return SessionOffer.from_document(doc.id, doc.data)

    async def create(self, draft: SessionDraft, account: Account) -> SessionOffer:
        """Offer a new session as the calling professional.

        Raises:
            ValidationError: If the draft is malformed or the caller is a trainee.
        """
        role = account.professional_role
        if role is None:
            raise ValidationError("Only professionals can create sessions.")

        session = SessionOffer(
            id=uuid.uuid4().hex,
            title=_require_text(draft.title, "Title"),
            description=_require_text(draft.description, "Description"),
            audience=SessionAudience(draft.audience),
            scheduled_at=_aware(draft.scheduled_at),
            created_by_uid=account.uid,
            created_by_role=role,
            created_by_name=account.display_name or account.email,
            is_default=draft.is_default,
            created_at=self._clock(),
        )
        await self.store.set(session_path(session.id), session.to_document())
        logger.info(
            "session_created",
            session_id=session.id,
            created_by_uid=account.uid,
            audience=session.audience.value,
        )
        return session

    async def update(self, session_id: str, **changes: Any) -> SessionOffer:
        """Edit title, description, audience or schedule of the caller's session.

        Raises:
            NotFoundError: If the session does not exist.
            ValidationError: If a change is malformed or not editable.
        """
        fields: dict[str, Any] = {}
        for name, value in changes.items():
            if value is None:
                continue
            if name == "title":
                fields["title"] = _require_text(value, "Title")
            elif name == "description":
                fields["description"] = _require_text(value, "Description")
            elif name == "audience":
                fields["audience"] = SessionAudience(value).value
            elif name == "scheduled_at":
                fields["scheduledAt"] = _aware(value)
            else:
                raise ValidationError(f"Field cannot be changed: {name}")

        await self.get(session_id)
        if fields:
            await self.store.update(session_path(session_id), fields)
            logger.info("session_updated", session_id=session_id, fields=sorted(fields))
        return await self.get(session_id)

    async def delete(self, session_id: str) -> None:
        """Withdraw the caller's session."""
        await self.store.delete(session_path(session_id))
        logger.info("session_deleted", session_id=session_id)


class EnrollmentService:
    """Trainee enrollment in sessions."""

    def __init__(
        self,
        store: DocumentStore,
        identity: Identity,
        *,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.store = store
        self.identity = identity
        self._clock = clock

    async def enroll(self, session_id: str, trainee_id: str | None = None) -> Enrollment:
        """Enroll a trainee, the caller by default. Enrolling twice is a no-op.

        Raises:
            NotFoundError: If the session does not exist.
        """
        trainee_id = trainee_id or self.identity.uid
        if await self.store.get(session_path(session_id)) is None:
            raise NotFoundError("Session not found.")

        path = enrollment_path(session_id, trainee_id)
        existing = await self.store.get(path)
        if existing is not None:
            return Enrollment.from_document(existing.id, existing.data)

        enrollment = Enrollment(
            id=enrollment_id(session_id, trainee_id),
            session_id=session_id,
            trainee_id=trainee_id,
            created_at=self._clock(),
        )
        await self.store.set(path, enrollment.to_document())
        logger.info("session_enrolled", session_id=session_id, trainee_id=trainee_id)
        return enrollment

    async def cancel(self, session_id: str, trainee_id: str | None = None) -> None:
        """Remove an enrollment. Cancelling twice is a no-op."""
        trainee_id = trainee_id or self.identity.uid
        await self.store.delete(enrollment_path(session_id, trainee_id))
        logger.info("session_enrollment_cancelled", session_id=session_id, trainee_id=trainee_id)

    async def list_by_trainee(self, trainee_id: str | None = None) -> list[Enrollment]:
        """A trainee's enrollments, newest first."""
        docs = await self.store.query(
            SESSION_ENROLLMENTS,
            filters=[Filter("traineeId", "==", trainee_id or self.identity.uid)],
            order_by=[OrderBy("createdAt", descending=True)],
        )
        return [Enrollment.from_document(doc.id, doc.data) for doc in docs]

    async def list_for_session(self, session_id: str) -> list[Enrollment]:
        """Everyone enrolled in a session. Only its creator may ask."""
        docs = await self.store.query(
            SESSION_ENROLLMENTS,
            filters=[Filter("sessionId", "==", session_id)],
            order_by=[OrderBy("createdAt")],
        )
        return [Enrollment.from_document(doc.id, doc.data) for doc in docs]
