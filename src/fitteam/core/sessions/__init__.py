"""Session offers and enrollments."""

from fitteam.core.sessions.service import EnrollmentService, SessionDraft, SessionService

__all__ = ["EnrollmentService", "SessionDraft", "SessionService"]
