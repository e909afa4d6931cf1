"""Domain-specific exceptions.

All exceptions in the fitteam system inherit from FitteamError,
making it easy to catch all system errors while still being able
to handle specific error types.

Every error carries a short message that is safe to show to an end
user. Callers catch at the edge and render ``str(error)``; nothing is
retried automatically.
"""

from __future__ import annotations


class FitteamError(Exception):
    """Base exception for all fitteam errors.

    All custom exceptions in the system should inherit from this class
    to enable catching all fitteam-specific errors with a single except clause.
    """

    default_message = "Something went wrong."

    def __init__(self, message: str | None = None) -> None:
        """Initialize the error.

        Args:
            message: User-facing description. Falls back to the class default.
        """
        super().__init__(message or self.default_message)


class NotFoundError(FitteamError):
    """An invite, grant, team member or other document is absent."""

    default_message = "Not found."


class InviteInactiveError(FitteamError):
    """Invite is not pending.

    Raised when the invite was already accepted or revoked, including the
    case where a concurrent acceptor won the compare-and-swap.
    """

    default_message = "Invite is no longer active."


class InviteExpiredError(FitteamError):
    """Invite is past its expiry, even if its status is still pending."""

    default_message = "Invite has expired."


class RoleMismatchError(FitteamError):
    """Accepting professional's role differs from the invite's role."""

    default_message = "Invite role does not match your account role."


class EmailMismatchError(FitteamError):
    """Invite was targeted at a different email address."""

    default_message = "Invite was sent to a different email address."


class PermissionDeniedError(FitteamError):
    """Authorization layer rejected the operation.

    Deliberately generic: the message never reveals whether the caller is
    not a team member, the grant is disabled, or the module is off.
    """

    default_message = "You do not have permission to perform this action."


class ValidationError(FitteamError):
    """Malformed input to a create/upsert operation."""

    default_message = "Invalid input."


class PreconditionFailedError(FitteamError):
    """A conditional write found the document in an unexpected state.

    Raised by document stores when a compare-and-swap precondition does not
    hold at commit time.
    """

    default_message = "The record changed while you were editing it."
