"""Mapping of domain errors to HTTP responses."""

from __future__ import annotations

from fastapi import HTTPException

from fitteam.core.exceptions import (
    EmailMismatchError,
    FitteamError,
    InviteExpiredError,
    InviteInactiveError,
    NotFoundError,
    PermissionDeniedError,
    PreconditionFailedError,
    RoleMismatchError,
    ValidationError,
)

STATUS_CODES: dict[type[FitteamError], int] = {
    NotFoundError: 404,
    InviteInactiveError: 409,
    InviteExpiredError: 410,
    RoleMismatchError: 403,
    EmailMismatchError: 403,
    PermissionDeniedError: 403,
    ValidationError: 422,
    PreconditionFailedError: 409,
}


def to_http_exception(error: FitteamError) -> HTTPException:
    """Build the HTTPException for a domain error, keeping its message."""
    for error_type in type(error).__mro__:
        if error_type in STATUS_CODES:
            return HTTPException(status_code=STATUS_CODES[error_type], detail=str(error))
    return HTTPException(status_code=500, detail=str(error))
