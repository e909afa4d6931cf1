"""Unit tests for domain error to HTTP mapping."""

from __future__ import annotations

import pytest

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
from fitteam.entrypoints.api.errors import to_http_exception


class TestToHttpException:
    """Tests for to_http_exception."""

    @pytest.mark.parametrize(
        ("error", "status_code"),
        [
            (NotFoundError(), 404),
            (InviteInactiveError(), 409),
            (InviteExpiredError(), 410),
            (RoleMismatchError(), 403),
            (EmailMismatchError(), 403),
            (PermissionDeniedError(), 403),
            (ValidationError(), 422),
            (PreconditionFailedError(), 409),
            (FitteamError(), 500),
        ],
    )
    def test_status_codes(self, error: FitteamError, status_code: int) -> None:
        """Each domain error has a fixed status."""
        assert to_http_exception(error).status_code == status_code

    def test_message_kept(self) -> None:
        """The user-facing message becomes the detail."""
        assert to_http_exception(NotFoundError("Invite not found.")).detail == "Invite not found."

    def test_subclass_uses_parent_status(self) -> None:
        """Unknown subclasses map like their nearest known parent."""

        class GrantMissingError(NotFoundError):
            pass

        assert to_http_exception(GrantMissingError()).status_code == 404
