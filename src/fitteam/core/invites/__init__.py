"""Invite lifecycle."""

from fitteam.core.invites.codes import (
    build_invite_link,
    generate_invite_code,
    normalize_invite_code,
    validate_trainee_id,
)
from fitteam.core.invites.service import InviteService

__all__ = [
    "InviteService",
    "build_invite_link",
    "generate_invite_code",
    "normalize_invite_code",
    "validate_trainee_id",
]
