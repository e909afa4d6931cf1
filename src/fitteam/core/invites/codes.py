"""Invite code generation, validation and deep links."""

import re
import secrets
import string
from datetime import UTC, datetime, timedelta
from urllib.parse import urlencode

from fitteam.core.exceptions import ValidationError

# Code configuration
CODE_LENGTH = 8
CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_MIN_LENGTH = 6
CODE_MAX_LENGTH = 12
INVITE_TTL_DAYS = 7

TRAINEE_ID_MIN_LENGTH = 3
TRAINEE_ID_MAX_LENGTH = 120

_CODE_RE = re.compile(r"^[A-Z0-9]+$")


def generate_invite_code(length: int = CODE_LENGTH) -> str:
    """Generate a cryptographically random invite code.

    Returns:
        Uppercase alphanumeric code.
    """
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def normalize_invite_code(code: str) -> str:
    """Strip and upper-case a code typed or pasted by a user.

    Raises:
        ValidationError: If the result is not 6-12 uppercase alphanumerics.
    """
    normalized = (code or "").strip().upper()
    if not CODE_MIN_LENGTH <= len(normalized) <= CODE_MAX_LENGTH:
        raise ValidationError("Invite code must be 6-12 characters.")
    if not _CODE_RE.match(normalized):
        raise ValidationError("Invite code may only contain letters and digits.")
    return normalized


def validate_trainee_id(trainee_id: str) -> str:
    """Strip and length-check a trainee id.

    Raises:
        ValidationError: If the id is outside 3-120 characters.
    """
    value = (trainee_id or "").strip()
    if not TRAINEE_ID_MIN_LENGTH <= len(value) <= TRAINEE_ID_MAX_LENGTH:
        raise ValidationError("Trainee id must be 3-120 characters.")
    return value


def build_invite_link(base_url: str, trainee_id: str, code: str) -> str:
    """Deep link a professional opens to accept an invite."""
    query = urlencode({"traineeId": trainee_id, "code": code})
    return f"{base_url.rstrip('/')}/app/invite?{query}"


def get_invite_expiry(created_at: datetime, days: int = INVITE_TTL_DAYS) -> datetime:
    """Calculate when an invite created at ``created_at`` expires."""
    return created_at + timedelta(days=days)


def is_invite_expired(expires_at: datetime, now: datetime | None = None) -> bool:
    """Check if an invite has expired.

    Args:
        expires_at: The invite's expiry timestamp.
        now: Reference time, defaults to the current UTC time.

    Returns:
        True once ``now`` reaches ``expires_at``.
    """
    now = now or datetime.now(UTC)
    # Handle timezone-naive datetimes
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=UTC)
    return expires_at <= now
