"""Identity token creation and validation.

Tokens stand in for the identity provider: they carry the verified uid,
email and display name of the caller and nothing about roles or grants.
"""

import os
from datetime import UTC, datetime, timedelta

import jwt

from fitteam.core.access.types import Identity


class TokenError(Exception):
    """Raised when token validation fails."""

    pass


# Configuration
SECRET_KEY = os.environ.get("JWT_SECRET_KEY", "dev-secret-change-in-production-environments")
ALGORITHM = "HS256"
ID_TOKEN_EXPIRE_MINUTES = 60


def create_identity_token(
    identity: Identity,
    *,
    secret_key: str = SECRET_KEY,
    expires_minutes: int = ID_TOKEN_EXPIRE_MINUTES,
) -> str:
    """Create a signed identity token.

    Args:
        identity: Verified identity to embed
        secret_key: HMAC signing key
        expires_minutes: Token lifetime

    Returns:
        Encoded JWT string
    """
    now = datetime.now(UTC)
    expire = now + timedelta(minutes=expires_minutes)

    payload = {
        "sub": identity.uid,
        "email": identity.email,
        "name": identity.display_name,
        "exp": int(expire.timestamp()),
        "iat": int(now.timestamp()),
    }

    return jwt.encode(payload, secret_key, algorithm=ALGORITHM)


def decode_identity_token(token: str, *, secret_key: str = SECRET_KEY) -> Identity:
    """Decode and validate an identity token.

    Args:
        token: Encoded JWT string
        secret_key: HMAC signing key

    Returns:
        Identity carried by the token

    Raises:
        TokenError: If token is invalid or expired
    """
    try:
        payload = jwt.decode(token, secret_key, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise TokenError("Token has expired") from None
    except jwt.InvalidTokenError as e:
        raise TokenError(f"Invalid token: {e}") from None

    uid = payload.get("sub")
    if not uid:
        raise TokenError("Token has no subject")
    return Identity(
        uid=uid,
        email=(payload.get("email") or "").lower(),
        display_name=payload.get("name") or "",
    )
