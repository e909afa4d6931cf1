"""Identity token utilities."""

from fitteam.core.auth.jwt import TokenError, create_identity_token, decode_identity_token

__all__ = [
    "TokenError",
    "create_identity_token",
    "decode_identity_token",
]
