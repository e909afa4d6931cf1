"""Unit tests for identity tokens."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import jwt
import pytest

from fitteam.core.access.types import Identity
from fitteam.core.auth.jwt import (
    ALGORITHM,
    SECRET_KEY,
    TokenError,
    create_identity_token,
    decode_identity_token,
)

SECRET = "test-secret-key-long-enough-for-hs256"


class TestIdentityTokens:
    """Tests for token creation and validation."""

    def test_round_trip(self) -> None:
        """A token decodes to the identity it was made for, email lower-cased."""
        identity = Identity(uid="u1", email="Coach@Example.com", display_name="Cole")

        token = create_identity_token(identity, secret_key=SECRET)
        decoded = decode_identity_token(token, secret_key=SECRET)

        assert decoded == Identity(uid="u1", email="coach@example.com", display_name="Cole")

    def test_default_key(self) -> None:
        """Without an explicit key, tokens are signed with the configured secret."""
        token = create_identity_token(Identity(uid="u1", email="a@b.com"))

        assert decode_identity_token(token, secret_key=SECRET_KEY).uid == "u1"
        with pytest.raises(TokenError):
            decode_identity_token(token, secret_key=SECRET)

    def test_wrong_secret(self) -> None:
        """Tokens signed with another key are rejected."""
        token = create_identity_token(Identity(uid="u1", email="a@b.com"), secret_key=SECRET)
        with pytest.raises(TokenError, match="Invalid token"):
            decode_identity_token(token, secret_key="another-secret-key-of-enough-length")

    def test_expired(self) -> None:
        """Expired tokens are rejected."""
        token = create_identity_token(
            Identity(uid="u1", email="a@b.com"), secret_key=SECRET, expires_minutes=-1
        )
        with pytest.raises(TokenError, match="expired"):
            decode_identity_token(token, secret_key=SECRET)

    def test_missing_subject(self) -> None:
        """A token must name its subject."""
        exp = int((datetime.now(UTC) + timedelta(minutes=5)).timestamp())
        token = jwt.encode({"email": "a@b.com", "exp": exp}, SECRET, algorithm=ALGORITHM)
        with pytest.raises(TokenError, match="subject"):
            decode_identity_token(token, secret_key=SECRET)

    def test_garbage(self) -> None:
        """Malformed tokens are rejected."""
        with pytest.raises(TokenError):
            decode_identity_token("not-a-token", secret_key=SECRET)
