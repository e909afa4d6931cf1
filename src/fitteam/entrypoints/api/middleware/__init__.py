"""API middleware."""

from fitteam.entrypoints.api.middleware.jwt_auth import (
    IdentityDep,
    bearer_scheme,
    verify_identity,
)

__all__ = [
    "IdentityDep",
    "bearer_scheme",
    "verify_identity",
]
