"""Core domain - team access model with no infrastructure dependencies."""

from .access.types import (
    Account,
    AccountRole,
    Grant,
    Identity,
    Invite,
    ModuleKey,
    ModulePermissions,
    ProfessionalRole,
    TeamMember,
)
from .exceptions import (
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
from .interfaces import DocumentStore, QueryCache, WriteBatch

__all__ = [
    # Domain types
    "Account",
    "AccountRole",
    "Grant",
    "Identity",
    "Invite",
    "ModuleKey",
    "ModulePermissions",
    "ProfessionalRole",
    "TeamMember",
    # Exceptions
    "FitteamError",
    "NotFoundError",
    "InviteInactiveError",
    "InviteExpiredError",
    "RoleMismatchError",
    "EmailMismatchError",
    "PermissionDeniedError",
    "ValidationError",
    "PreconditionFailedError",
    # Interfaces
    "DocumentStore",
    "QueryCache",
    "WriteBatch",
]
