"""Permission model and access gate."""

from fitteam.core.access.gate import AccessGate
from fitteam.core.access.policy import (
    COLLECTION_MODULES,
    ROLE_MODULES,
    default_modules_for_role,
    module_for_collection,
    module_read_allowed,
)
from fitteam.core.access.types import (
    Account,
    AccountRole,
    Grant,
    Identity,
    Invite,
    InviteStatus,
    MemberStatus,
    ModuleKey,
    ModulePermissions,
    ProfessionalRole,
    TeamMember,
)

__all__ = [
    "AccessGate",
    "Account",
    "AccountRole",
    "COLLECTION_MODULES",
    "Grant",
    "Identity",
    "Invite",
    "InviteStatus",
    "MemberStatus",
    "ModuleKey",
    "ModulePermissions",
    "ProfessionalRole",
    "ROLE_MODULES",
    "TeamMember",
    "default_modules_for_role",
    "module_for_collection",
    "module_read_allowed",
]
