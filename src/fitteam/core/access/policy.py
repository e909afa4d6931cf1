"""Declarative permission table.

Both enforcement layers read from here: the store rules in
``fitteam.adapters.rules`` and the application gate in
``fitteam.core.access.gate``. Neither re-states these conditions.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from fitteam.core.access.types import (
    MemberStatus,
    ModuleKey,
    ModulePermissions,
    ProfessionalRole,
)

TRAINEES = "trainees"
USERS = "users"
INVITES = "invites"
TEAM_MEMBERS = "teamMembers"
GRANTS = "grants"
SESSIONS = "sessions"
SESSION_ENROLLMENTS = "sessionEnrollments"

# Sub-collection name -> module that exposes it
COLLECTION_MODULES: dict[str, ModuleKey] = {
    "workouts": ModuleKey.WORKOUTS,
    "recovery": ModuleKey.RECOVERY,
    "nutritionDays": ModuleKey.NUTRITION,
    "wellbeingDays": ModuleKey.WELLBEING,
    "progressMeasurements": ModuleKey.PROGRESS,
    "wearablesSummary": ModuleKey.WEARABLES,
}

MODULE_COLLECTIONS: dict[ModuleKey, str] = {
    module: collection for collection, module in COLLECTION_MODULES.items()
}

# Advisory module bundle per professional role
ROLE_MODULES: dict[ProfessionalRole, frozenset[ModuleKey]] = {
    ProfessionalRole.TRAINER: frozenset(
        {ModuleKey.WORKOUTS, ModuleKey.RECOVERY, ModuleKey.PROGRESS}
    ),
    ProfessionalRole.NUTRITIONIST: frozenset({ModuleKey.NUTRITION}),
    ProfessionalRole.COUNSELLOR: frozenset({ModuleKey.WELLBEING}),
}


def module_for_collection(collection: str) -> ModuleKey | None:
    """Get the module guarding a trainee sub-collection, if any."""
    return COLLECTION_MODULES.get(collection)


def default_modules_for_role(role: ProfessionalRole) -> ModulePermissions:
    """Suggested module bundle for a role.

    Not applied on invite acceptance; accepted grants always start with
    every module off.
    """
    return ModulePermissions.only(*ROLE_MODULES[role])


def module_read_allowed(
    member: Mapping[str, Any] | None,
    grant: Mapping[str, Any] | None,
    module: ModuleKey,
) -> bool:
    """Whether a professional may read ``module`` of a trainee.

    Takes the raw teamMembers and grants documents so the store rules and
    the application gate evaluate exactly the same condition.
    """
    if member is None or grant is None:
        return False
    if member.get("status") != MemberStatus.ACTIVE.value:
        return False
    if grant.get("active") is not True:
        return False
    return ModulePermissions(grant.get("modules"))[module]


def trainee_path(trainee_id: str) -> str:
    """trainees/{id}"""
    return f"{TRAINEES}/{trainee_id}"


def invite_path(trainee_id: str, code: str) -> str:
    """trainees/{id}/invites/{code}"""
    return f"{TRAINEES}/{trainee_id}/{INVITES}/{code}"


def member_path(trainee_id: str, member_uid: str) -> str:
    """trainees/{id}/teamMembers/{uid}"""
    return f"{TRAINEES}/{trainee_id}/{TEAM_MEMBERS}/{member_uid}"


def grant_path(trainee_id: str, member_uid: str) -> str:
    """trainees/{id}/grants/{uid}"""
    return f"{TRAINEES}/{trainee_id}/{GRANTS}/{member_uid}"


def user_path(uid: str) -> str:
    """users/{uid}"""
    return f"{USERS}/{uid}"


def session_path(session_id: str) -> str:
    """sessions/{id}"""
    return f"{SESSIONS}/{session_id}"


def enrollment_id(session_id: str, trainee_id: str) -> str:
    """Deterministic enrollment id; encodes ownership for the rules."""
    return f"{session_id}_{trainee_id}"


def enrollment_path(session_id: str, trainee_id: str) -> str:
    """sessionEnrollments/{sessionId}_{traineeId}"""
    return f"{SESSION_ENROLLMENTS}/{enrollment_id(session_id, trainee_id)}"
