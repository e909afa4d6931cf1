"""Cache keys for read views.

Keys are tuples so a shorter tuple is a prefix that invalidates every
view beneath it (``("trainees", tid)`` drops the whole trainee).
"""

from __future__ import annotations

from fitteam.core.access.policy import MODULE_COLLECTIONS, TRAINEES
from fitteam.core.access.types import ModuleKey

CacheKey = tuple[str, ...]


def trainee(trainee_id: str) -> CacheKey:
    """Everything cached for one trainee."""
    return (TRAINEES, trainee_id)


def team_access(trainee_id: str) -> CacheKey:
    """Trainee's team view (members, grants, invites)."""
    return (TRAINEES, trainee_id, "teamAccess")


def module_entries(trainee_id: str, module: ModuleKey) -> CacheKey:
    """Entries of one module sub-collection."""
    return (TRAINEES, trainee_id, MODULE_COLLECTIONS[module])


def module_access(trainee_id: str, viewer_uid: str) -> CacheKey:
    """Modules ``viewer_uid`` may read on ``trainee_id``."""
    return (TRAINEES, trainee_id, "moduleAccess", viewer_uid)


def pro_clients(professional_uid: str) -> CacheKey:
    """A professional's client roster."""
    return ("professional", professional_uid, "clients")


def incoming_invites(email: str) -> CacheKey:
    """Pending invites targeted at an email."""
    return ("incomingInvites", email.lower())
