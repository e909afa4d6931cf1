"""Team access domain types.

Records are plain dataclasses. Each one knows how to read itself from, and
write itself to, the camelCase document shape persisted in the store.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class ProfessionalRole(str, Enum):
    """Roles that can join a trainee's care team."""

    TRAINER = "trainer"
    NUTRITIONIST = "nutritionist"
    COUNSELLOR = "counsellor"


class AccountRole(str, Enum):
    """Role chosen at account setup. Immutable afterwards."""

    TRAINEE = "trainee"
    TRAINER = "trainer"
    NUTRITIONIST = "nutritionist"
    COUNSELLOR = "counsellor"

    @property
    def is_professional(self) -> bool:
        """Whether this account role is a professional role."""
        return self is not AccountRole.TRAINEE

    def as_professional(self) -> ProfessionalRole | None:
        """Get the matching professional role, if any."""
        if self is AccountRole.TRAINEE:
            return None
        return ProfessionalRole(self.value)


class ModuleKey(str, Enum):
    """Independently shareable categories of trainee data."""

    WORKOUTS = "workouts"
    RECOVERY = "recovery"
    NUTRITION = "nutrition"
    WELLBEING = "wellbeing"
    PROGRESS = "progress"
    WEARABLES = "wearables"


class InviteStatus(str, Enum):
    """Invite lifecycle states."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REVOKED = "revoked"


class MemberStatus(str, Enum):
    """Team member states."""

    ACTIVE = "active"
    REVOKED = "revoked"


class ModulePermissions(Mapping[ModuleKey, bool]):
    """Total mapping from every module to a boolean.

    Missing keys are filled with False on construction, so lookups never
    fail once a value has been normalized.
    """

    __slots__ = ("_flags",)

    def __init__(self, flags: Mapping[Any, Any] | None = None) -> None:
        raw = dict(flags or {})
        self._flags: dict[ModuleKey, bool] = {
            module: bool(raw.get(module, raw.get(module.value, False))) for module in ModuleKey
        }

    @classmethod
    def none(cls) -> ModulePermissions:
        """All modules off."""
        return cls()

    @classmethod
    def only(cls, *modules: ModuleKey) -> ModulePermissions:
        """Only the given modules on."""
        return cls({module: True for module in modules})

    def __getitem__(self, key: ModuleKey) -> bool:
        return self._flags[ModuleKey(key)]

    def __iter__(self) -> Iterator[ModuleKey]:
        return iter(self._flags)

    def __len__(self) -> int:
        return len(self._flags)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ModulePermissions):
            return self._flags == other._flags
        return NotImplemented

    def __hash__(self) -> int:
        return hash(tuple(sorted((k.value, v) for k, v in self._flags.items())))

    def __repr__(self) -> str:
        enabled = ", ".join(m.value for m, on in self._flags.items() if on)
        return f"ModulePermissions({enabled or 'none'})"

    def enabled(self) -> list[ModuleKey]:
        """Modules switched on, in declaration order."""
        return [module for module, on in self._flags.items() if on]

    def to_document(self) -> dict[str, bool]:
        """Persisted shape."""
        return {module.value: on for module, on in self._flags.items()}


@dataclass(frozen=True)
class Identity:
    """Verified identity supplied by the identity provider."""

    uid: str
    email: str
    display_name: str = ""


@dataclass
class Account:
    """A user's profile document."""

    uid: str
    email: str
    role: AccountRole
    display_name: str = ""
    plan: str = "free"

    @property
    def professional_role(self) -> ProfessionalRole | None:
        """Professional role, or None for trainees."""
        return self.role.as_professional()

    @classmethod
    def from_document(cls, data: Mapping[str, Any]) -> Account:
        """Build from a users/{uid} document."""
        return cls(
            uid=data["uid"],
            email=data.get("email", ""),
            role=AccountRole(data["role"]),
            display_name=data.get("displayName", ""),
            plan=data.get("plan", "free"),
        )

    def to_document(self) -> dict[str, Any]:
        """Persisted shape."""
        return {
            "uid": self.uid,
            "email": self.email,
            "displayName": self.display_name,
            "role": self.role.value,
            "plan": self.plan,
        }


@dataclass
class Trainee:
    """Root document of a trainee's data namespace."""

    uid: str
    owner_id: str

    def to_document(self) -> dict[str, Any]:
        """Persisted shape."""
        return {"uid": self.uid, "ownerId": self.owner_id}


@dataclass
class Invite:
    """A time-boxed, role-scoped, single-use invite."""

    code: str
    trainee_id: str
    role: ProfessionalRole
    created_by: str
    created_at: datetime
    expires_at: datetime
    status: InviteStatus = InviteStatus.PENDING
    target_email: str | None = None
    accepted_at: datetime | None = None
    accepted_by_uid: str | None = None
    accepted_by_email: str | None = None
    updated_at: datetime | None = None

    def is_expired(self, now: datetime) -> bool:
        """Expired once ``now`` reaches ``expires_at``."""
        return self.expires_at <= now

    @classmethod
    def from_document(cls, code: str, data: Mapping[str, Any]) -> Invite:
        """Build from a trainees/{id}/invites/{code} document."""
        return cls(
            code=data.get("code", code),
            trainee_id=data["traineeId"],
            role=ProfessionalRole(data["role"]),
            created_by=data.get("createdBy", ""),
            created_at=data["createdAt"],
            expires_at=data["expiresAt"],
            status=InviteStatus(data.get("status", InviteStatus.PENDING.value)),
            target_email=data.get("targetEmail"),
            accepted_at=data.get("acceptedAt"),
            accepted_by_uid=data.get("acceptedByUid"),
            accepted_by_email=data.get("acceptedByEmail"),
            updated_at=data.get("updatedAt"),
        )

    def to_document(self) -> dict[str, Any]:
        """Persisted shape."""
        return {
            "code": self.code,
            "traineeId": self.trainee_id,
            "role": self.role.value,
            "createdBy": self.created_by,
            "status": self.status.value,
            "targetEmail": self.target_email,
            "createdAt": self.created_at,
            "expiresAt": self.expires_at,
            "acceptedAt": self.accepted_at,
            "acceptedByUid": self.accepted_by_uid,
            "acceptedByEmail": self.accepted_by_email,
            "updatedAt": self.updated_at or self.created_at,
        }


@dataclass
class TeamMember:
    """A professional on a trainee's care team."""

    uid: str
    role: ProfessionalRole
    email: str
    display_name: str = ""
    status: MemberStatus = MemberStatus.ACTIVE
    invite_code: str | None = None
    invited_at: datetime | None = None
    accepted_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_document(cls, uid: str, data: Mapping[str, Any]) -> TeamMember:
        """Build from a trainees/{id}/teamMembers/{uid} document."""
        return cls(
            uid=uid,
            role=ProfessionalRole(data["role"]),
            email=data.get("email", ""),
            display_name=data.get("displayName", ""),
            status=MemberStatus(data.get("status", MemberStatus.ACTIVE.value)),
            invite_code=data.get("inviteCode"),
            invited_at=data.get("invitedAt"),
            accepted_at=data.get("acceptedAt"),
            updated_at=data.get("updatedAt"),
        )

    def to_document(self) -> dict[str, Any]:
        """Persisted shape."""
        return {
            "uid": self.uid,
            "role": self.role.value,
            "displayName": self.display_name,
            "email": self.email,
            "status": self.status.value,
            "inviteCode": self.invite_code,
            "invitedAt": self.invited_at,
            "acceptedAt": self.accepted_at,
            "updatedAt": self.updated_at,
        }


@dataclass
class Grant:
    """Per-(trainee, professional) permission record."""

    member_uid: str
    role: ProfessionalRole
    active: bool = True
    modules: ModulePermissions = field(default_factory=ModulePermissions.none)
    invite_code: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def allows(self, module: ModuleKey) -> bool:
        """Both the master switch and the module flag must be on."""
        return self.active and self.modules[module]

    @classmethod
    def from_document(cls, member_uid: str, data: Mapping[str, Any]) -> Grant:
        """Build from a trainees/{id}/grants/{uid} document."""
        return cls(
            member_uid=data.get("memberUid", member_uid),
            role=ProfessionalRole(data.get("role", ProfessionalRole.TRAINER.value)),
            active=bool(data.get("active")),
            modules=ModulePermissions(data.get("modules")),
            invite_code=data.get("inviteCode"),
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
        )

    def to_document(self) -> dict[str, Any]:
        """Persisted shape."""
        return {
            "memberUid": self.member_uid,
            "role": self.role.value,
            "active": self.active,
            "modules": self.modules.to_document(),
            "inviteCode": self.invite_code,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


@dataclass
class TeamMemberView:
    """A team member joined with their grant (if any)."""

    member: TeamMember
    grant: Grant | None


@dataclass
class InviteLink:
    """Result of creating an invite."""

    code: str
    link: str
    expires_at: datetime


@dataclass
class ClientGrant:
    """A grant seen from the professional's side."""

    trainee_id: str
    active: bool
    role: ProfessionalRole
    modules: ModulePermissions


@dataclass
class RosterSummary:
    """Counts over active clients."""

    active_clients: int = 0
    module_clients: dict[ModuleKey, int] = field(default_factory=dict)

    def count(self, module: ModuleKey) -> int:
        """Active clients that shared ``module``."""
        return self.module_clients.get(module, 0)


@dataclass
class ClientRoster:
    """Professional's client list with summary."""

    clients: list[ClientGrant]
    summary: RosterSummary


@dataclass
class AcceptedInvite:
    """Records written by a successful acceptance."""

    trainee_id: str
    invite: Invite
    member: TeamMember
    grant: Grant


class SessionAudience(str, Enum):
    """Who a session is offered to."""

    TRAINEE = "trainee"
    TRAINER = "trainer"
    NUTRITIONIST = "nutritionist"
    COUNSELLOR = "counsellor"
    ALL = "all"


@dataclass
class SessionOffer:
    """A scheduled session offered by a professional."""

    id: str
    title: str
    description: str
    audience: SessionAudience
    scheduled_at: datetime
    created_by_uid: str
    created_by_role: ProfessionalRole
    created_by_name: str = ""
    is_default: bool = False
    created_at: datetime | None = None

    @classmethod
    def from_document(cls, session_id: str, data: Mapping[str, Any]) -> SessionOffer:
        """Build from a sessions/{id} document."""
        return cls(
            id=session_id,
            title=data.get("title", ""),
            description=data.get("description", ""),
            audience=SessionAudience(data.get("audience", SessionAudience.ALL.value)),
            scheduled_at=data["scheduledAt"],
            created_by_uid=data.get("createdByUid", ""),
            created_by_role=ProfessionalRole(
                data.get("createdByRole", ProfessionalRole.TRAINER.value)
            ),
            created_by_name=data.get("createdByName", ""),
            is_default=data.get("isDefault") is True,
            created_at=data.get("createdAt"),
        )

    def to_document(self) -> dict[str, Any]:
        """Persisted shape."""
        return {
            "title": self.title,
            "description": self.description,
            "audience": self.audience.value,
            "scheduledAt": self.scheduled_at,
            "createdAt": self.created_at,
            "createdByUid": self.created_by_uid,
            "createdByRole": self.created_by_role.value,
            "createdByName": self.created_by_name,
            "isDefault": self.is_default,
        }


@dataclass
class Enrollment:
    """A trainee's enrollment in a session."""

    id: str
    session_id: str
    trainee_id: str
    created_at: datetime | None = None

    @classmethod
    def from_document(cls, enrollment_id: str, data: Mapping[str, Any]) -> Enrollment:
        """Build from a sessionEnrollments/{id} document."""
        return cls(
            id=enrollment_id,
            session_id=data.get("sessionId", ""),
            trainee_id=data.get("traineeId", ""),
            created_at=data.get("createdAt"),
        )

    def to_document(self) -> dict[str, Any]:
        """Persisted shape."""
        return {
            "sessionId": self.session_id,
            "traineeId": self.trainee_id,
            "createdAt": self.created_at,
        }
