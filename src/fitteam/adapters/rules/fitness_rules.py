"""Access rules for trainee data, invites, grants, sessions and enrollments.

Module reads by professionals go through ``module_read_allowed`` so the
application gate and these rules cannot drift apart.
"""

from __future__ import annotations

from fitteam.adapters.rules.engine import RuleContext, RuleSet
from fitteam.core.access.policy import (
    GRANTS,
    TEAM_MEMBERS,
    enrollment_id,
    grant_path,
    invite_path,
    member_path,
    module_for_collection,
    module_read_allowed,
    session_path,
)
from fitteam.core.access.types import (
    AccountRole,
    InviteStatus,
    MemberStatus,
    ModuleKey,
    ProfessionalRole,
)

rules = RuleSet()

ACCEPTANCE_FIELDS = frozenset(
    {"status", "acceptedAt", "acceptedByUid", "acceptedByEmail", "updatedAt"}
)
SESSION_CREATOR_FIELDS = ("createdByUid", "createdByRole")


def _is_owner(ctx: RuleContext) -> bool:
    return ctx.is_signed_in and ctx.uid == ctx.params.get("trainee_id")


async def _professional_role(ctx: RuleContext) -> ProfessionalRole | None:
    role = await ctx.account_role()
    return role.as_professional() if role else None


@rules.allow("users/{uid}", "read", "create", "delete")
async def own_profile(ctx: RuleContext) -> bool:
    return ctx.is_signed_in and ctx.uid == ctx.params["uid"]


@rules.allow("users/{uid}", "update")
async def own_profile_keeps_role(ctx: RuleContext) -> bool:
    if not await own_profile(ctx):
        return False
    return ctx.resource is not None and ctx.incoming("role") == ctx.resource.get("role")


@rules.allow("trainees/{trainee_id}", "read", "update", "delete")
async def trainee_owner(ctx: RuleContext) -> bool:
    return _is_owner(ctx)


@rules.allow("trainees/{trainee_id}", "create")
async def trainee_self_create(ctx: RuleContext) -> bool:
    if not _is_owner(ctx) or ctx.incoming("ownerId") != ctx.uid:
        return False
    return await ctx.account_role() is AccountRole.TRAINEE


@rules.allow("trainees/{trainee_id}/{collection}/{doc_id}", "read", "write")
async def trainee_owns_subcollections(ctx: RuleContext) -> bool:
    return _is_owner(ctx)


@rules.allow("trainees/{trainee_id}/{collection}/{doc_id}", "read")
async def granted_module_read(ctx: RuleContext) -> bool:
    """Non-owner read of a module collection through an active grant."""
    module = module_for_collection(ctx.params["collection"] or "")
    if module is None or not ctx.is_signed_in:
        return False
    trainee_id = ctx.params["trainee_id"]
    member = await ctx.get(member_path(trainee_id, ctx.uid))
    grant = await ctx.get(grant_path(trainee_id, ctx.uid))
    return module_read_allowed(member, grant, module)


@rules.allow("trainees/{trainee_id}/invites/{code}", "get")
async def professional_reads_invite(ctx: RuleContext) -> bool:
    # The code itself is the bearer secret
    return await _professional_role(ctx) is not None


@rules.allow("{path=**}/invites/{code}", "list")
async def targeted_invites(ctx: RuleContext) -> bool:
    return ctx.email is not None and ctx.field("targetEmail") == ctx.email


@rules.allow("trainees/{trainee_id}/invites/{code}", "update")
async def invite_acceptance(ctx: RuleContext) -> bool:
    """pending -> accepted, by the professional the invite is for."""
    if ctx.resource is None or ctx.resource.get("status") != InviteStatus.PENDING.value:
        return False
    if ctx.incoming("status") != InviteStatus.ACCEPTED.value:
        return False
    if ctx.incoming("acceptedByUid") != ctx.uid:
        return False
    role = await _professional_role(ctx)
    if role is None or ctx.resource.get("role") != role.value:
        return False
    if ctx.resource["expiresAt"] <= ctx.now:
        return False
    target = ctx.resource.get("targetEmail")
    if target and (ctx.email is None or target.lower() != ctx.email):
        return False
    return ctx.changed_keys() <= ACCEPTANCE_FIELDS


@rules.allow(f"trainees/{{trainee_id}}/{TEAM_MEMBERS}/{{member_uid}}", "read")
@rules.allow(f"trainees/{{trainee_id}}/{GRANTS}/{{member_uid}}", "get")
async def professional_reads_own_record(ctx: RuleContext) -> bool:
    return ctx.is_signed_in and ctx.uid == ctx.params["member_uid"]


@rules.allow(f"{{path=**}}/{GRANTS}/{{grant_id}}", "list")
async def professional_lists_own_grants(ctx: RuleContext) -> bool:
    return ctx.is_signed_in and ctx.field("memberUid") == ctx.uid


async def _accepted_by_caller(ctx: RuleContext) -> bool:
    """The batch under evaluation is the one accepting the named invite for the caller.

    The invite must be pending now and accepted by the caller afterwards, so
    an invite accepted earlier cannot be replayed after revocation.
    """
    code = ctx.incoming("inviteCode")
    if not code:
        return False
    path = invite_path(ctx.params["trainee_id"], code)
    before = await ctx.get(path)
    if before is None or before.get("status") != InviteStatus.PENDING.value:
        return False
    invite = await ctx.get_after(path)
    if invite is None:
        return False
    role = await _professional_role(ctx)
    return (
        invite.get("status") == InviteStatus.ACCEPTED.value
        and invite.get("acceptedByUid") == ctx.uid
        and role is not None
        and invite.get("role") == role.value
        and ctx.incoming("role") == role.value
    )


@rules.allow(f"trainees/{{trainee_id}}/{TEAM_MEMBERS}/{{member_uid}}", "create", "update")
async def professional_joins_team(ctx: RuleContext) -> bool:
    if ctx.uid != ctx.params["member_uid"]:
        return False
    if ctx.incoming("status") != MemberStatus.ACTIVE.value:
        return False
    return await _accepted_by_caller(ctx)


@rules.allow(f"trainees/{{trainee_id}}/{GRANTS}/{{member_uid}}", "create", "update")
async def professional_receives_grant(ctx: RuleContext) -> bool:
    if ctx.uid != ctx.params["member_uid"] or ctx.incoming("memberUid") != ctx.uid:
        return False
    if ctx.incoming("active") is not True:
        return False
    modules = ctx.incoming("modules") or {}
    if any(modules.get(module.value) for module in ModuleKey):
        return False
    return await _accepted_by_caller(ctx)


@rules.allow("sessions/{session_id}", "read")
async def signed_in_reads_sessions(ctx: RuleContext) -> bool:
    return ctx.is_signed_in


@rules.allow("sessions/{session_id}", "create")
async def professional_creates_session(ctx: RuleContext) -> bool:
    if ctx.incoming("createdByUid") != ctx.uid:
        return False
    role = await _professional_role(ctx)
    return role is not None and ctx.incoming("createdByRole") == role.value


@rules.allow("sessions/{session_id}", "update", "delete")
async def creator_manages_session(ctx: RuleContext) -> bool:
    if ctx.resource is None or ctx.resource.get("createdByUid") != ctx.uid:
        return False
    if ctx.request_data is None:
        return True
    return all(ctx.incoming(key) == ctx.resource.get(key) for key in SESSION_CREATOR_FIELDS)


@rules.allow("sessionEnrollments/{enrollment_id}", "create", "update")
async def trainee_enrolls(ctx: RuleContext) -> bool:
    session_id = ctx.incoming("sessionId")
    if not session_id or ctx.incoming("traineeId") != ctx.uid:
        return False
    if ctx.params["enrollment_id"] != enrollment_id(session_id, ctx.uid):
        return False
    return await ctx.account_role() is AccountRole.TRAINEE


@rules.allow("sessionEnrollments/{enrollment_id}", "delete")
async def trainee_cancels(ctx: RuleContext) -> bool:
    if not ctx.is_signed_in:
        return False
    return ctx.resource is None or ctx.resource.get("traineeId") == ctx.uid


@rules.allow("sessionEnrollments/{enrollment_id}", "read")
async def enrollment_reader(ctx: RuleContext) -> bool:
    """The enrolled trainee, or the creator of the session."""
    if not ctx.is_signed_in:
        return False
    doc_id = ctx.params.get("enrollment_id")
    if ctx.resource is None and doc_id and doc_id.endswith(f"_{ctx.uid}"):
        # Probing for one's own enrollment
        return True
    if ctx.field("traineeId") == ctx.uid:
        return True
    session_id = ctx.field("sessionId")
    if not session_id:
        return False
    session = await ctx.get(session_path(session_id))
    return session is not None and session.get("createdByUid") == ctx.uid

