"""Professional client roster and access API routes."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from fitteam.core.access.gate import AccessGate
from fitteam.core.access.types import ModuleKey, ProfessionalRole, RosterSummary
from fitteam.core.exceptions import FitteamError
from fitteam.core.roster import RosterService
from fitteam.entrypoints.api.deps import IdentityDep, get_access_gate, get_roster_service
from fitteam.entrypoints.api.errors import to_http_exception
from fitteam.entrypoints.api.routes.schemas import modules_response

logger = logging.getLogger(__name__)

router = APIRouter(tags=["clients"])

RosterServiceDep = Annotated[RosterService, Depends(get_roster_service)]
AccessGateDep = Annotated[AccessGate, Depends(get_access_gate)]


class ClientResponse(BaseModel):
    """One client seen from the professional's side."""

    trainee_id: str
    active: bool
    role: ProfessionalRole
    modules: dict[str, bool]


class RosterSummaryResponse(BaseModel):
    """Counts over active clients."""

    active_clients: int
    workout_clients: int
    recovery_clients: int
    nutrition_clients: int
    wellbeing_clients: int
    progress_clients: int
    wearables_clients: int

    @classmethod
    def from_summary(cls, summary: RosterSummary) -> RosterSummaryResponse:
        """Build from the domain summary."""
        return cls(
            active_clients=summary.active_clients,
            workout_clients=summary.count(ModuleKey.WORKOUTS),
            recovery_clients=summary.count(ModuleKey.RECOVERY),
            nutrition_clients=summary.count(ModuleKey.NUTRITION),
            wellbeing_clients=summary.count(ModuleKey.WELLBEING),
            progress_clients=summary.count(ModuleKey.PROGRESS),
            wearables_clients=summary.count(ModuleKey.WEARABLES),
        )


class ClientRosterResponse(BaseModel):
    """Response for the client roster."""

    clients: list[ClientResponse]
    summary: RosterSummaryResponse


class ModuleAccessResponse(BaseModel):
    """Modules the caller may read on a trainee."""

    trainee_id: str
    modules: dict[str, bool]


@router.get("/clients", response_model=ClientRosterResponse)
async def list_clients(identity: IdentityDep, service: RosterServiceDep) -> ClientRosterResponse:
    """List every trainee that granted the caller access."""
    try:
        roster = await service.list_clients(identity.uid)
    except FitteamError as e:
        raise to_http_exception(e) from None
    return ClientRosterResponse(
        clients=[
            ClientResponse(
                trainee_id=client.trainee_id,
                active=client.active,
                role=client.role,
                modules=modules_response(client.modules),
            )
            for client in roster.clients
        ],
        summary=RosterSummaryResponse.from_summary(roster.summary),
    )


@router.get("/trainees/{trainee_id}/access", response_model=ModuleAccessResponse)
async def get_module_access(
    trainee_id: str,
    identity: IdentityDep,
    gate: AccessGateDep,
) -> ModuleAccessResponse:
    """Which modules of a trainee the caller can currently read."""
    access = await gate.module_access(identity, trainee_id)
    return ModuleAccessResponse(trainee_id=trainee_id, modules=modules_response(access))
