"""Trainee module data API routes."""

from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel

from fitteam.core.data import TraineeDataService
from fitteam.core.exceptions import FitteamError
from fitteam.entrypoints.api.deps import get_trainee_data_service
from fitteam.entrypoints.api.errors import to_http_exception

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/trainees", tags=["data"])

DataServiceDep = Annotated[TraineeDataService, Depends(get_trainee_data_service)]


class ModuleEntriesResponse(BaseModel):
    """Entries of one module collection.

    ``restricted`` is set when the caller cannot see this module; entries
    are then empty and no reason is given.
    """

    trainee_id: str
    collection: str
    module: str
    restricted: bool
    entries: list[dict[str, Any]]


@router.get("/{trainee_id}/data/{collection}", response_model=ModuleEntriesResponse)
async def list_entries(
    trainee_id: str,
    collection: str,
    service: DataServiceDep,
) -> ModuleEntriesResponse:
    """List a module collection, or get a restricted view."""
    try:
        view = await service.list_entries(trainee_id, collection)
    except FitteamError as e:
        raise to_http_exception(e) from None
    return ModuleEntriesResponse(
        trainee_id=trainee_id,
        collection=view.collection,
        module=view.module.value,
        restricted=view.restricted,
        entries=view.entries,
    )


@router.get("/{trainee_id}/data/{collection}/{doc_id}")
async def get_entry(
    trainee_id: str,
    collection: str,
    doc_id: str,
    service: DataServiceDep,
) -> dict[str, Any]:
    """Get one entry."""
    try:
        entry = await service.get_entry(trainee_id, collection, doc_id)
    except FitteamError as e:
        raise to_http_exception(e) from None
    if entry is None:
        raise HTTPException(status_code=404, detail="Entry not found")
    return entry


@router.put("/{trainee_id}/data/{collection}/{doc_id}")
async def put_entry(
    trainee_id: str,
    collection: str,
    doc_id: str,
    body: dict[str, Any],
    service: DataServiceDep,
) -> dict[str, Any]:
    """Create or replace an entry. Trainees only write their own data."""
    try:
        return await service.put_entry(trainee_id, collection, doc_id, body)
    except FitteamError as e:
        raise to_http_exception(e) from None


@router.delete(
    "/{trainee_id}/data/{collection}/{doc_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def delete_entry(
    trainee_id: str,
    collection: str,
    doc_id: str,
    service: DataServiceDep,
) -> Response:
    """Delete an entry."""
    try:
        await service.delete_entry(trainee_id, collection, doc_id)
    except FitteamError as e:
        raise to_http_exception(e) from None
    return Response(status_code=204)
