"""API route modules."""

from fastapi import APIRouter

from fitteam.entrypoints.api.routes.clients import router as clients_router
from fitteam.entrypoints.api.routes.data import router as data_router
from fitteam.entrypoints.api.routes.invites import router as invites_router
from fitteam.entrypoints.api.routes.profile import router as profile_router
from fitteam.entrypoints.api.routes.sessions import router as sessions_router
from fitteam.entrypoints.api.routes.team import router as team_router

# Create main API router
api_router = APIRouter()

# Include all route modules
api_router.include_router(profile_router)
api_router.include_router(team_router)
api_router.include_router(invites_router)
api_router.include_router(clients_router)
api_router.include_router(data_router)
api_router.include_router(sessions_router)

__all__ = ["api_router"]
