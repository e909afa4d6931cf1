"""Dependency injection and application lifespan management."""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Annotated

from fastapi import Depends, Request

from fitteam.adapters.cache import QueryCache
from fitteam.adapters.rules import SecuredDocumentStore, rules
from fitteam.adapters.store import MemoryDocumentStore, PostgresDocumentStore
from fitteam.core.access.gate import AccessGate
from fitteam.core.accounts import AccountService
from fitteam.core.data import TraineeDataService
from fitteam.core.grants import GrantService
from fitteam.core.interfaces import DocumentStore
from fitteam.core.invites import InviteService
from fitteam.core.roster import RosterService
from fitteam.core.sessions import EnrollmentService, SessionService
from fitteam.entrypoints.api.middleware.jwt_auth import IdentityDep

if TYPE_CHECKING:
    from fastapi import FastAPI

logger = logging.getLogger(__name__)


class Settings:
    """Application settings loaded from environment."""

    def __init__(self) -> None:
        """Load settings from environment variables."""
        # Unset means the in-memory store
        self.database_url = os.getenv("DATABASE_URL", "")
        self.app_base_url = os.getenv("APP_BASE_URL", "http://localhost:5173")
        self.invite_ttl_days = int(os.getenv("INVITE_TTL_DAYS", "7"))
        self.query_cache_ttl_seconds = float(os.getenv("QUERY_CACHE_TTL_SECONDS", "30"))
        self.roster_limit = int(os.getenv("ROSTER_LIMIT", "200"))
        self.cors_origins = [
            origin.strip()
            for origin in os.getenv("CORS_ORIGINS", "*").split(",")
            if origin.strip()
        ]


settings = Settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan - setup and teardown.

    This context manager handles:
    - Document store setup (PostgreSQL when configured, otherwise in-memory)
    - Query cache creation
    """
    store: DocumentStore
    if settings.database_url:
        postgres = PostgresDocumentStore(settings.database_url)
        await postgres.connect()
        store = postgres
    else:
        logger.warning("DATABASE_URL not set, using in-memory document store")
        store = MemoryDocumentStore()

    # Store in app state
    app.state.settings = settings
    app.state.store = store
    app.state.query_cache = QueryCache(ttl_seconds=settings.query_cache_ttl_seconds)

    yield

    if isinstance(store, PostgresDocumentStore):
        await store.close()


def get_settings(request: Request) -> Settings:
    """Get settings from app state, falling back to the module settings."""
    return getattr(request.app.state, "settings", settings)


def get_document_store(request: Request) -> DocumentStore:
    """Get the unsecured document store from app state.

    Args:
        request: The current request.

    Returns:
        The configured document store.
    """
    store: DocumentStore = request.app.state.store
    return store


def get_query_cache(request: Request) -> QueryCache:
    """Get the shared query cache from app state."""
    cache: QueryCache = request.app.state.query_cache
    return cache


BaseStoreDep = Annotated[DocumentStore, Depends(get_document_store)]
CacheDep = Annotated[QueryCache, Depends(get_query_cache)]
SettingsDep = Annotated[Settings, Depends(get_settings)]


def get_secured_store(identity: IdentityDep, base: BaseStoreDep) -> SecuredDocumentStore:
    """Rule-enforcing store scoped to the caller for this request."""
    return SecuredDocumentStore(base, rules, identity)


SecuredStoreDep = Annotated[SecuredDocumentStore, Depends(get_secured_store)]


def get_account_service(store: SecuredStoreDep, identity: IdentityDep) -> AccountService:
    """Account service for the caller."""
    return AccountService(store, identity)


def get_invite_service(
    store: SecuredStoreDep,
    identity: IdentityDep,
    cache: CacheDep,
    app_settings: SettingsDep,
) -> InviteService:
    """Invite service for the caller."""
    return InviteService(
        store,
        identity,
        base_url=app_settings.app_base_url,
        ttl_days=app_settings.invite_ttl_days,
        cache=cache,
    )


def get_grant_service(store: SecuredStoreDep, cache: CacheDep) -> GrantService:
    """Grant service for the caller."""
    return GrantService(store, cache=cache)


def get_roster_service(
    store: SecuredStoreDep,
    cache: CacheDep,
    app_settings: SettingsDep,
) -> RosterService:
    """Roster service for the caller."""
    return RosterService(store, limit=app_settings.roster_limit, cache=cache)


def get_access_gate(store: SecuredStoreDep, cache: CacheDep) -> AccessGate:
    """Application access gate for the caller."""
    return AccessGate(store, cache=cache)


def get_trainee_data_service(
    store: SecuredStoreDep,
    identity: IdentityDep,
    gate: Annotated[AccessGate, Depends(get_access_gate)],
    cache: CacheDep,
) -> TraineeDataService:
    """Module data service for the caller."""
    return TraineeDataService(store, identity, gate=gate, cache=cache)


def get_session_service(store: SecuredStoreDep, identity: IdentityDep) -> SessionService:
    """Session service for the caller."""
    return SessionService(store, identity)


def get_enrollment_service(store: SecuredStoreDep, identity: IdentityDep) -> EnrollmentService:
    """Enrollment service for the caller."""
    return EnrollmentService(store, identity)
