"""API client fixtures for testing."""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from fitteam.adapters.cache import QueryCache
from fitteam.adapters.store import MemoryDocumentStore
from fitteam.core.access.types import Identity
from fitteam.core.auth.jwt import create_identity_token
from fitteam.entrypoints.api.routes import api_router


def auth_headers(identity: Identity) -> dict[str, str]:
    """Bearer headers carrying a token for ``identity``."""
    return {"Authorization": f"Bearer {create_identity_token(identity)}"}


@pytest.fixture
def api_app(store: MemoryDocumentStore) -> FastAPI:
    """Return an app serving the API routes over the test store."""
    app = FastAPI()
    app.include_router(api_router, prefix="/api/v1")
    app.state.store = store
    app.state.query_cache = QueryCache()
    return app


@pytest.fixture
def client(api_app: FastAPI) -> TestClient:
    """Return a test client for the API app."""
    return TestClient(api_app)
