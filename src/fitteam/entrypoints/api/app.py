"""FastAPI application factory."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from fitteam.core.exceptions import FitteamError
from fitteam.entrypoints.api.deps import lifespan, settings
from fitteam.entrypoints.api.errors import to_http_exception
from fitteam.entrypoints.api.routes import api_router

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


async def handle_domain_error(request: Request, exc: FitteamError) -> JSONResponse:
    """Render domain errors raised outside a route's own handling."""
    http_error = to_http_exception(exc)
    logger.info(f"domain_error: path={request.url.path}, status={http_error.status_code}")
    return JSONResponse(status_code=http_error.status_code, content={"detail": http_error.detail})


def create_app() -> FastAPI:
    """Build the API with its routers, CORS policy and error handling."""
    application = FastAPI(
        title="fitteam",
        description="Care-team access control for trainee fitness data",
        version="0.1.0",
        lifespan=lifespan,
        redirect_slashes=False,  # Prevent 307 redirects that lose auth headers
    )
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.add_exception_handler(FitteamError, handle_domain_error)
    application.include_router(api_router, prefix=API_PREFIX)

    @application.get("/health")
    async def health_check(request: Request) -> dict[str, str]:
        """Liveness plus the document store backend in use."""
        store = getattr(request.app.state, "store", None)
        backend = type(store).__name__ if store is not None else "unconfigured"
        return {"status": "healthy", "store": backend}

    return application


app = create_app()
