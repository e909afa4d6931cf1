"""Bearer identity token authentication."""

from typing import Annotated

import structlog
from fastapi import Depends, HTTPException, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from fitteam.core.access.types import Identity
from fitteam.core.auth.jwt import TokenError, decode_identity_token

logger = structlog.get_logger()

# Use Bearer token authentication
bearer_scheme = HTTPBearer(auto_error=False)


async def verify_identity(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Security(bearer_scheme),  # noqa: B008
) -> Identity:
    """Verify the identity token and return the caller.

    Args:
        request: The current request.
        credentials: Bearer token credentials.

    Returns:
        Identity carried by the token.

    Raises:
        HTTPException: 401 if token is missing or invalid.
    """
    if not credentials:
        raise HTTPException(
            status_code=401,
            detail="Missing authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        identity = decode_identity_token(credentials.credentials)
    except TokenError as e:
        logger.warning("identity_token_invalid", error=str(e))
        raise HTTPException(
            status_code=401,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        ) from None

    # Store in request state for downstream use
    request.state.identity = identity
    logger.debug("identity_verified", uid=identity.uid)
    return identity


IdentityDep = Annotated[Identity, Depends(verify_identity)]
