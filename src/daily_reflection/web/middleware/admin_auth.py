# ABOUTME: Bearer token verification for admin-only API endpoints.
# ABOUTME: Validates the Authorization header against the in-memory admin session manager.

from typing import Annotated

import structlog
from fastapi import Depends, Request

from daily_reflection.errors import Unauthorized
from daily_reflection.web.dependencies import Sessions

log = structlog.get_logger()


def bearer_token(request: Request) -> str:
    """Extract the bearer token from the Authorization header.

    Raises:
        Unauthorized: If the header is missing or not a bearer token.
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        log.warning("admin_missing_authorization", path=request.url.path)
        raise Unauthorized("Authorization header required")

    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        log.warning("admin_invalid_auth_format", path=request.url.path)
        raise Unauthorized("Invalid authorization format")

    return token.strip()


async def require_admin(request: Request, sessions: Sessions) -> str:
    """Verify the admin session token and return it.

    Raises:
        Unauthorized: If the token is missing, unknown or expired.
    """
    token = bearer_token(request)
    if not sessions.is_valid(token):
        log.warning("admin_invalid_token", path=request.url.path)
        raise Unauthorized("Invalid or expired session")
    return token


# Type alias for dependency injection
AdminToken = Annotated[str, Depends(require_admin)]
