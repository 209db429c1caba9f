"""Permission dependencies for the settings API."""

from typing import Any

from fastapi import Request

from kerzenwelt.exceptions import ForbiddenException, UnauthorizedException
from kerzenwelt.utils.security import decode_access_token


def extract_bearer_token(request: Request) -> str | None:
    """Get the bearer token from the Authorization header, if any."""
    auth_header = request.headers.get("authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token.strip()


async def require_admin(request: Request) -> dict[str, Any]:
    """Dependency that enforces an admin access token.

    Usage:
        @router.post("", dependencies=[Depends(require_admin)])
        async def create_setting(...):
            ...

    Returns:
        The decoded token payload
    """
    token = extract_bearer_token(request)
    if not token:
        raise UnauthorizedException()

    payload = decode_access_token(token)
    if payload is None:
        raise UnauthorizedException("Invalid or expired token")

    if not payload.get("is_admin"):
        raise ForbiddenException()

    return payload
