"""Security utilities for admin authentication."""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from kerzenwelt.config import config


def create_access_token(
    subject: str,
    is_admin: bool = False,
    name: str = "",
    expires_delta: timedelta | None = None,
) -> str:
    """Create a JWT access token.

    Args:
        subject: Identifier of the user the token is issued to
        is_admin: Whether the holder may change shop settings
        name: Display name
        expires_delta: Custom expiration time

    Returns:
        Encoded JWT token string
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=config.jwt_access_token_expire_minutes)

    now = datetime.now(timezone.utc)
    expire = now + expires_delta

    payload = {
        "sub": subject,
        "is_admin": is_admin,
        "name": name,
        "exp": expire,
        "iat": now,
        "jti": str(uuid.uuid4()),  # Unique token ID
        "type": "access",
    }

    return jwt.encode(
        payload,
        config.effective_jwt_secret,
        algorithm=config.jwt_algorithm,
    )


def decode_token(token: str) -> dict[str, Any] | None:
    """Decode and validate a JWT token.

    Args:
        token: JWT token string to decode

    Returns:
        Token payload dictionary if valid, None if invalid/expired
    """
    try:
        payload = jwt.decode(
            token,
            config.effective_jwt_secret,
            algorithms=[config.jwt_algorithm],
        )
        return payload
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None


def decode_access_token(token: str) -> dict[str, Any] | None:
    """Decode an access token and verify it's an access token type."""
    payload = decode_token(token)
    if payload and payload.get("type") == "access":
        return payload
    return None
