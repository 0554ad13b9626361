"""JWT operations.

Tokens carry the tenant the caller acts for (``tenant_id``) and,
optionally, an ``actor`` claim for bot and API clients.
"""

from __future__ import annotations

import secrets
from datetime import UTC, datetime, timedelta

import jwt

from .config import get_config


def create_token(
    user_id: str,
    tenant_id: str,
    actor: str = "human",
    username: str = "",
) -> str:
    """Create a JWT token for a user acting within a tenant."""
    config = get_config()
    payload = {
        "sub": user_id,
        "tenant_id": tenant_id,
        "actor": actor,
        "username": username,
        "exp": datetime.now(UTC) + timedelta(hours=config.jwt_expire_hours),
        "iat": datetime.now(UTC),
        "jti": secrets.token_hex(8),
    }
    return jwt.encode(payload, config.jwt_secret, algorithm=config.jwt_algorithm)


def decode_token(token: str) -> dict:
    """Decode and validate a JWT token. Raises jwt.InvalidTokenError on failure."""
    config = get_config()
    return jwt.decode(token, config.jwt_secret, algorithms=[config.jwt_algorithm])
