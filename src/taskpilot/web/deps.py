"""FastAPI dependency injection."""

from __future__ import annotations

from typing import Annotated

import aiosqlite
import jwt
from fastapi import Depends, HTTPException, Request

from .config import AppConfig, get_config
from .context import ActorContext, normalize_actor
from .db.database import get_db


async def _get_db() -> aiosqlite.Connection:
    return await get_db()


Db = Annotated[aiosqlite.Connection, Depends(_get_db)]

Config = Annotated[AppConfig, Depends(get_config)]


async def _get_current_context(request: Request) -> ActorContext:
    """Extract and validate the JWT from the Authorization header.

    The token's ``tenant_id`` claim scopes every query the request makes.
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing or invalid Authorization header")

    token = auth_header.removeprefix("Bearer ").strip()
    try:
        from .auth import decode_token

        payload = decode_token(token)
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired") from None
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token") from None

    tenant_id = payload.get("tenant_id")
    if not tenant_id:
        raise HTTPException(status_code=403, detail="Token is not scoped to a tenant")

    return ActorContext(
        tenant_id=tenant_id,
        actor=normalize_actor(payload.get("actor")),
        user_id=payload.get("sub"),
        agent=get_config().agent,
    )


CurrentContext = Annotated[ActorContext, Depends(_get_current_context)]


async def get_board_id_for_task(db: aiosqlite.Connection, tenant_id: str, task_id: str) -> str:
    """Look up the board_id for a task within the tenant. Raises 404 if not found."""
    cursor = await db.execute(
        "SELECT board_id FROM tasks WHERE id = ? AND tenant_id = ?", (task_id, tenant_id)
    )
    row = await cursor.fetchone()
    if not row:
        raise HTTPException(status_code=404, detail="Task not found")
    return row["board_id"]


async def verify_board_access(db: aiosqlite.Connection, tenant_id: str, board_id: str) -> None:
    """Raise 404 if the board does not belong to the caller's tenant."""
    cursor = await db.execute(
        "SELECT 1 FROM boards WHERE id = ? AND tenant_id = ?", (board_id, tenant_id)
    )
    if not await cursor.fetchone():
        raise HTTPException(status_code=404, detail="Board not found")
