"""SSE stream of board events."""

from __future__ import annotations

import asyncio
import json
import time
from collections.abc import AsyncIterator
from typing import Any

import jwt
from fastapi import APIRouter, HTTPException, Query
from sse_starlette.sse import EventSourceResponse

from ..db.database import get_db
from ..deps import verify_board_access
from .manager import event_manager
from .models import Event, EventType

router = APIRouter(prefix="/api/events", tags=["events"])

HEARTBEAT_SECONDS = 30.0

# Events whose data is a bare entity dict, sent wrapped under this key.
_ENTITY_WRAP_KEY: dict[EventType, str] = {
    EventType.TASK_CREATED: "task",
    EventType.TASK_UPDATED: "task",
    EventType.TASK_ARCHIVED: "task",
    EventType.TASK_RESTORED: "task",
    EventType.COMMENT_ADDED: "comment",
    EventType.LINK_UPDATED: "link",
}


def format_event(event: Event) -> dict[str, Any]:
    """JSON body of one SSE message; the event type travels as ``type``."""
    wrap_key = _ENTITY_WRAP_KEY.get(event.event_type)
    if wrap_key:
        return {"type": event.event_type.value, wrap_key: event.data}
    return {"type": event.event_type.value, **event.data}


async def board_stream(
    board_id: str, heartbeat: float = HEARTBEAT_SECONDS
) -> AsyncIterator[dict[str, str]]:
    """Yield SSE messages for ``board:{board_id}`` until the client goes away."""
    channel = f"board:{board_id}"
    queue = await event_manager.subscribe(channel)
    try:
        while True:
            try:
                event: Event = await asyncio.wait_for(queue.get(), timeout=heartbeat)
                yield {"data": json.dumps(format_event(event), default=str)}
            except TimeoutError:
                yield {"data": json.dumps({"type": "heartbeat", "timestamp": time.time()})}
    finally:
        await event_manager.unsubscribe(channel, queue)


@router.get("/stream")
async def event_stream(
    board_id: str = Query(..., description="Board ID to subscribe to"),
    token: str = Query("", description="JWT token (EventSource can't send headers)"),
):
    """SSE stream for real-time board updates.

    Uses a token query param because the EventSource API doesn't support
    custom headers.
    """
    if not token:
        raise HTTPException(status_code=401, detail="Missing token")

    try:
        from ..auth import decode_token

        payload = decode_token(token)
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token") from None

    tenant_id = payload.get("tenant_id")
    if not tenant_id:
        raise HTTPException(status_code=403, detail="Token is not scoped to a tenant")

    await verify_board_access(await get_db(), tenant_id, board_id)
    return EventSourceResponse(board_stream(board_id))
