"""Activity Pydantic models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class ActorDisplay(BaseModel):
    name: str
    color: str
    avatar: str


class ActivityResponse(BaseModel):
    id: str
    task_id: str | None
    board_id: str
    action: str
    actor: str
    actor_display: ActorDisplay
    details: dict[str, Any]
    created_at: str
