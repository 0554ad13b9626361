"""Command bar Pydantic models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class CommandRequest(BaseModel):
    text: str = Field(min_length=1)
    board_id: str | None = None


class CommandSummary(BaseModel):
    """What the parser understood; echoed back even when execution fails."""

    type: str
    description: str
    confidence: float


class CommandResultBody(BaseModel):
    action: str
    message: str
    task: dict[str, Any] | None = None
    tasks: list[dict[str, Any]] | None = None


class CommandResponse(BaseModel):
    success: bool
    command: CommandSummary
    result: CommandResultBody | None = None
    error: str | None = None
