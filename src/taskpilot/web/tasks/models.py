"""Task Pydantic models."""

from __future__ import annotations

from pydantic import BaseModel


class TaskResponse(BaseModel):
    id: str
    board_id: str
    column_id: str
    seq: int
    title: str
    description: str
    position: float
    priority: str
    due_date: str | None
    labels: list[str]
    assignee_id: str | None
    archived: bool
    archived_at: str | None
    archived_by: str | None
    created_by: str
    created_at: str
    updated_at: str
