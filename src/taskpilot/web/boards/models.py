"""Board Pydantic models."""

from __future__ import annotations

from pydantic import BaseModel


class ColumnResponse(BaseModel):
    id: str
    board_id: str
    title: str
    position: int
    color: str


class BoardResponse(BaseModel):
    id: str
    tenant_id: str
    name: str
    description: str
    created_at: str
    updated_at: str


class BoardWithColumns(BoardResponse):
    columns: list[ColumnResponse]
