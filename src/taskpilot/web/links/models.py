"""External link Pydantic models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class ExternalLinkResponse(BaseModel):
    id: str
    task_id: str
    board_id: str
    link_type: str
    external_id: str
    url: str
    title: str
    status: str
    metadata: dict[str, Any]
    created_at: str
    updated_at: str
