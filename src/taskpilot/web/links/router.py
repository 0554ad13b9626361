"""External link routes."""

from __future__ import annotations

from fastapi import APIRouter, Query

from ..deps import CurrentContext, Db, get_board_id_for_task
from . import service
from .models import ExternalLinkResponse

router = APIRouter(prefix="/api", tags=["links"])


@router.get("/external-links", response_model=list[ExternalLinkResponse])
async def list_links(ctx: CurrentContext, db: Db, task_id: str = Query(...)):
    await get_board_id_for_task(db, ctx.tenant_id, task_id)
    return await service.list_links(db, ctx.tenant_id, task_id)
