"""Activity routes."""

from __future__ import annotations

from fastapi import APIRouter, Query

from ..deps import CurrentContext, Db, get_board_id_for_task, verify_board_access
from . import service
from .models import ActivityResponse

router = APIRouter(prefix="/api", tags=["activity"])


@router.get("/boards/{board_id}/activities", response_model=list[ActivityResponse])
async def board_activities(
    board_id: str,
    ctx: CurrentContext,
    db: Db,
    limit: int = Query(100, ge=1, le=500),
):
    await verify_board_access(db, ctx.tenant_id, board_id)
    return await service.list_board_activities(db, ctx.tenant_id, board_id, ctx.agent, limit)


@router.get("/tasks/{task_id}/activities", response_model=list[ActivityResponse])
async def task_activities(
    task_id: str,
    ctx: CurrentContext,
    db: Db,
    limit: int = Query(50, ge=1, le=500),
):
    await get_board_id_for_task(db, ctx.tenant_id, task_id)
    return await service.list_task_activities(db, ctx.tenant_id, task_id, ctx.agent, limit)
