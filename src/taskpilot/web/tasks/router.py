"""Task routes: reads plus single-task archive and restore."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from ..deps import CurrentContext, Db
from . import service
from .models import TaskResponse

router = APIRouter(prefix="/api", tags=["tasks"])


async def _load(db, tenant_id: str, task_id: str) -> dict:
    task = await service.get_task(db, tenant_id, task_id)
    if task is None:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


@router.get("/tasks/{task_id}", response_model=TaskResponse)
async def get_task(task_id: str, ctx: CurrentContext, db: Db):
    return await _load(db, ctx.tenant_id, task_id)


@router.post("/tasks/{task_id}/archive", response_model=TaskResponse)
async def archive_task(task_id: str, ctx: CurrentContext, db: Db):
    task = await _load(db, ctx.tenant_id, task_id)
    # TaskAlreadyArchived is a ValueError: the app maps it to 400
    return await service.archive_task(db, ctx, task)


@router.delete("/tasks/{task_id}/archive", response_model=TaskResponse)
async def restore_task(task_id: str, ctx: CurrentContext, db: Db):
    task = await _load(db, ctx.tenant_id, task_id)
    return await service.restore_task(db, ctx, task)
