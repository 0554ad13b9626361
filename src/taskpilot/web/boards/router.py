"""Board routes (read-only)."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from ..deps import CurrentContext, Db
from . import service
from .models import BoardResponse, BoardWithColumns

router = APIRouter(prefix="/api", tags=["boards"])


@router.get("/boards", response_model=list[BoardResponse])
async def list_boards(ctx: CurrentContext, db: Db):
    return await service.list_boards(db, ctx.tenant_id)


@router.get("/boards/{board_id}", response_model=BoardWithColumns)
async def get_board(board_id: str, ctx: CurrentContext, db: Db):
    board = await service.get_board(db, ctx.tenant_id, board_id)
    if board is None:
        raise HTTPException(status_code=404, detail="Board not found")
    return board
