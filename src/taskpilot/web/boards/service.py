"""Board service - board and column reads."""

from __future__ import annotations

import aiosqlite

from ..errors import BoardNotFound


async def list_boards(db: aiosqlite.Connection, tenant_id: str) -> list[dict]:
    cursor = await db.execute(
        "SELECT * FROM boards WHERE tenant_id = ? ORDER BY created_at DESC, rowid DESC",
        (tenant_id,),
    )
    return [dict(r) for r in await cursor.fetchall()]


async def get_columns(db: aiosqlite.Connection, board_id: str) -> list[dict]:
    cursor = await db.execute(
        "SELECT * FROM columns WHERE board_id = ? ORDER BY position, rowid", (board_id,)
    )
    return [dict(r) for r in await cursor.fetchall()]


async def get_board(db: aiosqlite.Connection, tenant_id: str, board_id: str) -> dict | None:
    """A board with its ordered ``columns`` list, or None outside the tenant."""
    cursor = await db.execute(
        "SELECT * FROM boards WHERE id = ? AND tenant_id = ?", (board_id, tenant_id)
    )
    row = await cursor.fetchone()
    if not row:
        return None
    board = dict(row)
    board["columns"] = await get_columns(db, board_id)
    return board


async def resolve_board(
    db: aiosqlite.Connection, tenant_id: str, board_id: str | None = None
) -> dict:
    """The requested board, or the tenant's most recent one when none is named.

    Raises:
        BoardNotFound: the board does not exist in this tenant.
    """
    if board_id:
        board = await get_board(db, tenant_id, board_id)
        if board is None:
            raise BoardNotFound(board_id)
        return board

    boards = await list_boards(db, tenant_id)
    if not boards:
        raise BoardNotFound(None)
    return await get_board(db, tenant_id, boards[0]["id"])
