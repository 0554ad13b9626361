"""Activity service - the append-only audit trail."""

from __future__ import annotations

import json
import secrets

import aiosqlite

from ..context import ActorContext, AgentIdentity, actor_display, normalize_actor


def _row_to_activity(row: aiosqlite.Row, agent: AgentIdentity) -> dict:
    activity = dict(row)
    activity["actor"] = normalize_actor(activity["actor"]).value
    activity["details"] = json.loads(activity.pop("details_json") or "{}")
    activity["actor_display"] = actor_display(activity["actor"], agent)
    return activity


async def log_activity(
    db: aiosqlite.Connection,
    ctx: ActorContext,
    board_id: str,
    action: str,
    task_id: str | None = None,
    details: dict | None = None,
) -> dict:
    """Append one activity record.

    Does not commit; the record lands in the same transaction as the
    mutation it describes.
    """
    activity_id = f"act_{secrets.token_hex(8)}"
    actor = normalize_actor(ctx.actor).value
    await db.execute(
        """INSERT INTO activities (id, tenant_id, task_id, board_id, action, actor, details_json)
           VALUES (?, ?, ?, ?, ?, ?, ?)""",
        (
            activity_id,
            ctx.tenant_id,
            task_id,
            board_id,
            action,
            actor,
            json.dumps(details or {}),
        ),
    )
    return {
        "id": activity_id,
        "task_id": task_id,
        "board_id": board_id,
        "action": action,
        "actor": actor,
        "details": details or {},
    }


async def list_task_activities(
    db: aiosqlite.Connection,
    tenant_id: str,
    task_id: str,
    agent: AgentIdentity,
    limit: int = 50,
) -> list[dict]:
    cursor = await db.execute(
        """SELECT * FROM activities WHERE tenant_id = ? AND task_id = ?
           ORDER BY created_at DESC, rowid DESC LIMIT ?""",
        (tenant_id, task_id, limit),
    )
    return [_row_to_activity(row, agent) for row in await cursor.fetchall()]


async def list_board_activities(
    db: aiosqlite.Connection,
    tenant_id: str,
    board_id: str,
    agent: AgentIdentity,
    limit: int = 100,
) -> list[dict]:
    cursor = await db.execute(
        """SELECT * FROM activities WHERE tenant_id = ? AND board_id = ?
           ORDER BY created_at DESC, rowid DESC LIMIT ?""",
        (tenant_id, board_id, limit),
    )
    return [_row_to_activity(row, agent) for row in await cursor.fetchall()]
