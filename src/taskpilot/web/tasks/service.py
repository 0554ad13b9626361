"""Task service - store primitives shared by commands, automation and webhooks.

Each mutation is one unit of work: the change and its activity record
commit together, and the board event goes out once the commit lands.
"""

from __future__ import annotations

import json
import secrets
from collections.abc import Iterable, Sequence
from datetime import UTC, date, datetime
from functools import partial

import aiosqlite

from ...commands.models import DEFAULT_PRIORITY, Priority, QueryKind
from ...commands.resolver import find_column_by_family
from ...integrations.github.refs import TaskRef
from ..activity.service import log_activity
from ..context import ActorContext
from ..db.database import after_commit, transaction
from ..errors import TaskAlreadyArchived, TaskNotArchived
from ..events import Event, EventType, event_manager


def _row_to_task(row: aiosqlite.Row) -> dict:
    task = dict(row)
    task["labels"] = json.loads(task.get("labels") or "[]")
    task["archived"] = bool(task.get("archived"))
    return task


async def get_task(db: aiosqlite.Connection, tenant_id: str, task_id: str) -> dict | None:
    cursor = await db.execute(
        "SELECT * FROM tasks WHERE id = ? AND tenant_id = ?", (task_id, tenant_id)
    )
    row = await cursor.fetchone()
    return _row_to_task(row) if row else None


async def list_tasks(
    db: aiosqlite.Connection,
    tenant_id: str,
    board_id: str,
    include_archived: bool = False,
) -> list[dict]:
    """Point-in-time snapshot of a board's tasks in creation order."""
    sql = "SELECT * FROM tasks WHERE tenant_id = ? AND board_id = ?"
    if not include_archived:
        sql += " AND archived = 0"
    cursor = await db.execute(sql + " ORDER BY seq", (tenant_id, board_id))
    return [_row_to_task(r) for r in await cursor.fetchall()]


async def find_tasks_by_refs(
    db: aiosqlite.Connection,
    tenant_id: str,
    refs: Iterable[TaskRef],
    board_id: str | None = None,
) -> list[dict]:
    """Active tasks named by extracted references, in reference order."""
    found: list[dict] = []
    seen: set[str] = set()
    for ref in refs:
        if ref.kind == "id":
            sql, value = "SELECT * FROM tasks WHERE tenant_id = ? AND id = ?", ref.value
        else:
            sql, value = "SELECT * FROM tasks WHERE tenant_id = ? AND seq = ?", ref.seq
        params: list = [tenant_id, value]
        sql += " AND archived = 0"
        if board_id:
            sql += " AND board_id = ?"
            params.append(board_id)
        cursor = await db.execute(sql, params)
        row = await cursor.fetchone()
        if row and row["id"] not in seen:
            seen.add(row["id"])
            found.append(_row_to_task(row))
    return found


async def _column_title(db: aiosqlite.Connection, column_id: str) -> str:
    cursor = await db.execute("SELECT title FROM columns WHERE id = ?", (column_id,))
    row = await cursor.fetchone()
    return row["title"] if row else ""


async def _next_position(db: aiosqlite.Connection, column_id: str) -> float:
    cursor = await db.execute(
        "SELECT COALESCE(MAX(position), -1) FROM tasks WHERE column_id = ?", (column_id,)
    )
    row = await cursor.fetchone()
    return row[0] + 1


async def _touch(db: aiosqlite.Connection, task_id: str, sets: dict) -> None:
    assignments = ", ".join(f"{key} = ?" for key in sets)
    await db.execute(
        f"UPDATE tasks SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
        [*sets.values(), task_id],
    )


async def _publish(
    db: aiosqlite.Connection, board_id: str, event_type: EventType, data: dict
) -> None:
    event = Event(event_type=event_type, data=data)
    await after_commit(db, partial(event_manager.publish_to_board, board_id, event))


def _now_sql() -> str:
    return datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S")


async def insert_task(
    db: aiosqlite.Connection,
    ctx: ActorContext,
    board_id: str,
    column_id: str,
    title: str,
    description: str = "",
    priority: Priority | str = DEFAULT_PRIORITY,
    due_date: date | None = None,
    labels: Sequence[str] = (),
    note: str | None = None,
) -> dict:
    """Insert a task at the bottom of ``column_id``."""
    task_id = f"task_{secrets.token_hex(8)}"

    async with transaction(db):
        cursor = await db.execute(
            "SELECT COALESCE(MAX(seq), 0) + 1 FROM tasks WHERE tenant_id = ?", (ctx.tenant_id,)
        )
        seq = (await cursor.fetchone())[0]
        position = await _next_position(db, column_id)

        await db.execute(
            """INSERT INTO tasks (id, tenant_id, board_id, column_id, seq, title, description,
               position, priority, due_date, labels, created_by)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                task_id,
                ctx.tenant_id,
                board_id,
                column_id,
                seq,
                title,
                description,
                position,
                Priority(priority).value,
                due_date.isoformat() if due_date else None,
                json.dumps(list(labels)),
                ctx.actor.value,
            ),
        )
        details = {"column": await _column_title(db, column_id)}
        if note:
            details["note"] = note
        await log_activity(db, ctx, board_id, "created", task_id, details)

        task = await get_task(db, ctx.tenant_id, task_id)
        await _publish(db, board_id, EventType.TASK_CREATED, task)
    return task


async def move_task(
    db: aiosqlite.Connection,
    ctx: ActorContext,
    task: dict,
    column_id: str,
    note: str | None = None,
) -> dict:
    """Move a task to the bottom of another column.

    Moving a task to the column it is already in changes nothing and
    records nothing.
    """
    from_column = task["column_id"]
    if from_column == column_id:
        return task

    async with transaction(db):
        position = await _next_position(db, column_id)
        await _touch(db, task["id"], {"column_id": column_id, "position": position})

        details = {
            "from": await _column_title(db, from_column),
            "to": await _column_title(db, column_id),
            "from_column_id": from_column,
            "to_column_id": column_id,
        }
        if note:
            details["note"] = note
        await log_activity(db, ctx, task["board_id"], "moved", task["id"], details)

        moved = await get_task(db, ctx.tenant_id, task["id"])
        await _publish(
            db,
            task["board_id"],
            EventType.TASK_MOVED,
            {
                "task_id": task["id"],
                "from_column": from_column,
                "to_column": column_id,
                "task": moved,
            },
        )
    return moved


async def set_priority(
    db: aiosqlite.Connection, ctx: ActorContext, task: dict, priority: Priority | str
) -> dict:
    new = Priority(priority).value
    async with transaction(db):
        await _touch(db, task["id"], {"priority": new})
        await log_activity(
            db,
            ctx,
            task["board_id"],
            "priority_changed",
            task["id"],
            {"from": task.get("priority") or "none", "to": new},
        )
        updated = await get_task(db, ctx.tenant_id, task["id"])
        await _publish(db, task["board_id"], EventType.TASK_UPDATED, updated)
    return updated


async def set_due_date(
    db: aiosqlite.Connection, ctx: ActorContext, task: dict, due_date: date
) -> dict:
    new = due_date.isoformat()
    async with transaction(db):
        await _touch(db, task["id"], {"due_date": new})
        await log_activity(
            db,
            ctx,
            task["board_id"],
            "updated",
            task["id"],
            {"field": "due_date", "from": task.get("due_date"), "to": new},
        )
        updated = await get_task(db, ctx.tenant_id, task["id"])
        await _publish(db, task["board_id"], EventType.TASK_UPDATED, updated)
    return updated


_TASK_UPDATABLE_FIELDS = {"title", "description", "labels", "assignee_id"}


async def update_task(
    db: aiosqlite.Connection, ctx: ActorContext, task: dict, updates: dict
) -> dict:
    """Update free-form fields; only fields whose value changes are written."""
    changes: dict = {}
    for key, value in updates.items():
        if key in _TASK_UPDATABLE_FIELDS and value is not None and task.get(key) != value:
            changes[key] = value
    if not changes:
        return task

    sets = {k: json.dumps(v) if k == "labels" else v for k, v in changes.items()}
    async with transaction(db):
        await _touch(db, task["id"], sets)
        await log_activity(
            db,
            ctx,
            task["board_id"],
            "updated",
            task["id"],
            {"fields": {k: {"from": task.get(k), "to": v} for k, v in changes.items()}},
        )
        updated = await get_task(db, ctx.tenant_id, task["id"])
        await _publish(db, task["board_id"], EventType.TASK_UPDATED, updated)
    return updated


async def archive_task(db: aiosqlite.Connection, ctx: ActorContext, task: dict) -> dict:
    """Archive one task.

    Raises:
        TaskAlreadyArchived: the task is archived already.
    """
    if task.get("archived"):
        raise TaskAlreadyArchived(task["title"])

    async with transaction(db):
        await _touch(
            db,
            task["id"],
            {"archived": 1, "archived_at": _now_sql(), "archived_by": ctx.actor.value},
        )
        await log_activity(db, ctx, task["board_id"], "archived", task["id"])
        archived = await get_task(db, ctx.tenant_id, task["id"])
        await _publish(db, task["board_id"], EventType.TASK_ARCHIVED, archived)
    return archived


async def restore_task(db: aiosqlite.Connection, ctx: ActorContext, task: dict) -> dict:
    """Bring an archived task back onto its column.

    Raises:
        TaskNotArchived: the task is not archived.
    """
    if not task.get("archived"):
        raise TaskNotArchived(task["title"])

    async with transaction(db):
        await _touch(db, task["id"], {"archived": 0, "archived_at": None, "archived_by": None})
        await log_activity(db, ctx, task["board_id"], "restored", task["id"])
        restored = await get_task(db, ctx.tenant_id, task["id"])
        await _publish(db, task["board_id"], EventType.TASK_RESTORED, restored)
    return restored


async def archive_column_tasks(
    db: aiosqlite.Connection, ctx: ActorContext, board_id: str, column_id: str
) -> list[dict]:
    """Archive every active task in a column; one activity record per task."""
    async with transaction(db):
        cursor = await db.execute(
            """SELECT * FROM tasks WHERE tenant_id = ? AND board_id = ? AND column_id = ?
               AND archived = 0 ORDER BY position, seq""",
            (ctx.tenant_id, board_id, column_id),
        )
        tasks = [_row_to_task(r) for r in await cursor.fetchall()]
        if not tasks:
            return []

        archived_at = _now_sql()
        for task in tasks:
            await _touch(
                db,
                task["id"],
                {"archived": 1, "archived_at": archived_at, "archived_by": ctx.actor.value},
            )
            await log_activity(db, ctx, board_id, "archived", task["id"], {"bulk": True})

        ids = [t["id"] for t in tasks]
        await _publish(
            db, board_id, EventType.TASKS_ARCHIVED, {"task_ids": ids, "count": len(ids)}
        )
        return [await get_task(db, ctx.tenant_id, task_id) for task_id in ids]


async def add_comment(
    db: aiosqlite.Connection, ctx: ActorContext, task: dict, content: str
) -> dict:
    comment_id = f"cmt_{secrets.token_hex(8)}"
    author = ctx.user_id or ctx.actor.value
    async with transaction(db):
        await db.execute(
            """INSERT INTO task_comments (id, tenant_id, task_id, author, content)
               VALUES (?, ?, ?, ?, ?)""",
            (comment_id, ctx.tenant_id, task["id"], author, content),
        )
        await log_activity(db, ctx, task["board_id"], "commented", task["id"])

        cursor = await db.execute("SELECT * FROM task_comments WHERE id = ?", (comment_id,))
        comment = dict(await cursor.fetchone())
        await _publish(db, task["board_id"], EventType.COMMENT_ADDED, comment)
    return comment


async def query_tasks(
    db: aiosqlite.Connection,
    tenant_id: str,
    board: dict,
    kind: QueryKind,
    arg: str | None = None,
    today: date | None = None,
    stuck_days: int = 3,
    limit: int = 20,
) -> list[dict]:
    """Active tasks on a board selected by a query kind.

    Sorted by priority, then order within the column. A column-based kind
    on a board with no matching column finds nothing.
    """
    today = today or date.today()
    sql = "SELECT * FROM tasks WHERE tenant_id = ? AND board_id = ? AND archived = 0"
    params: list = [tenant_id, board["id"]]

    bucket = {
        QueryKind.STUCK: "in_progress",
        QueryKind.IN_PROGRESS: "in_progress",
        QueryKind.TODO: "todo",
        QueryKind.DONE: "done",
    }.get(kind)
    if bucket:
        column = find_column_by_family(board["columns"], bucket)
        if column is None:
            return []
        sql += " AND column_id = ?"
        params.append(column["id"])

    if kind is QueryKind.OVERDUE:
        sql += " AND due_date IS NOT NULL AND due_date < ?"
        params.append(today.isoformat())
    elif kind is QueryKind.STUCK:
        sql += " AND updated_at < datetime('now', ?)"
        params.append(f"-{stuck_days} days")
    elif kind is QueryKind.PRIORITY and arg:
        sql += " AND priority = ?"
        params.append(Priority(arg).value)
    elif kind is QueryKind.TEXT and arg:
        sql += " AND lower(title) LIKE ?"
        params.append(f"%{arg.lower()}%")

    sql += " ORDER BY priority, position, seq LIMIT ?"
    params.append(limit)
    cursor = await db.execute(sql, params)
    return [_row_to_task(r) for r in await cursor.fetchall()]
