"""Shared fixtures: a tenant with a four-column board in a scratch database."""

from __future__ import annotations

import json
from pathlib import Path

import aiosqlite
import pytest
import pytest_asyncio

from taskpilot.web.boards.service import get_board
from taskpilot.web.context import Actor, ActorContext

SCHEMA_PATH = Path(__file__).parent.parent / "src" / "taskpilot" / "web" / "db" / "schema.sql"

TENANT = "t1"
BOARD = "board1"


@pytest_asyncio.fixture
async def db(tmp_path):
    """Create a test database with the full schema."""
    db_path = str(tmp_path / "test.db")
    conn = await aiosqlite.connect(db_path)
    conn.row_factory = aiosqlite.Row
    await conn.execute("PRAGMA foreign_keys=ON")

    schema_sql = SCHEMA_PATH.read_text()
    await conn.executescript(schema_sql)
    await conn.commit()

    # Tenants
    await conn.execute("INSERT INTO tenants (id, name) VALUES (?, ?)", (TENANT, "Acme"))
    await conn.execute("INSERT INTO tenants (id, name) VALUES (?, ?)", ("t2", "Other"))
    # Create a board
    await conn.execute(
        "INSERT INTO boards (id, tenant_id, name) VALUES (?, ?, ?)",
        (BOARD, TENANT, "Sprint Board"),
    )
    # Create columns
    await conn.executemany(
        "INSERT INTO columns (id, board_id, title, position) VALUES (?, ?, ?, ?)",
        [
            ("col_backlog", BOARD, "Backlog", 0),
            ("col_progress", BOARD, "In Progress", 1),
            ("col_review", BOARD, "Review", 2),
            ("col_done", BOARD, "Done", 3),
        ],
    )
    await conn.commit()

    yield conn

    await conn.close()


@pytest.fixture
def ctx() -> ActorContext:
    return ActorContext(tenant_id=TENANT, actor=Actor.HUMAN, user_id="user1")


@pytest_asyncio.fixture
async def board(db) -> dict:
    return await get_board(db, TENANT, BOARD)


@pytest.fixture
def make_task(db):
    """Insert a task directly via SQL; returns its id."""
    counter = {"seq": 0}

    async def _make(
        title: str,
        column_id: str = "col_backlog",
        task_id: str | None = None,
        priority: str = "p2",
        position: float | None = None,
        due_date: str | None = None,
        labels: list[str] | None = None,
        archived: bool = False,
        tenant_id: str = TENANT,
        board_id: str = BOARD,
        updated_at: str | None = None,
    ) -> str:
        counter["seq"] += 1
        seq = counter["seq"]
        task_id = task_id or f"task_{seq:016x}"
        await db.execute(
            """INSERT INTO tasks (id, tenant_id, board_id, column_id, seq, title, position,
               priority, due_date, labels, archived, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, COALESCE(?, CURRENT_TIMESTAMP))""",
            (
                task_id,
                tenant_id,
                board_id,
                column_id,
                seq,
                title,
                seq if position is None else position,
                priority,
                due_date,
                json.dumps(labels or []),
                int(archived),
                updated_at,
            ),
        )
        await db.commit()
        return task_id

    return _make


@pytest.fixture
def activities(db):
    """Activity rows for a task, oldest first, with decoded details."""

    async def _activities(task_id: str) -> list[dict]:
        cursor = await db.execute(
            "SELECT * FROM activities WHERE task_id = ? ORDER BY rowid", (task_id,)
        )
        rows = [dict(r) for r in await cursor.fetchall()]
        for row in rows:
            row["details"] = json.loads(row["details_json"])
        return rows

    return _activities
