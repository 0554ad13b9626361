"""Seed database with a demo tenant, board and automation rule."""

from __future__ import annotations

import json
import secrets

import aiosqlite

DEMO_TENANT_ID = "tenant_demo"
DEMO_REPO = ("demo-org", "demo-repo")


def _id(prefix: str) -> str:
    return f"{prefix}_{secrets.token_hex(8)}"


async def seed_db(db: aiosqlite.Connection) -> None:
    """Seed the demo tenant: a four-column board, a linked repository, a PR review rule."""

    # Check if already seeded
    cursor = await db.execute("SELECT COUNT(*) FROM tenants WHERE id = ?", (DEMO_TENANT_ID,))
    row = await cursor.fetchone()
    if row[0] > 0:
        return

    await db.execute(
        "INSERT INTO tenants (id, name) VALUES (?, ?)", (DEMO_TENANT_ID, "Demo Workspace")
    )

    # --- Board ---
    board_id = _id("board")
    await db.execute(
        "INSERT INTO boards (id, tenant_id, name, description) VALUES (?, ?, ?, ?)",
        (board_id, DEMO_TENANT_ID, "Sprint Board", "Main development board"),
    )

    # --- Columns ---
    col_backlog = _id("col")
    col_progress = _id("col")
    col_review = _id("col")
    col_done = _id("col")
    await db.executemany(
        "INSERT INTO columns (id, board_id, title, position, color) VALUES (?, ?, ?, ?, ?)",
        [
            (col_backlog, board_id, "Backlog", 0, "#64748b"),
            (col_progress, board_id, "In Progress", 1, "#3b82f6"),
            (col_review, board_id, "Review", 2, "#f59e0b"),
            (col_done, board_id, "Done", 3, "#22c55e"),
        ],
    )

    # --- Tasks ---
    tasks = [
        (col_backlog, "Design REST API endpoints", "p1", '["backend", "api"]', 0),
        (col_backlog, "Write onboarding docs", "p3", '["docs"]', 1),
        (col_progress, "Fix login redirect loop", "p0", '["bug"]', 0),
        (col_done, "Project setup and scaffolding", "p2", '["devops"]', 0),
    ]
    for seq, (column_id, title, priority, labels, position) in enumerate(tasks, start=1):
        await db.execute(
            """INSERT INTO tasks (id, tenant_id, board_id, column_id, seq, title,
               position, priority, labels, created_by)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, 'human')""",
            (
                f"task_{secrets.token_hex(8)}",
                DEMO_TENANT_ID,
                board_id,
                column_id,
                seq,
                title,
                position,
                priority,
                labels,
            ),
        )

    # --- GitHub project ---
    project_id = _id("proj")
    await db.execute(
        """INSERT INTO projects (id, tenant_id, board_id, name, github_owner, github_repo,
           auto_link_prs, auto_move_tasks, create_tasks_from_issues)
           VALUES (?, ?, ?, ?, ?, ?, 1, 1, 1)""",
        (project_id, DEMO_TENANT_ID, board_id, "Demo", *DEMO_REPO),
    )

    # --- Automation ---
    await db.execute(
        """INSERT INTO automation_rules (id, tenant_id, board_id, name, description,
           trigger, conditions_json, action, action_params_json)
           VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (
            _id("rule"),
            DEMO_TENANT_ID,
            board_id,
            "Review opened pull requests",
            "Create a review task for every PR opened against the repo",
            "github_pr_opened",
            "{}",
            "create_task",
            json.dumps({"labels": ["pr-review"]}),
        ),
    )

    await db.commit()
