"""Automation rule service - CRUD and trigger bookkeeping."""

from __future__ import annotations

import json
import secrets

import aiosqlite

from ..db.database import transaction
from .models import RuleConditions, RuleCreate, RuleUpdate


def _row_to_rule(row: aiosqlite.Row) -> dict:
    rule = dict(row)
    rule["enabled"] = bool(rule["enabled"])
    rule["conditions"] = RuleConditions.model_validate(
        json.loads(rule.pop("conditions_json") or "{}")
    )
    rule["action_params"] = json.loads(rule.pop("action_params_json") or "{}")
    return rule


async def get_rule(db: aiosqlite.Connection, tenant_id: str, rule_id: str) -> dict | None:
    cursor = await db.execute(
        "SELECT * FROM automation_rules WHERE id = ? AND tenant_id = ?", (rule_id, tenant_id)
    )
    row = await cursor.fetchone()
    return _row_to_rule(row) if row else None


async def list_rules(
    db: aiosqlite.Connection,
    tenant_id: str,
    project_id: str | None = None,
    trigger: str | None = None,
    enabled_only: bool = True,
) -> list[dict]:
    sql = "SELECT * FROM automation_rules WHERE tenant_id = ?"
    params: list = [tenant_id]
    if project_id:
        sql += " AND project_id = ?"
        params.append(project_id)
    if trigger:
        sql += " AND trigger = ?"
        params.append(trigger)
    if enabled_only:
        sql += " AND enabled = 1"
    cursor = await db.execute(sql + " ORDER BY created_at, rowid", params)
    return [_row_to_rule(r) for r in await cursor.fetchall()]


async def match_rules(
    db: aiosqlite.Connection,
    tenant_id: str,
    trigger: str,
    board_id: str | None = None,
    project_id: str | None = None,
) -> list[dict]:
    """Enabled rules for a trigger, in fetch order.

    A rule scoped to a project or board only applies to events from that
    project or board; an unscoped rule applies tenant-wide.
    """
    cursor = await db.execute(
        """SELECT * FROM automation_rules
           WHERE tenant_id = ? AND trigger = ? AND enabled = 1
             AND (project_id IS NULL OR project_id = ?)
             AND (board_id IS NULL OR board_id = ?)
           ORDER BY created_at, rowid""",
        (tenant_id, trigger, project_id or "", board_id or ""),
    )
    return [_row_to_rule(r) for r in await cursor.fetchall()]


async def create_rule(db: aiosqlite.Connection, tenant_id: str, body: RuleCreate) -> dict:
    rule_id = f"rule_{secrets.token_hex(8)}"
    async with transaction(db):
        await db.execute(
            """INSERT INTO automation_rules (id, tenant_id, project_id, board_id, name,
               description, enabled, trigger, conditions_json, action, action_params_json)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                rule_id,
                tenant_id,
                body.project_id,
                body.board_id,
                body.name,
                body.description,
                int(body.enabled),
                body.trigger.value,
                body.conditions.model_dump_json(exclude_defaults=True),
                body.action.value,
                json.dumps(body.action_params),
            ),
        )
    return await get_rule(db, tenant_id, rule_id)


async def update_rule(
    db: aiosqlite.Connection, tenant_id: str, rule_id: str, body: RuleUpdate
) -> dict | None:
    rule = await get_rule(db, tenant_id, rule_id)
    if not rule:
        return None

    sets = []
    values: list = []
    for key, val in body.model_dump(mode="json", exclude_unset=True).items():
        if val is None and key not in ("project_id", "board_id"):
            continue
        if key == "conditions":
            conditions = RuleConditions.model_validate(val)
            key, val = "conditions_json", conditions.model_dump_json(exclude_defaults=True)
        elif key == "action_params":
            key, val = "action_params_json", json.dumps(val)
        elif key == "enabled":
            val = int(val)
        sets.append(f"{key} = ?")
        values.append(val)

    if not sets:
        return rule

    sets.append("updated_at = CURRENT_TIMESTAMP")
    values.extend([rule_id, tenant_id])
    async with transaction(db):
        await db.execute(
            f"UPDATE automation_rules SET {', '.join(sets)} WHERE id = ? AND tenant_id = ?",
            values,
        )
    return await get_rule(db, tenant_id, rule_id)


async def delete_rule(db: aiosqlite.Connection, tenant_id: str, rule_id: str) -> bool:
    async with transaction(db):
        cursor = await db.execute(
            "DELETE FROM automation_rules WHERE id = ? AND tenant_id = ?", (rule_id, tenant_id)
        )
    return cursor.rowcount > 0


async def record_trigger(db: aiosqlite.Connection, rule_id: str) -> None:
    """Count one successful execution of a rule."""
    async with transaction(db):
        await db.execute(
            """UPDATE automation_rules
               SET trigger_count = trigger_count + 1, last_triggered_at = CURRENT_TIMESTAMP
               WHERE id = ?""",
            (rule_id,),
        )
