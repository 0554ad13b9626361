"""Automation rule routes."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, Response

from ..deps import CurrentContext, Db, verify_board_access
from . import service
from .models import RuleCreate, RuleResponse, RuleUpdate, TriggerKind

router = APIRouter(prefix="/api/automations", tags=["automations"])


@router.get("", response_model=list[RuleResponse])
async def list_rules(
    ctx: CurrentContext,
    db: Db,
    project_id: str | None = None,
    trigger: TriggerKind | None = None,
    include_disabled: bool = Query(False),
):
    return await service.list_rules(
        db,
        ctx.tenant_id,
        project_id=project_id,
        trigger=trigger.value if trigger else None,
        enabled_only=not include_disabled,
    )


@router.post("", response_model=RuleResponse, status_code=201)
async def create_rule(body: RuleCreate, ctx: CurrentContext, db: Db):
    if body.board_id:
        await verify_board_access(db, ctx.tenant_id, body.board_id)
    return await service.create_rule(db, ctx.tenant_id, body)


@router.get("/{rule_id}", response_model=RuleResponse)
async def get_rule(rule_id: str, ctx: CurrentContext, db: Db):
    rule = await service.get_rule(db, ctx.tenant_id, rule_id)
    if rule is None:
        raise HTTPException(status_code=404, detail="Automation rule not found")
    return rule


@router.patch("/{rule_id}", response_model=RuleResponse)
async def update_rule(rule_id: str, body: RuleUpdate, ctx: CurrentContext, db: Db):
    if body.board_id:
        await verify_board_access(db, ctx.tenant_id, body.board_id)
    rule = await service.update_rule(db, ctx.tenant_id, rule_id, body)
    if rule is None:
        raise HTTPException(status_code=404, detail="Automation rule not found")
    return rule


@router.delete("/{rule_id}", status_code=204)
async def delete_rule(rule_id: str, ctx: CurrentContext, db: Db):
    deleted = await service.delete_rule(db, ctx.tenant_id, rule_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Automation rule not found")
    return Response(status_code=204)
