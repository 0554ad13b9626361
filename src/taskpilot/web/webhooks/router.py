"""Webhook ingress routes."""

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Header, HTTPException, Request
from pydantic import ValidationError

from ...integrations.github.models import parse_webhook
from ..context import Actor, ActorContext
from ..deps import Config, Db
from . import service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/webhooks", tags=["webhooks"])


@router.post("/github")
async def github_webhook(
    request: Request,
    db: Db,
    config: Config,
    x_github_event: str | None = Header(None),
    x_hub_signature_256: str | None = Header(None),
    x_github_delivery: str | None = Header(None),
):
    logger.info("GitHub webhook: event=%s delivery=%s", x_github_event, x_github_delivery)
    if not x_github_event:
        raise HTTPException(status_code=400, detail="Missing event header")

    raw = await request.body()
    try:
        payload = json.loads(raw)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON payload") from None
    if not isinstance(payload, dict) or not (payload.get("repository") or {}).get("full_name"):
        raise HTTPException(status_code=400, detail="Missing repository info")

    try:
        event = parse_webhook(x_github_event, payload)
    except ValidationError as e:
        detail = f"Malformed payload: {e.error_count()} validation errors"
        raise HTTPException(status_code=400, detail=detail) from None

    repo = event.repository
    project = await service.find_project(db, repo.owner, repo.repo)
    if project is None:
        return {
            "ok": True,
            "event": event.event,
            "repo": repo.full_name,
            "message": "Repository not linked to any project",
        }

    if project["webhook_secret"] and not service.verify_signature(
        project["webhook_secret"], raw, x_hub_signature_256
    ):
        logger.warning("Rejected %s webhook for %s: bad signature", event.event, repo.full_name)
        raise HTTPException(status_code=401, detail="Invalid signature")

    ctx = ActorContext(
        tenant_id=project["tenant_id"],
        actor=Actor.SYSTEM,
        agent=config.agent,
        dispatch_events=False,
    )
    outcome = await service.handle_github_event(
        db, ctx, project, event, tuple(config.task_ref_prefixes)
    )
    logger.info("GitHub webhook for %s: %d actions", repo.full_name, len(outcome.actions))
    return {
        "ok": True,
        "event": event.event,
        "action": event.action,
        "repo": repo.full_name,
        "actions": outcome.actions,
        "rules": [
            {"rule_id": r.rule_id, "name": r.name, "status": r.status, "message": r.message}
            for r in outcome.rules
        ],
    }
