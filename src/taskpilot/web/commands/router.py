"""Command bar route."""

from __future__ import annotations

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from ...commands.classifier import describe_command, parse_command
from ..boards.service import resolve_board
from ..deps import Config, CurrentContext, Db
from ..errors import CommandError, ResolutionError
from .executor import execute_command
from .models import CommandRequest, CommandResponse, CommandResultBody, CommandSummary

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/commands", tags=["commands"])


@router.post("", response_model=CommandResponse)
async def run_command(body: CommandRequest, ctx: CurrentContext, db: Db, config: Config):
    cmd = parse_command(body.text, min_confidence=config.min_confidence)
    response = CommandResponse(
        success=False,
        command=CommandSummary(
            type=cmd.type.value,
            description=describe_command(cmd),
            confidence=cmd.confidence,
        ),
    )

    try:
        board = await resolve_board(db, ctx.tenant_id, body.board_id)
        result = await execute_command(
            db,
            ctx,
            board,
            cmd,
            query_limit=config.query_limit,
            stuck_days=config.stuck_days,
        )
    except (CommandError, ResolutionError) as e:
        logger.info("Command %r not executed: %s", body.text, e.message)
        response.error = e.message
        return JSONResponse(status_code=e.status_code, content=response.model_dump())

    response.success = True
    response.result = CommandResultBody(**result.to_dict())
    return response
