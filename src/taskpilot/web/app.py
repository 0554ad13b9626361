"""FastAPI app factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import get_config
from .errors import ResolutionError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """App lifespan: init DB, optionally seed demo data."""
    config = get_config()

    from .db.database import close_db, get_db, init_db

    await init_db(config.db_path)
    logger.info("Database ready at %s", config.db_path)

    if config.seed_demo:
        from .db.seed import seed_db

        await seed_db(await get_db())

    yield

    await close_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    config = get_config()

    app = FastAPI(
        title="TaskPilot",
        description="Natural-language commands and automation rules for kanban boards",
        version="0.1.0",
        lifespan=lifespan,
        debug=config.debug,
    )

    # CORS
    origins = config.cors_origins or [
        "http://localhost",
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:3000",
    ]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routers
    from .activity.router import router as activity_router
    from .automation.router import router as automation_router
    from .boards.router import router as boards_router
    from .commands.router import router as commands_router
    from .events.router import router as events_router
    from .links.router import router as links_router
    from .tasks.router import router as tasks_router
    from .webhooks.router import router as webhooks_router

    app.include_router(activity_router)
    app.include_router(automation_router)
    app.include_router(boards_router)
    app.include_router(commands_router)
    app.include_router(events_router)
    app.include_router(links_router)
    app.include_router(tasks_router)
    app.include_router(webhooks_router)

    # Error handlers
    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(ResolutionError)
    async def resolution_error_handler(request: Request, exc: ResolutionError):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.get("/api/health")
    async def health():
        return {"status": "ok"}

    return app
