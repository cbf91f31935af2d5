"""FastAPI app factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import WebConfig

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """App lifespan: init DB, optionally seed demo data, close DB on shutdown."""
    config: WebConfig = app.state.config

    from .db.database import close_db, get_db, init_db

    await init_db(config.db_path)

    if config.seed_demo:
        from .db.seed import seed_db

        await seed_db(await get_db())

    logger.info("Corkboard search ready (db=%s)", config.db_path)

    yield

    await close_db()


def create_app(config: WebConfig | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    config = config or WebConfig.load()

    from .auth.service import configure

    configure(config)

    app = FastAPI(
        title="Corkboard Search",
        description="Workspace-wide search across boards, cards, comments, checklists and attachments",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.config = config

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
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    from .search.router import router as search_router

    app.include_router(search_router)

    @app.get("/api/health")
    async def health():
        return {"status": "ok"}

    return app
