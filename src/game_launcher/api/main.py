"""FastAPI application entry point for the game launcher API."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from game_launcher.api.routes import files, health, themes

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Initialize the database and sweep stale extractions on startup."""
    from game_launcher.api.dependencies import get_orchestrator, get_settings
    from game_launcher.data.db import init_db

    init_db()
    orchestrator = get_orchestrator(get_settings())
    orchestrator.sweep_orphaned_extractions()
    logger.info("Storage root: %s", orchestrator.storage_root)
    yield


app = FastAPI(
    title="Game Launcher API",
    description="API for uploading, storing and serving browser game clients",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(files.router, prefix="/api")
app.include_router(themes.router, prefix="/api")


def main() -> None:
    """Start the development server."""
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    uvicorn.run(
        "game_launcher.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )


if __name__ == "__main__":
    main()
