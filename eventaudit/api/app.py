"""
FastAPI application for the audited event store.
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI

from .. import __version__
from ..database import Database
from .routes import router

logger = logging.getLogger(__name__)


def create_app(database: Optional[Database] = None, close_on_shutdown: bool = False) -> FastAPI:
    """Build the app around an explicitly constructed storage handle.

    When no handle is given one is created from ``DatabaseConfig`` and closed
    on shutdown.
    """
    if database is None:
        database = Database()
        close_on_shutdown = True

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator:
        # Startup
        logger.info("eventaudit API starting up")
        database.init_schema()

        yield

        # Shutdown
        logger.info("eventaudit API shutting down")
        if close_on_shutdown:
            database.close()

    app = FastAPI(
        title="eventaudit",
        description="Audited event store with revision history",
        version=__version__,
        lifespan=lifespan
    )
    app.state.database = database
    app.include_router(router, prefix="/api")

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "ok",
            "database": "closed" if database.closed else "open",
        }

    return app
