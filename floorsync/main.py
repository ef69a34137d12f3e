"""FastAPI application entry point for Floor Sync."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .config import Settings, settings as default_settings
from .core import FloorCoordinator, RecommendationRanker
from .api.deps import ConnectionManager
from .api.routes import actions, orders, recommendations, status, tables, websocket

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan handler for startup/shutdown."""
    settings: Settings = app.state.settings
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Starting %s...", settings.app_name)

    coordinator: FloorCoordinator = app.state.coordinator
    manager: ConnectionManager = app.state.connection_manager
    manager.attach(coordinator.bus, asyncio.get_running_loop())

    cleanup_task = asyncio.create_task(
        coordinator.bus.run_cleanup_loop(
            settings.cleanup_interval_seconds, settings.pending_max_age_seconds
        )
    )

    yield

    logger.info("Shutting down...")
    coordinator.bus.stop()
    cleanup_task.cancel()
    try:
        await cleanup_task
    except asyncio.CancelledError:
        pass
    manager.detach()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application with a fresh coordinator."""
    settings = settings or default_settings

    app = FastAPI(
        title=settings.app_name,
        description="Table status sync and service prioritization for restaurant floors",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.coordinator = FloorCoordinator(
        ranker=RecommendationRanker(
            limit=settings.recommendation_limit,
            default_max_wait=settings.default_max_wait_minutes,
        )
    )
    app.state.connection_manager = ConnectionManager()

    # CORS middleware for frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://localhost:3000", "*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(tables.router, prefix=settings.api_prefix)
    app.include_router(status.router, prefix=settings.api_prefix)
    app.include_router(orders.router, prefix=settings.api_prefix)
    app.include_router(recommendations.router, prefix=settings.api_prefix)
    app.include_router(actions.router, prefix=settings.api_prefix)
    app.include_router(websocket.router)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": settings.app_name,
            "version": __version__,
            "status": "running",
            "docs": "/docs",
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "floorsync.main:app",
        host="0.0.0.0",
        port=8000,
        reload=default_settings.debug,
    )
