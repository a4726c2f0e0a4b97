"""
FastAPI application with assembled routers.

Initializes FastAPI app with all API routers and configures uvicorn server.

Dependencies: fastapi, tutordesk.api.routers, uvicorn
System role: API entry point with router assembly and server launch
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tutordesk.api.deps.dependencies import get_service_cache
from tutordesk.boundary.db.connection import create_tables
from tutordesk.configs import get_settings
from tutordesk.observability.logger import configure_logging
from tutordesk.observability.middleware import CorrelationMiddleware, RequestLoggingMiddleware

from .routers import (
    files_router,
    health_router,
    sessions_router,
    streams_router,
    users_router,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Handles startup and shutdown events.
    """
    logger = logging.getLogger("uvicorn")

    # Startup
    cache = get_service_cache()
    settings = cache.container.settings
    if settings.database.is_sqlite:
        await create_tables(cache.container.store.engine)
        logger.info("SQLite tables created")
    logger.info("Service container ready")

    yield

    # Shutdown
    await cache.container.store.dispose()
    cache.clear()
    logger.info("Service container cleared")


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application with routers.

    Returns:
        FastAPI: Configured application instance with all routers registered
    """
    configure_logging(get_settings().log_level)

    app = FastAPI(
        title="TutorDesk API",
        description="Tutoring sessions with replicated session records and live streams",
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

    # Add observability middleware (last added runs first)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationMiddleware)

    # Register all routers with /api/v1 prefix for versioning
    app.include_router(health_router, prefix="/api/v1")
    app.include_router(sessions_router, prefix="/api/v1")
    app.include_router(files_router, prefix="/api/v1")
    app.include_router(users_router, prefix="/api/v1")
    app.include_router(streams_router, prefix="/api/v1")

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "tutordesk.api.main:app",
        host="0.0.0.0",
        port=8000,
    )
