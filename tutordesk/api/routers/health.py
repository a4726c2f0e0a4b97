"""
Health check API endpoints.

Routes: GET /health, GET /health/db

Dependencies: sqlalchemy, tutordesk.application
System role: Health check HTTP API
"""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import text

from tutordesk.api.deps import get_container
from tutordesk.application.container import ServiceContainer
from tutordesk.core.exceptions import TransientStoreFailure


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    message: str


router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Basic health check."""
    return HealthResponse(status="healthy", message="Server Healthy")


@router.get("/db", response_model=HealthResponse)
async def health_check_db(container: ServiceContainer = Depends(get_container)):
    """Database health check: runs SELECT 1 through the record store."""

    async def _ping(db):
        await db.execute(text("SELECT 1"))

    try:
        await container.store.execute("health_check", _ping)
    except TransientStoreFailure as e:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=HealthResponse(status="unhealthy", message=e.message).model_dump(),
        )
    return HealthResponse(status="healthy", message="Database connection OK")
