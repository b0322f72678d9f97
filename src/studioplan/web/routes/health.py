"""Health check endpoints for Studioplan.

The liveness endpoint only reports that the process answers. The
readiness endpoint additionally verifies that the studio data document
can still be read.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from studioplan.logging import get_logger
from studioplan.studio.service import StudioService
from studioplan.studio.store import StudioStoreError

logger = get_logger(__name__)


class HealthResponse(BaseModel):
    """Health check response model.

    Attributes:
        status: Current health status ("ok")
    """

    status: str


class ReadinessResponse(BaseModel):
    """Readiness check response model.

    Attributes:
        status: Current readiness status ("ok", "unhealthy")
        storage: Data document status ("available", "memory", "unreadable")
    """

    status: str
    storage: str


def get_service(request: Request) -> StudioService:
    """Dependency that retrieves the studio service from app state."""
    return request.app.state.service  # type: ignore[no-any-return]


def create_health_router() -> APIRouter:
    """Create health check router with endpoints.

    Routes:
        GET /health/ - Basic liveness check
        GET /health/ready - Readiness check with storage verification
    """
    router = APIRouter(prefix="/health", tags=["health"])

    @router.get("/", response_model=HealthResponse)
    async def health() -> dict[str, Any]:
        """Basic liveness check."""
        return {"status": "ok"}

    @router.get("/ready", response_model=ReadinessResponse)
    async def readiness(
        service: StudioService = Depends(get_service),  # noqa: B008
    ) -> dict[str, Any]:
        """Readiness check that re-reads the stored document."""
        if service.store is None:
            return {"status": "ok", "storage": "memory"}

        try:
            service.store.load()
        except StudioStoreError as exc:
            logger.warning("readiness_check_failed", storage="unreadable", error=str(exc))
            return {"status": "unhealthy", "storage": "unreadable"}

        logger.debug("readiness_check_passed", storage="available")
        return {"status": "ok", "storage": "available"}

    return router
