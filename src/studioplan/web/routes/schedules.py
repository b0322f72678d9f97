"""Stateless schedule engine endpoints.

These endpoints expose the schedule generator and recalculator directly:
the caller sends templates or stages plus a project start date and gets
the computed stage list back. Nothing is persisted.

Example:
    >>> from fastapi import FastAPI
    >>> from studioplan.web.routes.schedules import create_schedules_router
    >>>
    >>> app = FastAPI()
    >>> app.include_router(create_schedules_router())
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from studioplan.scheduling.engine import generate_schedule, recalculate_schedule
from studioplan.scheduling.models import Stage, StageTemplate
from studioplan.scheduling.workdays import ScheduleInputError
from studioplan.studio.service import StudioService


class GenerateRequest(BaseModel):
    """Request schema for generating a schedule.

    Attributes:
        project_start_date: ISO date anchoring the schedule (may be empty)
        completed_stages: Number of leading stages to mark completed
        templates: Stage templates; the studio templates when omitted
    """

    project_start_date: str | None = None
    completed_stages: int = Field(default=0, ge=0)
    templates: list[StageTemplate] | None = None


class RecalculateRequest(BaseModel):
    """Request schema for recalculating an edited schedule.

    Attributes:
        project_start_date: ISO date anchoring the schedule (may be empty)
        stages: Current stage list, in order
    """

    project_start_date: str | None = None
    stages: list[Stage] = Field(default_factory=list)


class ScheduleResponse(BaseModel):
    """Computed stage list."""

    stages: list[Stage]


def get_service(request: Request) -> StudioService:
    """Dependency that retrieves the studio service from app state."""
    return request.app.state.service  # type: ignore[no-any-return]


def create_schedules_router() -> APIRouter:
    """Create the schedule engine router.

    Routes:
        POST /schedules/generate - Build a schedule from templates
        POST /schedules/recalculate - Re-chain an edited schedule
    """
    router = APIRouter(prefix="/schedules", tags=["schedules"])

    @router.post("/generate", response_model=ScheduleResponse)
    async def generate(
        body: GenerateRequest,
        service: StudioService = Depends(get_service),  # noqa: B008
    ) -> ScheduleResponse:
        """Generate a schedule.

        Raises:
            HTTPException: 422 if the start date is malformed
        """
        templates = body.templates if body.templates is not None else service.state.stage_templates
        try:
            stages = generate_schedule(templates, body.project_start_date, body.completed_stages)
        except ScheduleInputError as exc:
            raise HTTPException(
                status_code=422,
                detail=str(exc),
            ) from exc
        return ScheduleResponse(stages=stages)

    @router.post("/recalculate", response_model=ScheduleResponse)
    async def recalculate(body: RecalculateRequest) -> ScheduleResponse:
        """Recalculate a schedule after an edit.

        Raises:
            HTTPException: 422 if the start date is malformed
        """
        try:
            stages = recalculate_schedule(body.stages, body.project_start_date)
        except ScheduleInputError as exc:
            raise HTTPException(
                status_code=422,
                detail=str(exc),
            ) from exc
        return ScheduleResponse(stages=stages)

    return router
