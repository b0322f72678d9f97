"""Dashboard endpoints for Studioplan.

Read-only views over every active project: upcoming deadlines, health
counts, the planner for a given day and overdue payments.
"""

from __future__ import annotations

from collections import Counter
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

from studioplan.config import StudioplanConfig
from studioplan.logging import get_logger
from studioplan.scheduling.models import ProjectHealth
from studioplan.scheduling.progress import (
    AttentionPoint,
    PlannerTask,
    planner_tasks_for_day,
    project_health,
    upcoming_deadlines,
)
from studioplan.scheduling.workdays import ScheduleInputError, parse_calendar_date
from studioplan.studio.models import LateInstallment
from studioplan.studio.service import StudioService

logger = get_logger(__name__)


class DashboardSummary(BaseModel):
    """Counts of active projects per health status."""

    active_projects: int
    on_time: int
    in_progress: int
    delayed: int


def get_service(request: Request) -> StudioService:
    """Extract the studio service from FastAPI app state."""
    return request.app.state.service  # type: ignore[no-any-return]


def get_config(request: Request) -> StudioplanConfig:
    """Extract the configuration from FastAPI app state."""
    return request.app.state.config  # type: ignore[no-any-return]


def create_dashboard_router() -> APIRouter:
    """Create the dashboard router.

    Routes:
        GET /dashboard/attention - Upcoming stage deadlines
        GET /dashboard/summary - Project health counts
        GET /dashboard/planner - Stages active on a day
        GET /dashboard/late-payments - Overdue installments
    """
    router = APIRouter(prefix="/dashboard", tags=["dashboard"])

    @router.get("/attention", response_model=list[AttentionPoint])
    async def attention(
        service: StudioService = Depends(get_service),  # noqa: B008
        config: StudioplanConfig = Depends(get_config),  # noqa: B008
    ) -> list[AttentionPoint]:
        """Next deadline of each active project due within the attention window."""
        points = upcoming_deadlines(
            service.state.active_schedules(),
            date.today(),
            config.schedule.attention_window_days,
        )
        logger.debug("attention_points_listed", count=len(points))
        return points

    @router.get("/summary", response_model=DashboardSummary)
    async def summary(
        service: StudioService = Depends(get_service),  # noqa: B008
    ) -> DashboardSummary:
        """Health of every active project."""
        today = date.today()
        schedules = service.state.active_schedules()
        counts = Counter(project_health(s, today) for s in schedules)
        return DashboardSummary(
            active_projects=len(schedules),
            on_time=counts[ProjectHealth.ON_TIME],
            in_progress=counts[ProjectHealth.IN_PROGRESS],
            delayed=counts[ProjectHealth.DELAYED],
        )

    @router.get("/planner", response_model=list[PlannerTask])
    async def planner(
        day: str | None = None,
        service: StudioService = Depends(get_service),  # noqa: B008
    ) -> list[PlannerTask]:
        """Stages whose working window covers ``day`` (today by default).

        Raises:
            HTTPException: 422 if ``day`` is malformed
        """
        try:
            target = parse_calendar_date(day, "day")
        except ScheduleInputError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc

        today = date.today()
        return planner_tasks_for_day(
            service.state.active_schedules(), target or today, today
        )

    @router.get("/late-payments", response_model=list[LateInstallment])
    async def late_payments(
        service: StudioService = Depends(get_service),  # noqa: B008
    ) -> list[LateInstallment]:
        """Pending installments past due, most overdue first."""
        return service.late_installments(date.today())

    return router
