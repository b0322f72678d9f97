"""Work-day schedule engine for Studioplan.

Business-day arithmetic, schedule generation and recalculation, and the
read-side progress projections built on the engine's output.
"""

from __future__ import annotations

from studioplan.scheduling.engine import (
    effective_end,
    generate_schedule,
    rebuild_schedule,
    recalculate_schedule,
)
from studioplan.scheduling.models import (
    DEFAULT_PHASE_MAPPING,
    DEFAULT_STAGE_TEMPLATES,
    PhaseStatus,
    PlannerTaskStatus,
    ProjectHealth,
    ProjectSchedule,
    Stage,
    StageStatus,
    StageTemplate,
    sort_templates,
)
from studioplan.scheduling.progress import (
    AttentionPoint,
    PhaseProgress,
    PlannerTask,
    completion_percentage,
    days_remaining,
    planner_tasks_for_day,
    project_health,
    project_progress,
    stage_status,
    upcoming_deadlines,
)
from studioplan.scheduling.workdays import (
    ScheduleInputError,
    add_work_days,
    business_days_between,
    format_calendar_date,
    is_business_day,
    next_business_day,
    parse_calendar_date,
)

__all__ = [
    # Business days
    "ScheduleInputError",
    "add_work_days",
    "business_days_between",
    "format_calendar_date",
    "is_business_day",
    "next_business_day",
    "parse_calendar_date",
    # Models
    "DEFAULT_PHASE_MAPPING",
    "DEFAULT_STAGE_TEMPLATES",
    "PhaseStatus",
    "PlannerTaskStatus",
    "ProjectHealth",
    "ProjectSchedule",
    "Stage",
    "StageStatus",
    "StageTemplate",
    "sort_templates",
    # Engine
    "effective_end",
    "generate_schedule",
    "rebuild_schedule",
    "recalculate_schedule",
    # Progress
    "AttentionPoint",
    "PhaseProgress",
    "PlannerTask",
    "completion_percentage",
    "days_remaining",
    "planner_tasks_for_day",
    "project_health",
    "project_progress",
    "stage_status",
    "upcoming_deadlines",
]
