"""Read-side projections over project schedules.

Nothing here recomputes dates: every function reads the ``start_date``,
``deadline`` and ``completion_date`` values the engine produced. ``today``
is always an explicit argument so results are reproducible; it defaults
to the local calendar date.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from datetime import date

from pydantic import BaseModel, ConfigDict

from studioplan.scheduling.models import (
    PhaseStatus,
    PlannerTaskStatus,
    ProjectHealth,
    ProjectSchedule,
    Stage,
    StageStatus,
)


class PhaseProgress(BaseModel):
    """Progress of one coarse phase (e.g. "Layout") of a project.

    Attributes:
        name: Phase name from the phase mapping
        status: Aggregated phase status
        progress: Percentage (0-100) of member stages completed
        start_date: Start of the first member stage
        end_date: Deadline of the last member stage
    """

    model_config = ConfigDict(frozen=True)

    name: str
    status: PhaseStatus
    progress: float = 0.0
    start_date: date | None = None
    end_date: date | None = None


class AttentionPoint(BaseModel):
    """An upcoming stage deadline surfaced on the dashboard."""

    model_config = ConfigDict(frozen=True)

    contract_id: int
    client_name: str
    stage_name: str
    deadline: date
    days_remaining: int


class PlannerTask(BaseModel):
    """A stage active on a given planner day."""

    model_config = ConfigDict(frozen=True)

    client_name: str
    stage_name: str
    status: PlannerTaskStatus


def _resolve_today(today: date | None) -> date:
    return today if today is not None else date.today()


def _phase_members(
    stages: Sequence[Stage], stage_names: Iterable[str]
) -> list[Stage]:
    """Dated stages belonging to a phase; undated stages are not counted."""
    names = set(stage_names)
    return [
        stage
        for stage in stages
        if stage.name in names and stage.start_date is not None and stage.deadline is not None
    ]


def project_progress(
    schedule: ProjectSchedule,
    phase_mapping: Mapping[str, Sequence[str]],
    today: date | None = None,
) -> list[PhaseProgress]:
    """Aggregate detailed stages into coarse phase statuses.

    A phase is completed when all its member stages are complete, in
    progress when some are complete or when none are but the first member
    has already started, and pending otherwise.

    Args:
        schedule: Project schedule to summarise.
        phase_mapping: Phase name -> detailed stage names, in display order.
        today: Reference date.

    Returns:
        One PhaseProgress per phase, in mapping order.
    """
    today = _resolve_today(today)
    result: list[PhaseProgress] = []

    for phase_name, stage_names in phase_mapping.items():
        members = _phase_members(schedule.stages, stage_names)
        if not members:
            result.append(PhaseProgress(name=phase_name, status=PhaseStatus.PENDING))
            continue

        completed = sum(1 for stage in members if stage.is_completed)
        if completed == len(members):
            status = PhaseStatus.COMPLETED
        elif completed > 0:
            status = PhaseStatus.IN_PROGRESS
        elif members[0].start_date is not None and members[0].start_date <= today:
            status = PhaseStatus.IN_PROGRESS
        else:
            status = PhaseStatus.PENDING

        result.append(
            PhaseProgress(
                name=phase_name,
                status=status,
                progress=round(completed / len(members) * 100, 2),
                start_date=members[0].start_date,
                end_date=members[-1].deadline,
            )
        )

    return result


def stage_status(
    stage: Stage,
    today: date | None = None,
    upcoming_window_days: int = 7,
) -> StageStatus:
    """Label a single stage from its deadline and completion."""
    if stage.is_completed:
        return StageStatus.COMPLETED
    if stage.deadline is None:
        return StageStatus.ON_TRACK

    today = _resolve_today(today)
    if stage.deadline < today:
        return StageStatus.LATE
    if (stage.deadline - today).days <= upcoming_window_days:
        return StageStatus.UPCOMING
    return StageStatus.ON_TRACK


def project_health(schedule: ProjectSchedule, today: date | None = None) -> ProjectHealth:
    """Classify a project as delayed, in progress or on time."""
    today = _resolve_today(today)

    delayed = any(
        not stage.is_completed and stage.deadline is not None and stage.deadline < today
        for stage in schedule.stages
    )
    if delayed:
        return ProjectHealth.DELAYED

    has_started = schedule.start_date is None or schedule.start_date <= today
    if has_started or any(stage.is_completed for stage in schedule.stages):
        return ProjectHealth.IN_PROGRESS
    return ProjectHealth.ON_TIME


def completion_percentage(schedule: ProjectSchedule) -> int:
    """Share of completed stages, rounded to a whole percent."""
    if not schedule.stages:
        return 0
    completed = sum(1 for stage in schedule.stages if stage.is_completed)
    return round(completed / len(schedule.stages) * 100)


def days_remaining(
    schedule: ProjectSchedule,
    phase_mapping: Mapping[str, Sequence[str]],
    today: date | None = None,
) -> int | None:
    """Calendar days until the current stage's deadline.

    The current stage is the first incomplete member of the first phase
    in progress that has one with a deadline. Negative values mean the
    stage is overdue.
    """
    today = _resolve_today(today)
    for phase in project_progress(schedule, phase_mapping, today):
        if phase.status is not PhaseStatus.IN_PROGRESS:
            continue
        members = _phase_members(schedule.stages, phase_mapping[phase.name])
        current = next((stage for stage in members if not stage.is_completed), None)
        if current is None or current.deadline is None:
            continue
        return (current.deadline - today).days
    return None


def upcoming_deadlines(
    schedules: Iterable[ProjectSchedule],
    today: date | None = None,
    window_days: int = 7,
) -> list[AttentionPoint]:
    """Next incomplete stage of each schedule due within ``window_days``.

    Overdue stages are excluded; they are reported as delayed projects
    instead. Results are sorted by days remaining.
    """
    today = _resolve_today(today)
    points: list[AttentionPoint] = []

    for schedule in schedules:
        next_stage = next((s for s in schedule.stages if not s.is_completed), None)
        if next_stage is None or next_stage.deadline is None:
            continue
        remaining = (next_stage.deadline - today).days
        if 0 <= remaining <= window_days:
            points.append(
                AttentionPoint(
                    contract_id=schedule.contract_id,
                    client_name=schedule.client_name,
                    stage_name=next_stage.name,
                    deadline=next_stage.deadline,
                    days_remaining=remaining,
                )
            )

    return sorted(points, key=lambda p: p.days_remaining)


def planner_tasks_for_day(
    schedules: Iterable[ProjectSchedule],
    day: date,
    today: date | None = None,
) -> list[PlannerTask]:
    """Stages whose start..deadline window covers ``day``."""
    today = _resolve_today(today)
    tasks: list[PlannerTask] = []

    for schedule in schedules:
        for stage in schedule.stages:
            if stage.start_date is None or stage.deadline is None:
                continue
            if not stage.start_date <= day <= stage.deadline:
                continue

            if stage.is_completed:
                status = PlannerTaskStatus.COMPLETED
            elif stage.deadline < today:
                status = PlannerTaskStatus.LATE
            else:
                status = PlannerTaskStatus.ON_TIME
            tasks.append(
                PlannerTask(
                    client_name=schedule.client_name,
                    stage_name=stage.name,
                    status=status,
                )
            )

    return tasks
