"""Work-day schedule engine.

Computes the dependent chain of project-stage dates:

- stage 0 starts on the project start date, moved forward off a weekend;
- every later stage starts the business day after the previous stage's
  *effective end* (its completion date when recorded, otherwise its
  deadline);
- a stage's deadline is ``duration - 1`` business days after its start
  (a duration of 0 or 1 ends on the start day).

Generation seeds a schedule from stage templates. Recalculation rebuilds
every date from scratch for an edited stage list, reading each
predecessor's freshly computed values and keeping completion dates.
All functions are pure and return new ``Stage`` objects.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date

import structlog

from studioplan.scheduling.models import Stage, StageTemplate, sort_templates
from studioplan.scheduling.workdays import (
    ScheduleInputError,
    add_work_days,
    next_business_day,
    parse_calendar_date,
)

logger = structlog.get_logger(__name__)


def effective_end(stage: Stage) -> date | None:
    """Anchor used to start the next stage."""
    return stage.effective_end


def _extra_days(stage_id: int, duration_work_days: int) -> int:
    """Business days between a stage's start and its deadline."""
    if duration_work_days < 0:
        logger.warning(
            "negative_duration_clamped",
            stage_id=stage_id,
            duration_work_days=duration_work_days,
        )
        return 0
    return max(0, duration_work_days - 1)


def _chain(
    items: Sequence[tuple[Stage, date | None]],
    anchor: date,
) -> list[Stage]:
    """Compute start and deadline for each stage in order.

    Args:
        items: Pairs of (stage carrying id/name/duration, completion date
            to keep) in schedule order.
        anchor: Normalised project start date.

    Returns:
        New stages with computed dates.
    """
    computed: list[Stage] = []
    # Effective end of the stage just computed; None only before the first
    previous_end: date | None = None
    for stage, completion_date in items:
        start = anchor if previous_end is None else add_work_days(previous_end, 1)

        deadline = add_work_days(start, _extra_days(stage.id, stage.duration_work_days))
        previous_end = completion_date if completion_date is not None else deadline
        computed.append(
            stage.model_copy(
                update={
                    "start_date": start,
                    "deadline": deadline,
                    "completion_date": completion_date,
                }
            )
        )
    return computed


def generate_schedule(
    templates: Iterable[StageTemplate],
    project_start_date: date | str | None,
    completed_stages: int = 0,
) -> list[Stage]:
    """Seed a project's stages from the studio templates.

    Args:
        templates: Stage templates (consumed in ``sequence`` order).
        project_start_date: Project anchor; may fall on a weekend.
        completed_stages: Mark the first N stages complete on their
            deadline, for projects imported while already underway.

    Returns:
        Stages in template order, or an empty list when no start date is
        supplied.

    Raises:
        ScheduleInputError: If the start date is not a valid calendar date.
    """
    start = parse_calendar_date(project_start_date, "project_start_date")
    if start is None:
        logger.debug("schedule_generation_skipped", reason="missing_start_date")
        return []

    ordered = sort_templates(templates)
    items = [
        (
            Stage(
                id=template.id,
                name=template.name,
                duration_work_days=template.duration_work_days,
            ),
            None,
        )
        for template in ordered
    ]
    stages = _chain(items, next_business_day(start))

    if completed_stages > 0:
        stages = [
            stage.model_copy(update={"completion_date": stage.deadline})
            if index < completed_stages
            else stage
            for index, stage in enumerate(stages)
        ]
        # Completion equals deadline here, so the chain is unchanged

    logger.info(
        "schedule_generated",
        start_date=start.isoformat(),
        stage_count=len(stages),
        completed_stages=min(completed_stages, len(stages)),
    )
    return stages


def recalculate_schedule(
    stages: Sequence[Stage],
    project_start_date: date | str | None,
) -> list[Stage]:
    """Recompute every stage's dates after an edit.

    Durations and completion dates come from the stages themselves; the
    stored start dates and deadlines are ignored and rebuilt.

    Args:
        stages: Current stage list, in schedule order.
        project_start_date: Project anchor; may fall on a weekend.

    Returns:
        The recalculated stages, or a copy of the input list when no start
        date is supplied.

    Raises:
        ScheduleInputError: If the start date is not a valid calendar date.
    """
    start = parse_calendar_date(project_start_date, "project_start_date")
    if start is None:
        logger.debug("schedule_recalculation_skipped", reason="missing_start_date")
        return list(stages)

    recalculated = _chain(
        [(stage, stage.completion_date) for stage in stages],
        next_business_day(start),
    )

    logger.debug(
        "schedule_recalculated",
        start_date=start.isoformat(),
        stage_count=len(recalculated),
        completed_count=sum(1 for s in recalculated if s.is_completed),
    )
    return recalculated


def rebuild_schedule(
    templates: Iterable[StageTemplate],
    previous_stages: Sequence[Stage],
    project_start_date: date | str | None,
) -> list[Stage]:
    """Rebuild stages from templates, keeping completion dates by position.

    Used when a contract's terms change: names and durations reset to the
    current templates while any completion recorded at position ``i``
    carries over to the new stage at position ``i``.

    Args:
        templates: Current studio templates.
        previous_stages: The schedule being replaced.
        project_start_date: Project anchor.

    Returns:
        Rebuilt and recalculated stages; empty when no start date.
    """
    start = parse_calendar_date(project_start_date, "project_start_date")
    if start is None:
        return []

    ordered = sort_templates(templates)
    items: list[tuple[Stage, date | None]] = []
    for index, template in enumerate(ordered):
        completion = (
            previous_stages[index].completion_date
            if index < len(previous_stages)
            else None
        )
        items.append(
            (
                Stage(
                    id=template.id,
                    name=template.name,
                    duration_work_days=template.duration_work_days,
                ),
                completion,
            )
        )

    if len(previous_stages) != len(ordered):
        logger.info(
            "schedule_rebuilt_with_different_length",
            previous_count=len(previous_stages),
            template_count=len(ordered),
        )

    return _chain(items, next_business_day(start))


__all__ = [
    "ScheduleInputError",
    "effective_end",
    "generate_schedule",
    "rebuild_schedule",
    "recalculate_schedule",
]
