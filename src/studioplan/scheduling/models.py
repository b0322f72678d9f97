"""Schedule data model for Studioplan.

Defines stage templates, per-project stages, project schedules and the
closed status enumerations used by the read-side projections.

All models are immutable; edits go through ``model_copy(update=...)`` so
that every change yields a new snapshot. Dates are plain calendar dates
and serialise to ISO ``YYYY-MM-DD`` strings.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from studioplan.scheduling.workdays import parse_calendar_date


class StageStatus(str, Enum):
    """Display label for a single stage, derived from its deadline.

    Attributes:
        COMPLETED: A completion date is recorded.
        LATE: Deadline already passed without completion.
        UPCOMING: Deadline falls inside the configured warning window.
        ON_TRACK: Deadline is further away.
    """

    COMPLETED = "completed"
    LATE = "late"
    UPCOMING = "upcoming"
    ON_TRACK = "on_track"


class PhaseStatus(str, Enum):
    """Aggregated status of a coarse project phase."""

    COMPLETED = "completed"
    IN_PROGRESS = "in_progress"
    PENDING = "pending"


class ProjectHealth(str, Enum):
    """Overall health of an active project schedule."""

    DELAYED = "delayed"
    IN_PROGRESS = "in_progress"
    ON_TIME = "on_time"


class PlannerTaskStatus(str, Enum):
    """Status of a stage as shown on the weekly planner."""

    COMPLETED = "completed"
    LATE = "late"
    ON_TIME = "on_time"


class StageTemplate(BaseModel):
    """Studio-configured default phase definition.

    Attributes:
        id: Stable identity, copied onto generated stages
        name: Stage name
        duration_work_days: Typical duration in business days
        sequence: Position of the template in the schedule
    """

    model_config = ConfigDict(frozen=True)

    id: int
    name: str = Field(..., min_length=1)
    duration_work_days: int = Field(..., ge=0)
    sequence: int


class Stage(BaseModel):
    """A per-project materialisation of a stage template.

    ``start_date`` and ``deadline`` are always computed by the schedule
    engine. ``completion_date`` is the only user-recorded value and is
    never discarded by recalculation.

    ``duration_work_days`` is left unconstrained here because it comes
    from free-form editor input; the engine clamps negatives to zero.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    duration_work_days: int
    start_date: date | None = None
    deadline: date | None = None
    completion_date: date | None = None

    @field_validator("start_date", "deadline", "completion_date", mode="before")
    @classmethod
    def validate_dates(cls, v: Any) -> date | None:
        """Accept ISO strings and treat blank strings as missing."""
        return parse_calendar_date(v)

    @property
    def is_completed(self) -> bool:
        return self.completion_date is not None

    @property
    def effective_end(self) -> date | None:
        """Completion date if recorded, otherwise the computed deadline."""
        return self.completion_date if self.completion_date is not None else self.deadline


class ProjectSchedule(BaseModel):
    """The ordered stage list of one contract's project.

    Attributes:
        id: Schedule identifier
        contract_id: Owning contract
        client_name: Denormalised for display
        project_name: Denormalised for display
        start_date: Project-level anchor (the contract signing date)
        stages: Stages in template sequence order
    """

    model_config = ConfigDict(frozen=True)

    id: int
    contract_id: int
    client_name: str = ""
    project_name: str = ""
    start_date: date | None = None
    stages: list[Stage] = Field(default_factory=list)

    @field_validator("start_date", mode="before")
    @classmethod
    def validate_start_date(cls, v: Any) -> date | None:
        """Accept ISO strings and treat blank strings as missing."""
        return parse_calendar_date(v)

    def stage_index(self, stage_id: int) -> int | None:
        """Position of the stage with ``stage_id``, or None."""
        for index, stage in enumerate(self.stages):
            if stage.id == stage_id:
                return index
        return None


def sort_templates(templates: Iterable[StageTemplate]) -> list[StageTemplate]:
    """Return templates ordered by their ``sequence`` field."""
    return sorted(templates, key=lambda t: t.sequence)


DEFAULT_STAGE_TEMPLATES: tuple[StageTemplate, ...] = (
    StageTemplate(id=1, name="Reunião de Briefing", duration_work_days=1, sequence=1),
    StageTemplate(id=2, name="Medição", duration_work_days=1, sequence=2),
    StageTemplate(id=3, name="Apresentação do Layout Planta Baixa", duration_work_days=15, sequence=3),
    StageTemplate(id=4, name="Revisão 01 (Planta Baixa)", duration_work_days=7, sequence=4),
    StageTemplate(id=5, name="Revisão 02 (Planta Baixa)", duration_work_days=7, sequence=5),
    StageTemplate(id=6, name="Revisão 03 (Planta Baixa)", duration_work_days=7, sequence=6),
    StageTemplate(id=7, name="Apresentação de 3D", duration_work_days=15, sequence=7),
    StageTemplate(id=8, name="Revisão 01 (3D)", duration_work_days=7, sequence=8),
    StageTemplate(id=9, name="Revisão 02 (3D)", duration_work_days=7, sequence=9),
    StageTemplate(id=10, name="Revisão 03 (3D)", duration_work_days=7, sequence=10),
    StageTemplate(id=11, name="Executivo", duration_work_days=20, sequence=11),
    StageTemplate(id=12, name="Entrega", duration_work_days=0, sequence=12),
)

# Coarse phases shown on the progress overview, in display order
DEFAULT_PHASE_MAPPING: dict[str, list[str]] = {
    "Briefing": ["Reunião de Briefing", "Medição"],
    "Layout": [
        "Apresentação do Layout Planta Baixa",
        "Revisão 01 (Planta Baixa)",
        "Revisão 02 (Planta Baixa)",
        "Revisão 03 (Planta Baixa)",
    ],
    "3D": [
        "Apresentação de 3D",
        "Revisão 01 (3D)",
        "Revisão 02 (3D)",
        "Revisão 03 (3D)",
    ],
    "Executivo": ["Executivo"],
    "Entrega": ["Entrega"],
}
