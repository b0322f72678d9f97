"""Contract and project schedule endpoints for Studioplan.

This module provides REST API endpoints for managing contracts and the
project schedule attached to each contract:
- Contract CRUD with optional status filtering
- Schedule retrieval, start date changes and per-stage edits
- Schedule reset from the current stage templates
- Phase progress and project health

Every schedule edit goes through ``StudioService`` so the stored schedule
is always fully recalculated.

Example:
    >>> from fastapi import FastAPI
    >>> from studioplan.web.routes.contracts import create_contracts_router
    >>>
    >>> app = FastAPI()
    >>> app.include_router(create_contracts_router())
"""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi import status as http_status
from pydantic import BaseModel, Field

from studioplan.config import StudioplanConfig
from studioplan.logging import bind_schedule_context, get_logger
from studioplan.scheduling.models import ProjectHealth, ProjectSchedule, StageStatus
from studioplan.scheduling.progress import (
    PhaseProgress,
    completion_percentage,
    days_remaining,
    project_health,
    project_progress,
    stage_status,
)
from studioplan.studio.models import Contract, ContractStatus, StudioNotFoundError
from studioplan.studio.service import StudioService

logger = get_logger(__name__)


class ContractCreate(BaseModel):
    """Request schema for creating a contract.

    Attributes:
        client_name: Client display name
        project_name: Project display name
        signing_date: ISO signing date; anchors the generated schedule
        total_value: Contracted amount
        status: Initial lifecycle status
    """

    client_name: str = Field(..., min_length=1)
    project_name: str = Field(..., min_length=1)
    signing_date: str | None = None
    total_value: float = Field(default=0.0, ge=0)
    status: ContractStatus = ContractStatus.ACTIVE


class ContractUpdate(BaseModel):
    """Request schema for updating a contract.

    All fields are optional. Only provided fields will be updated; an
    explicit null ``signing_date`` clears it.
    """

    client_name: str | None = Field(default=None, min_length=1)
    project_name: str | None = Field(default=None, min_length=1)
    signing_date: str | None = None
    total_value: float | None = Field(default=None, ge=0)
    status: ContractStatus | None = None


class StartDateUpdate(BaseModel):
    """Request schema for moving a project start date."""

    project_start_date: str | None = None


class StageUpdate(BaseModel):
    """Request schema for editing one stage.

    Attributes:
        duration_work_days: New duration in working days
        completed: True marks the stage completed, False clears completion
        completion_date: Explicit completion date (defaults to today)
    """

    duration_work_days: int | None = None
    completed: bool | None = None
    completion_date: str | None = None


class StageProgress(BaseModel):
    """Status label of one stage."""

    stage_id: int
    name: str
    status: StageStatus


class ProgressResponse(BaseModel):
    """Progress summary of one project."""

    contract_id: int
    health: ProjectHealth
    completion_percentage: int
    days_remaining: int | None
    phases: list[PhaseProgress]
    stages: list[StageProgress]


def get_service(request: Request) -> StudioService:
    """Dependency that retrieves the studio service from app state."""
    return request.app.state.service  # type: ignore[no-any-return]


def get_config(request: Request) -> StudioplanConfig:
    """Dependency that retrieves the configuration from app state."""
    return request.app.state.config  # type: ignore[no-any-return]


def studio_http_error(exc: Exception) -> HTTPException:
    """Translate a studio error into the matching HTTP error.

    Unknown records become 404; invalid input (malformed dates, failed
    validation) becomes 422.
    """
    if isinstance(exc, StudioNotFoundError):
        return HTTPException(status_code=http_status.HTTP_404_NOT_FOUND, detail=str(exc))
    return HTTPException(status_code=422, detail=str(exc))


def create_contracts_router() -> APIRouter:
    """Create contracts router with CRUD and schedule endpoints.

    Routes:
        GET /contracts/ - List contracts with optional status filter
        POST /contracts/ - Create a contract and its schedule
        GET /contracts/{contract_id} - Get contract by ID
        PATCH /contracts/{contract_id} - Update contract terms
        DELETE /contracts/{contract_id} - Delete contract (cascades)
        GET /contracts/{contract_id}/schedule - Get project schedule
        PUT /contracts/{contract_id}/schedule/start - Move project start
        PATCH /contracts/{contract_id}/schedule/stages/{stage_id} - Edit a stage
        POST /contracts/{contract_id}/schedule/reset - Rebuild from templates
        GET /contracts/{contract_id}/progress - Phase progress and health
    """
    router = APIRouter(prefix="/contracts", tags=["contracts"])

    @router.get("/", response_model=list[Contract])
    async def list_contracts(
        status: str | None = None,
        service: StudioService = Depends(get_service),  # noqa: B008
    ) -> list[Contract]:
        """List contracts, most recent first.

        Raises:
            HTTPException: 400 if status filter is invalid
        """
        status_enum = None
        if status is not None:
            try:
                status_enum = ContractStatus(status)
            except ValueError:
                logger.warning("invalid_status_filter", status=status)
                raise HTTPException(
                    status_code=http_status.HTTP_400_BAD_REQUEST,
                    detail=f"Invalid status: {status}. Valid values: {[s.value for s in ContractStatus]}",
                ) from None

        return [
            c for c in service.state.contracts if status_enum is None or c.status is status_enum
        ]

    @router.post("/", response_model=Contract, status_code=http_status.HTTP_201_CREATED)
    async def create_contract(
        body: ContractCreate,
        service: StudioService = Depends(get_service),  # noqa: B008
    ) -> Contract:
        """Create a contract and generate its schedule.

        Raises:
            HTTPException: 422 if the signing date is malformed
        """
        try:
            return service.create_contract(
                client_name=body.client_name,
                project_name=body.project_name,
                signing_date=body.signing_date,
                total_value=body.total_value,
                status=body.status,
            )
        except ValueError as exc:
            raise studio_http_error(exc) from exc

    @router.get("/{contract_id}", response_model=Contract)
    async def get_contract(
        contract_id: int,
        service: StudioService = Depends(get_service),  # noqa: B008
    ) -> Contract:
        """Get a contract by ID.

        Raises:
            HTTPException: 404 if contract not found
        """
        try:
            return service.state.get_contract(contract_id)
        except StudioNotFoundError as exc:
            raise studio_http_error(exc) from exc

    @router.patch("/{contract_id}", response_model=Contract)
    async def update_contract(
        contract_id: int,
        body: ContractUpdate,
        service: StudioService = Depends(get_service),  # noqa: B008
    ) -> Contract:
        """Update contract terms; the schedule follows the signing date.

        Raises:
            HTTPException: 404 if contract not found, 422 on invalid values
        """
        bind_schedule_context(contract_id)
        changes = body.model_dump(exclude_unset=True)
        try:
            return service.update_contract(contract_id, **changes)
        except (StudioNotFoundError, ValueError) as exc:
            raise studio_http_error(exc) from exc

    @router.delete("/{contract_id}", status_code=http_status.HTTP_204_NO_CONTENT)
    async def delete_contract(
        contract_id: int,
        service: StudioService = Depends(get_service),  # noqa: B008
    ) -> Response:
        """Delete a contract with its schedule and installments.

        Raises:
            HTTPException: 404 if contract not found
        """
        try:
            service.delete_contract(contract_id)
        except StudioNotFoundError as exc:
            raise studio_http_error(exc) from exc
        return Response(status_code=http_status.HTTP_204_NO_CONTENT)

    @router.get("/{contract_id}/schedule", response_model=ProjectSchedule)
    async def get_schedule(
        contract_id: int,
        service: StudioService = Depends(get_service),  # noqa: B008
    ) -> ProjectSchedule:
        """Get the project schedule of a contract.

        Raises:
            HTTPException: 404 if the contract has no schedule
        """
        try:
            return service.get_schedule(contract_id)
        except StudioNotFoundError as exc:
            raise studio_http_error(exc) from exc

    @router.put("/{contract_id}/schedule/start", response_model=ProjectSchedule)
    async def set_start_date(
        contract_id: int,
        body: StartDateUpdate,
        service: StudioService = Depends(get_service),  # noqa: B008
    ) -> ProjectSchedule:
        """Move the project start date and recalculate every stage.

        Raises:
            HTTPException: 404 if no schedule, 422 if the date is malformed
        """
        bind_schedule_context(contract_id)
        try:
            return service.set_project_start_date(contract_id, body.project_start_date)
        except (StudioNotFoundError, ValueError) as exc:
            raise studio_http_error(exc) from exc

    @router.patch(
        "/{contract_id}/schedule/stages/{stage_id}", response_model=ProjectSchedule
    )
    async def update_stage(
        contract_id: int,
        stage_id: int,
        body: StageUpdate,
        service: StudioService = Depends(get_service),  # noqa: B008
    ) -> ProjectSchedule:
        """Edit a stage's duration and/or completion, then recalculate.

        The edit is applied as a whole or not at all.

        Raises:
            HTTPException: 404 if schedule or stage not found, 422 on bad dates
        """
        bind_schedule_context(contract_id)
        try:
            return service.edit_stage(
                contract_id,
                stage_id,
                duration_work_days=body.duration_work_days,
                completed=body.completed,
                completion_date=body.completion_date,
            )
        except (StudioNotFoundError, ValueError) as exc:
            raise studio_http_error(exc) from exc

    @router.post("/{contract_id}/schedule/reset", response_model=ProjectSchedule)
    async def reset_schedule(
        contract_id: int,
        service: StudioService = Depends(get_service),  # noqa: B008
    ) -> ProjectSchedule:
        """Rebuild the schedule from the current stage templates.

        Raises:
            HTTPException: 404 if the contract has no schedule
        """
        bind_schedule_context(contract_id)
        try:
            return service.reset_schedule(contract_id)
        except StudioNotFoundError as exc:
            raise studio_http_error(exc) from exc

    @router.get("/{contract_id}/progress", response_model=ProgressResponse)
    async def get_progress(
        contract_id: int,
        service: StudioService = Depends(get_service),  # noqa: B008
        config: StudioplanConfig = Depends(get_config),  # noqa: B008
    ) -> ProgressResponse:
        """Phase progress, health and per-stage status of a project.

        Raises:
            HTTPException: 404 if the contract has no schedule
        """
        try:
            schedule = service.get_schedule(contract_id)
        except StudioNotFoundError as exc:
            raise studio_http_error(exc) from exc

        today = date.today()
        mapping = service.state.phase_mapping
        window = config.schedule.upcoming_window_days
        return ProgressResponse(
            contract_id=contract_id,
            health=project_health(schedule, today),
            completion_percentage=completion_percentage(schedule),
            days_remaining=days_remaining(schedule, mapping, today),
            phases=project_progress(schedule, mapping, today),
            stages=[
                StageProgress(
                    stage_id=stage.id,
                    name=stage.name,
                    status=stage_status(stage, today, window),
                )
                for stage in schedule.stages
            ],
        )

    return router
