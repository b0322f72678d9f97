"""Studio settings endpoints for Studioplan.

Routes:
    GET /settings/stage-templates - Current stage templates
    PUT /settings/stage-templates - Replace the stage templates

New templates apply to contracts created afterwards and to schedules
rebuilt through ``POST /contracts/{contract_id}/schedule/reset``.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request

from studioplan.scheduling.models import StageTemplate
from studioplan.studio.service import StudioService


def get_service(request: Request) -> StudioService:
    """Dependency that retrieves the studio service from app state."""
    return request.app.state.service  # type: ignore[no-any-return]


def create_settings_router() -> APIRouter:
    """Create the studio settings router."""
    router = APIRouter(prefix="/settings", tags=["settings"])

    @router.get("/stage-templates", response_model=list[StageTemplate])
    async def get_stage_templates(
        service: StudioService = Depends(get_service),  # noqa: B008
    ) -> list[StageTemplate]:
        """Stage templates in sequence order."""
        return service.state.stage_templates

    @router.put("/stage-templates", response_model=list[StageTemplate])
    async def replace_stage_templates(
        templates: list[StageTemplate],
        service: StudioService = Depends(get_service),  # noqa: B008
    ) -> list[StageTemplate]:
        """Replace the stage templates.

        Raises:
            HTTPException: 422 if template ids are not unique
        """
        try:
            return service.set_stage_templates(templates)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc

    return router
