"""Payment installment endpoints for Studioplan.

Routes:
    GET /contracts/{contract_id}/installments - Installments of a contract
    POST /contracts/{contract_id}/installments - Schedule an installment
    POST /installments/{installment_id}/payment - Register a payment
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi import status as http_status
from pydantic import BaseModel, Field

from studioplan.logging import get_logger
from studioplan.studio.models import PaymentInstallment, StudioNotFoundError
from studioplan.studio.service import StudioService
from studioplan.web.routes.contracts import studio_http_error

logger = get_logger(__name__)


class InstallmentCreate(BaseModel):
    """Request schema for scheduling an installment."""

    label: str = Field(..., min_length=1)
    due_date: str
    value: float = Field(..., ge=0)


class PaymentRegister(BaseModel):
    """Request schema for registering a payment."""

    payment_date: str


def get_service(request: Request) -> StudioService:
    """Dependency that retrieves the studio service from app state."""
    return request.app.state.service  # type: ignore[no-any-return]


def create_payments_router() -> APIRouter:
    """Create the payment installments router."""
    router = APIRouter(tags=["payments"])

    @router.get(
        "/contracts/{contract_id}/installments", response_model=list[PaymentInstallment]
    )
    async def list_installments(
        contract_id: int,
        service: StudioService = Depends(get_service),  # noqa: B008
    ) -> list[PaymentInstallment]:
        """Installments of a contract, in due date order."""
        try:
            service.state.get_contract(contract_id)
        except StudioNotFoundError as exc:
            raise studio_http_error(exc) from exc

        installments = [i for i in service.state.installments if i.contract_id == contract_id]
        return sorted(installments, key=lambda i: i.due_date)

    @router.post(
        "/contracts/{contract_id}/installments",
        response_model=PaymentInstallment,
        status_code=http_status.HTTP_201_CREATED,
    )
    async def add_installment(
        contract_id: int,
        body: InstallmentCreate,
        service: StudioService = Depends(get_service),  # noqa: B008
    ) -> PaymentInstallment:
        """Schedule an installment for a contract."""
        try:
            return service.add_installment(contract_id, body.label, body.due_date, body.value)
        except (StudioNotFoundError, ValueError) as exc:
            raise studio_http_error(exc) from exc

    @router.post(
        "/installments/{installment_id}/payment", response_model=PaymentInstallment
    )
    async def register_payment(
        installment_id: int,
        body: PaymentRegister,
        service: StudioService = Depends(get_service),  # noqa: B008
    ) -> PaymentInstallment:
        """Register a payment; it is late when made after the due date."""
        try:
            installment = service.register_payment(installment_id, body.payment_date)
        except (StudioNotFoundError, ValueError) as exc:
            raise studio_http_error(exc) from exc

        logger.debug(
            "payment_endpoint_completed",
            installment_id=installment_id,
            status=installment.status.value,
        )
        return installment

    return router
