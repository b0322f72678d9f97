"""Studio domain models.

Defines contracts, payment installments and the ``StudioState`` aggregate
that owns every record of the studio. ``StudioState`` is immutable: the
service layer replaces it wholesale on each change.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from studioplan.scheduling.models import (
    DEFAULT_PHASE_MAPPING,
    DEFAULT_STAGE_TEMPLATES,
    ProjectSchedule,
    StageTemplate,
)
from studioplan.scheduling.workdays import parse_calendar_date


class StudioNotFoundError(LookupError):
    """Raised when a contract, stage or installment id is unknown.

    Attributes:
        kind: Record type that was looked up.
        record_id: The missing identifier.
    """

    def __init__(self, kind: str, record_id: int):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind.capitalize()} {record_id} not found")


class ContractStatus(str, Enum):
    """Lifecycle status of a contract.

    States:
        ACTIVE: Work is under way.
        COMPLETED: Project delivered.
        CANCELLED: Contract terminated early.
    """

    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    """Payment state of an installment."""

    PENDING = "pending"
    PAID_ON_TIME = "paid_on_time"
    PAID_LATE = "paid_late"


class Contract(BaseModel):
    """A signed client contract.

    Attributes:
        id: Contract identifier
        client_name: Client display name
        project_name: Project display name
        total_value: Contracted amount
        status: Lifecycle status
        signing_date: Signing date; anchors the project schedule
    """

    model_config = ConfigDict(frozen=True)

    id: int
    client_name: str = Field(..., min_length=1)
    project_name: str = Field(..., min_length=1)
    total_value: float = Field(default=0.0, ge=0)
    status: ContractStatus = ContractStatus.ACTIVE
    signing_date: date | None = None

    @field_validator("signing_date", mode="before")
    @classmethod
    def validate_signing_date(cls, v: Any) -> date | None:
        """Accept ISO strings and treat blank strings as missing."""
        return parse_calendar_date(v, "signing_date")


class PaymentInstallment(BaseModel):
    """One scheduled payment of a contract.

    Attributes:
        id: Installment identifier
        contract_id: Owning contract
        label: Display label such as "Entrada" or "2/6"
        due_date: Date the payment is due
        value: Amount due
        status: Payment state
        payment_date: Date the payment was registered
    """

    model_config = ConfigDict(frozen=True)

    id: int
    contract_id: int
    label: str
    due_date: date
    value: float = Field(..., ge=0)
    status: PaymentStatus = PaymentStatus.PENDING
    payment_date: date | None = None


class LateInstallment(BaseModel):
    """A pending installment past its due date."""

    model_config = ConfigDict(frozen=True)

    installment: PaymentInstallment
    days_late: int


class StudioState(BaseModel):
    """Every record of the studio, as one immutable snapshot.

    Attributes:
        contracts: Client contracts, most recent first
        schedules: One project schedule per contract
        installments: Payment installments of all contracts
        stage_templates: Templates used to seed new schedules
        phase_mapping: Coarse phase -> detailed stage names
    """

    model_config = ConfigDict(frozen=True)

    contracts: list[Contract] = Field(default_factory=list)
    schedules: list[ProjectSchedule] = Field(default_factory=list)
    installments: list[PaymentInstallment] = Field(default_factory=list)
    stage_templates: list[StageTemplate] = Field(
        default_factory=lambda: list(DEFAULT_STAGE_TEMPLATES)
    )
    phase_mapping: dict[str, list[str]] = Field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_PHASE_MAPPING.items()}
    )

    def get_contract(self, contract_id: int) -> Contract:
        """Return the contract with ``contract_id``.

        Raises:
            StudioNotFoundError: If no such contract exists.
        """
        for contract in self.contracts:
            if contract.id == contract_id:
                return contract
        raise StudioNotFoundError("contract", contract_id)

    def find_schedule(self, contract_id: int) -> ProjectSchedule | None:
        """Schedule owned by ``contract_id``, or None."""
        for schedule in self.schedules:
            if schedule.contract_id == contract_id:
                return schedule
        return None

    def get_installment(self, installment_id: int) -> PaymentInstallment:
        """Return the installment with ``installment_id``.

        Raises:
            StudioNotFoundError: If no such installment exists.
        """
        for installment in self.installments:
            if installment.id == installment_id:
                return installment
        raise StudioNotFoundError("installment", installment_id)

    def active_schedules(self) -> list[ProjectSchedule]:
        """Schedules whose contract is active."""
        active_ids = {c.id for c in self.contracts if c.status is ContractStatus.ACTIVE}
        return [s for s in self.schedules if s.contract_id in active_ids]
