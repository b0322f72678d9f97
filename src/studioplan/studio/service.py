"""Studio service: every mutation of the studio state goes through here.

The service holds the current ``StudioState`` snapshot. Each operation
builds a new snapshot, swaps it in and, when a store is configured,
persists it. Schedule edits always run a full recalculation through the
schedule engine so the chaining rules live in exactly one place.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from typing import Any

import structlog

from studioplan.scheduling.engine import (
    generate_schedule,
    rebuild_schedule,
    recalculate_schedule,
)
from studioplan.scheduling.models import (
    ProjectSchedule,
    Stage,
    StageTemplate,
    sort_templates,
)
from studioplan.scheduling.workdays import parse_calendar_date
from studioplan.studio.models import (
    Contract,
    ContractStatus,
    LateInstallment,
    PaymentInstallment,
    PaymentStatus,
    StudioNotFoundError,
    StudioState,
)
from studioplan.studio.store import StudioStore

logger = structlog.get_logger(__name__)

# Fields a caller may change on an existing contract
CONTRACT_EDITABLE_FIELDS = frozenset(
    {"client_name", "project_name", "total_value", "status", "signing_date"}
)


def _next_id(ids: Iterable[int]) -> int:
    return max(ids, default=0) + 1


class StudioService:
    """Applies studio operations to an explicit state snapshot.

    Attributes:
        store: Optional persistence target written after every change.
    """

    def __init__(
        self,
        state: StudioState | None = None,
        store: StudioStore | None = None,
    ):
        """Initialise the service.

        Args:
            state: Initial snapshot. Loaded from ``store`` (or defaulted)
                when omitted.
            store: Where to persist snapshots.
        """
        self.store = store
        if state is None:
            state = store.load() if store is not None else StudioState()
        self._state = state
        self.logger = logger.bind(component="StudioService")

    @property
    def state(self) -> StudioState:
        """Current snapshot."""
        return self._state

    def _commit(self, state: StudioState) -> StudioState:
        self._state = state
        if self.store is not None:
            self.store.save(state)
        return state

    def _schedules_with(self, schedule: ProjectSchedule) -> list[ProjectSchedule]:
        """Schedule list with ``schedule`` replacing its contract's entry."""
        schedules = [
            schedule if s.contract_id == schedule.contract_id else s
            for s in self._state.schedules
        ]
        if self._state.find_schedule(schedule.contract_id) is None:
            schedules.append(schedule)
        return schedules

    def _replace_schedule(self, schedule: ProjectSchedule) -> None:
        self._commit(
            self._state.model_copy(update={"schedules": self._schedules_with(schedule)})
        )

    # ------------------------------------------------------------------
    # Contracts
    # ------------------------------------------------------------------

    def create_contract(
        self,
        client_name: str,
        project_name: str,
        signing_date: date | str | None,
        total_value: float = 0.0,
        status: ContractStatus = ContractStatus.ACTIVE,
    ) -> Contract:
        """Register a contract and seed its project schedule.

        Returns:
            The created contract.
        """
        contract = Contract(
            id=_next_id(c.id for c in self._state.contracts),
            client_name=client_name,
            project_name=project_name,
            total_value=total_value,
            status=status,
            signing_date=signing_date,
        )
        schedule = ProjectSchedule(
            id=_next_id(s.id for s in self._state.schedules),
            contract_id=contract.id,
            client_name=contract.client_name,
            project_name=contract.project_name,
            start_date=contract.signing_date,
            stages=generate_schedule(self._state.stage_templates, contract.signing_date),
        )

        self._commit(
            self._state.model_copy(
                update={
                    "contracts": [contract, *self._state.contracts],
                    "schedules": [*self._state.schedules, schedule],
                }
            )
        )
        self.logger.info(
            "contract_created",
            contract_id=contract.id,
            client_name=contract.client_name,
            stage_count=len(schedule.stages),
        )
        return contract

    def update_contract(self, contract_id: int, **changes: Any) -> Contract:
        """Edit contract terms and bring its schedule in line.

        The existing stage list is recalculated against the (possibly new)
        signing date. When the contract has no schedule yet, for instance
        after importing older data, one is generated from the templates.

        Raises:
            StudioNotFoundError: If the contract does not exist.
            ValueError: If an unknown field is supplied.
        """
        unknown = set(changes) - CONTRACT_EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update contract fields: {sorted(unknown)}")

        current = self._state.get_contract(contract_id)
        updated = Contract.model_validate({**current.model_dump(), **changes})

        contracts = [updated if c.id == contract_id else c for c in self._state.contracts]
        existing = self._state.find_schedule(contract_id)
        if existing is None:
            schedule = ProjectSchedule(
                id=_next_id(s.id for s in self._state.schedules),
                contract_id=contract_id,
                client_name=updated.client_name,
                project_name=updated.project_name,
                start_date=updated.signing_date,
                stages=generate_schedule(self._state.stage_templates, updated.signing_date),
            )
            self.logger.info("schedule_synthesized", contract_id=contract_id)
        else:
            schedule = existing.model_copy(
                update={
                    "client_name": updated.client_name,
                    "project_name": updated.project_name,
                    "start_date": updated.signing_date,
                    "stages": recalculate_schedule(existing.stages, updated.signing_date),
                }
            )
        self._commit(
            self._state.model_copy(
                update={
                    "contracts": contracts,
                    "schedules": self._schedules_with(schedule),
                }
            )
        )

        self.logger.info(
            "contract_updated",
            contract_id=contract_id,
            fields=sorted(changes),
        )
        return updated

    def delete_contract(self, contract_id: int) -> None:
        """Remove a contract together with its schedule and installments.

        Raises:
            StudioNotFoundError: If the contract does not exist.
        """
        self._state.get_contract(contract_id)
        self._commit(
            self._state.model_copy(
                update={
                    "contracts": [c for c in self._state.contracts if c.id != contract_id],
                    "schedules": [s for s in self._state.schedules if s.contract_id != contract_id],
                    "installments": [
                        i for i in self._state.installments if i.contract_id != contract_id
                    ],
                }
            )
        )
        self.logger.info("contract_deleted", contract_id=contract_id)

    # ------------------------------------------------------------------
    # Schedules
    # ------------------------------------------------------------------

    def get_schedule(self, contract_id: int) -> ProjectSchedule:
        """Schedule of ``contract_id``.

        Raises:
            StudioNotFoundError: If the contract has no schedule.
        """
        schedule = self._state.find_schedule(contract_id)
        if schedule is None:
            raise StudioNotFoundError("schedule", contract_id)
        return schedule

    def _edit_stage(self, contract_id: int, stage_id: int, **update: Any) -> ProjectSchedule:
        schedule = self.get_schedule(contract_id)
        index = schedule.stage_index(stage_id)
        if index is None:
            raise StudioNotFoundError("stage", stage_id)

        stages: list[Stage] = list(schedule.stages)
        stages[index] = Stage.model_validate({**stages[index].model_dump(), **update})
        updated = schedule.model_copy(
            update={"stages": recalculate_schedule(stages, schedule.start_date)}
        )
        self._replace_schedule(updated)
        return updated

    def set_project_start_date(
        self, contract_id: int, start_date: date | str | None
    ) -> ProjectSchedule:
        """Move the project anchor and recalculate every stage.

        A blank start date is stored as missing and leaves the stages as
        they are.
        """
        schedule = self.get_schedule(contract_id)
        start = parse_calendar_date(start_date, "start_date")
        updated = schedule.model_copy(
            update={
                "start_date": start,
                "stages": recalculate_schedule(schedule.stages, start),
            }
        )
        self._replace_schedule(updated)
        self.logger.info(
            "project_start_changed",
            contract_id=contract_id,
            start_date=start.isoformat() if start else None,
        )
        return updated

    def set_stage_duration(
        self, contract_id: int, stage_id: int, duration_work_days: int
    ) -> ProjectSchedule:
        """Change one stage's duration and recalculate the chain."""
        updated = self._edit_stage(
            contract_id, stage_id, duration_work_days=duration_work_days
        )
        self.logger.info(
            "stage_duration_changed",
            contract_id=contract_id,
            stage_id=stage_id,
            duration_work_days=duration_work_days,
        )
        return updated

    def set_stage_completion(
        self,
        contract_id: int,
        stage_id: int,
        completed: bool = True,
        completion_date: date | str | None = None,
        today: date | None = None,
    ) -> ProjectSchedule:
        """Mark a stage complete (or not) and recalculate the chain.

        Args:
            contract_id: Owning contract.
            stage_id: Stage to update.
            completed: False clears the completion date.
            completion_date: Explicit completion date; defaults to today.
            today: Reference date used when no completion date is given.
        """
        value = self._completion_value(completed, completion_date, today)
        updated = self._edit_stage(contract_id, stage_id, completion_date=value)
        self.logger.info(
            "stage_completion_changed",
            contract_id=contract_id,
            stage_id=stage_id,
            completion_date=value.isoformat() if value else None,
        )
        return updated

    @staticmethod
    def _completion_value(
        completed: bool,
        completion_date: date | str | None,
        today: date | None,
    ) -> date | None:
        if not completed:
            return None
        value = parse_calendar_date(completion_date, "completion_date")
        if value is None:
            value = today if today is not None else date.today()
        return value

    def edit_stage(
        self,
        contract_id: int,
        stage_id: int,
        duration_work_days: int | None = None,
        completed: bool | None = None,
        completion_date: date | str | None = None,
        today: date | None = None,
    ) -> ProjectSchedule:
        """Apply a duration and a completion change to one stage at once.

        Every value is validated before anything changes, and the schedule
        is recalculated and saved once. Completion changes when
        ``completed`` is given or ``completion_date`` is non-blank; a blank
        date on its own changes nothing.

        Args:
            contract_id: Owning contract.
            stage_id: Stage to update.
            duration_work_days: New duration, unchanged when None.
            completed: True marks the stage complete, False clears it.
            completion_date: Explicit completion date; defaults to today.
            today: Reference date used when no completion date is given.

        Raises:
            StudioNotFoundError: If the schedule or stage does not exist.
            ValueError: If the completion date is malformed.
        """
        schedule = self.get_schedule(contract_id)
        if schedule.stage_index(stage_id) is None:
            raise StudioNotFoundError("stage", stage_id)

        update: dict[str, Any] = {}
        if duration_work_days is not None:
            update["duration_work_days"] = duration_work_days
        explicit_date = parse_calendar_date(completion_date, "completion_date")
        if completed is not None or explicit_date is not None:
            update["completion_date"] = self._completion_value(
                completed is not False, explicit_date, today
            )

        if not update:
            return schedule

        updated = self._edit_stage(contract_id, stage_id, **update)
        self.logger.info(
            "stage_edited",
            contract_id=contract_id,
            stage_id=stage_id,
            fields=sorted(update),
        )
        return updated

    def reset_schedule(self, contract_id: int) -> ProjectSchedule:
        """Rebuild a schedule from the current templates.

        Completion dates are carried over by position.
        """
        schedule = self.get_schedule(contract_id)
        updated = schedule.model_copy(
            update={
                "stages": rebuild_schedule(
                    self._state.stage_templates, schedule.stages, schedule.start_date
                )
            }
        )
        self._replace_schedule(updated)
        self.logger.info(
            "schedule_reset",
            contract_id=contract_id,
            stage_count=len(updated.stages),
        )
        return updated

    def set_stage_templates(self, templates: Iterable[StageTemplate]) -> list[StageTemplate]:
        """Replace the studio's stage templates.

        Existing schedules are untouched; only new or reset schedules use
        the new templates.

        Raises:
            ValueError: If two templates share an id.
        """
        ordered = sort_templates(templates)
        ids = [t.id for t in ordered]
        if len(ids) != len(set(ids)):
            raise ValueError("Stage template ids must be unique")

        self._commit(self._state.model_copy(update={"stage_templates": ordered}))
        self.logger.info("stage_templates_updated", template_count=len(ordered))
        return ordered

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    def add_installment(
        self,
        contract_id: int,
        label: str,
        due_date: date | str,
        value: float,
    ) -> PaymentInstallment:
        """Schedule a payment for a contract."""
        self._state.get_contract(contract_id)
        installment = PaymentInstallment(
            id=_next_id(i.id for i in self._state.installments),
            contract_id=contract_id,
            label=label,
            due_date=due_date,
            value=value,
        )
        self._commit(
            self._state.model_copy(
                update={"installments": [*self._state.installments, installment]}
            )
        )
        self.logger.info(
            "installment_added",
            contract_id=contract_id,
            installment_id=installment.id,
        )
        return installment

    def register_payment(
        self, installment_id: int, payment_date: date | str
    ) -> PaymentInstallment:
        """Record a payment; it is on time when paid by the due date.

        Raises:
            StudioNotFoundError: If the installment does not exist.
            ValueError: If ``payment_date`` is missing or malformed.
        """
        installment = self._state.get_installment(installment_id)
        paid_on = parse_calendar_date(payment_date, "payment_date")
        if paid_on is None:
            raise ValueError("A payment date is required")

        status = (
            PaymentStatus.PAID_ON_TIME
            if paid_on <= installment.due_date
            else PaymentStatus.PAID_LATE
        )
        updated = installment.model_copy(update={"status": status, "payment_date": paid_on})
        installments = [
            updated if i.id == installment_id else i for i in self._state.installments
        ]
        self._commit(self._state.model_copy(update={"installments": installments}))
        self.logger.info(
            "payment_registered",
            installment_id=installment_id,
            status=status.value,
        )
        return updated

    def late_installments(self, today: date | None = None) -> list[LateInstallment]:
        """Pending installments past due, most overdue first."""
        today = today if today is not None else date.today()
        late = [
            LateInstallment(installment=i, days_late=(today - i.due_date).days)
            for i in self._state.installments
            if i.status is PaymentStatus.PENDING and i.due_date < today
        ]
        return sorted(late, key=lambda item: item.days_late, reverse=True)
