"""Studio state aggregate, persistence and service layer."""

from __future__ import annotations

from studioplan.studio.models import (
    Contract,
    ContractStatus,
    LateInstallment,
    PaymentInstallment,
    PaymentStatus,
    StudioNotFoundError,
    StudioState,
)
from studioplan.studio.service import StudioService
from studioplan.studio.store import StudioStore, StudioStoreError

__all__ = [
    "Contract",
    "ContractStatus",
    "LateInstallment",
    "PaymentInstallment",
    "PaymentStatus",
    "StudioNotFoundError",
    "StudioService",
    "StudioState",
    "StudioStore",
    "StudioStoreError",
]
