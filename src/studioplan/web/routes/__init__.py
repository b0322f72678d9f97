"""FastAPI route definitions for the Studioplan API.

This module contains route handlers for health checks, the stateless
schedule engine, contracts with their schedules, payments, the
dashboard and studio settings.
"""

from __future__ import annotations

from studioplan.web.routes.contracts import (
    ContractCreate,
    ContractUpdate,
    ProgressResponse,
    StageUpdate,
    StartDateUpdate,
    create_contracts_router,
)
from studioplan.web.routes.dashboard import DashboardSummary, create_dashboard_router
from studioplan.web.routes.health import (
    HealthResponse,
    ReadinessResponse,
    create_health_router,
)
from studioplan.web.routes.payments import (
    InstallmentCreate,
    PaymentRegister,
    create_payments_router,
)
from studioplan.web.routes.schedules import (
    GenerateRequest,
    RecalculateRequest,
    ScheduleResponse,
    create_schedules_router,
)
from studioplan.web.routes.settings import create_settings_router

__all__ = [
    # Contracts
    "ContractCreate",
    "ContractUpdate",
    "ProgressResponse",
    "StageUpdate",
    "StartDateUpdate",
    "create_contracts_router",
    # Dashboard
    "DashboardSummary",
    "create_dashboard_router",
    # Health
    "HealthResponse",
    "ReadinessResponse",
    "create_health_router",
    # Payments
    "InstallmentCreate",
    "PaymentRegister",
    "create_payments_router",
    # Schedules
    "GenerateRequest",
    "RecalculateRequest",
    "ScheduleResponse",
    "create_schedules_router",
    # Settings
    "create_settings_router",
]
