"""FastAPI dependency injection — wires adapters into use cases."""

from __future__ import annotations

import secrets
from functools import partial
from zoneinfo import ZoneInfo

from fastapi import Depends, Header, HTTPException

from leadflow.adapters.persistence.database import async_session_factory
from leadflow.adapters.persistence.unit_of_work import SqlUnitOfWork
from leadflow.application.ports.unit_of_work import UnitOfWorkFactory
from leadflow.application.use_cases.assign_lead import AssignLeadUseCase
from leadflow.application.use_cases.queue_state import GetQueueStateUseCase, ResetQueueUseCase
from leadflow.application.use_cases.routing_stats import AssignmentLogUseCase, RoutingStatsUseCase
from leadflow.application.use_cases.simulate_next import SimulateNextUseCase
from leadflow.application.use_cases.vendor_rotation import ListVendorRotationUseCase
from leadflow.config import settings

# Use cases own their transactions, so they receive a factory instead of a session
_uow_factory: UnitOfWorkFactory = partial(SqlUnitOfWork, async_session_factory)


def get_uow_factory() -> UnitOfWorkFactory:
    return _uow_factory


def get_assign_lead_uc(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> AssignLeadUseCase:
    return AssignLeadUseCase(
        uow_factory=uow_factory,
        lock_timeout_seconds=settings.lock_timeout_seconds,
        attempt_timeout_seconds=settings.assign_timeout_seconds,
        max_attempts=settings.assign_max_attempts,
        backoff_seconds=settings.assign_backoff_seconds,
    )


def get_simulate_next_uc(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> SimulateNextUseCase:
    return SimulateNextUseCase(uow_factory=uow_factory)


def get_queue_state_uc(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> GetQueueStateUseCase:
    return GetQueueStateUseCase(uow_factory=uow_factory)


def get_reset_queue_uc(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> ResetQueueUseCase:
    return ResetQueueUseCase(
        uow_factory=uow_factory,
        lock_timeout_seconds=settings.lock_timeout_seconds,
        attempt_timeout_seconds=settings.assign_timeout_seconds,
        max_attempts=settings.assign_max_attempts,
        backoff_seconds=settings.assign_backoff_seconds,
    )


def get_routing_stats_uc(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> RoutingStatsUseCase:
    return RoutingStatsUseCase(uow_factory=uow_factory, tz=ZoneInfo(settings.stats_timezone))


def get_assignment_log_uc(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> AssignmentLogUseCase:
    return AssignmentLogUseCase(uow_factory=uow_factory, tz=ZoneInfo(settings.stats_timezone))


def get_vendor_rotation_uc(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> ListVendorRotationUseCase:
    return ListVendorRotationUseCase(uow_factory=uow_factory)


def require_admin(x_admin_key: str | None = Header(default=None)) -> None:
    """Guard for administrative endpoints (shared secret in X-Admin-Key)."""
    if not settings.admin_api_key:
        raise HTTPException(status_code=403, detail="Admin operations are disabled")
    if not x_admin_key or not secrets.compare_digest(x_admin_key, settings.admin_api_key):
        raise HTTPException(status_code=403, detail="Admin privilege required")
