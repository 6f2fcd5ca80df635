"""Queue inspection and administrative reset."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from leadflow.application.ports.unit_of_work import UnitOfWorkFactory
from leadflow.application.retry import run_with_retry
from leadflow.application.use_cases.assign_lead import require_id, utc_now
from leadflow.domain.errors import TenantNotFound
from leadflow.domain.policies.rotation import pick_next
from leadflow.domain.value_objects.assignment_result import NamedRef, QueueState

logger = logging.getLogger(__name__)


class GetQueueStateUseCase:
    """Last vendor served, next vendor in line, and the size of the rotation."""

    def __init__(self, uow_factory: UnitOfWorkFactory):
        self._uow_factory = uow_factory

    async def execute(self, tenant_id: str) -> QueueState:
        tenant_id = require_id(tenant_id, "tenant_id")

        async with self._uow_factory(read_only=True) as uow:
            vendors = await uow.vendors.list_participating(tenant_id)
            state = await uow.rotation.get(tenant_id)

            last_vendor = None
            if not state.is_fresh():
                vendor = next(
                    (v for v in vendors if v.id == state.last_assigned_vendor_id), None
                )
                if vendor is None:
                    # Removed from rotation since; still show who it was
                    vendor = await uow.vendors.get_by_id(
                        tenant_id, state.last_assigned_vendor_id
                    )
                last_vendor = NamedRef(
                    state.last_assigned_vendor_id,
                    vendor.display_name if vendor else None,
                )

        next_vendor = None
        if vendors:
            pick = pick_next(vendors, state.last_assigned_vendor_id, state.last_slot)
            next_vendor = NamedRef(pick.vendor.id, pick.vendor.display_name)

        return QueueState(
            last_vendor=last_vendor,
            next_vendor=next_vendor,
            total_eligible=len(vendors),
            updated_at=state.updated_at,
        )


class ResetQueueUseCase:
    """Clears the rotation cursor so the next lead goes to the first vendor.

    Requires admin privilege, which the calling layer enforces.
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        lock_timeout_seconds: float | None = 3.0,
        attempt_timeout_seconds: float | None = 5.0,
        max_attempts: int = 3,
        backoff_seconds: float = 0.05,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._uow_factory = uow_factory
        self._lock_timeout = lock_timeout_seconds
        self._attempt_timeout = attempt_timeout_seconds
        self._max_attempts = max_attempts
        self._backoff = backoff_seconds
        self._clock = clock

    async def execute(self, tenant_id: str) -> None:
        tenant_id = require_id(tenant_id, "tenant_id")
        await run_with_retry(
            lambda: self._attempt(tenant_id),
            max_attempts=self._max_attempts,
            backoff_seconds=self._backoff,
            attempt_timeout=self._attempt_timeout,
            label=f"reset queue (tenant {tenant_id})",
        )
        logger.info("Tenant %s: rotation queue reset", tenant_id)

    async def _attempt(self, tenant_id: str) -> None:
        async with self._uow_factory() as uow:
            if not await uow.vendors.tenant_exists(tenant_id):
                raise TenantNotFound(tenant_id)
            state = await uow.rotation.lock(tenant_id, self._lock_timeout)
            state.clear(self._clock())
            await uow.rotation.save(state)
            await uow.commit()
