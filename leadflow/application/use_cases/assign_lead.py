"""AssignLeadUseCase — commit the next rotation turn to a lead."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timezone

from leadflow.application.ports.unit_of_work import UnitOfWorkFactory
from leadflow.application.retry import run_with_retry
from leadflow.application.use_cases.rotation_step import plan_assignment, result_from_event
from leadflow.domain.entities.assignment_event import AssignmentEvent
from leadflow.domain.errors import ConfigurationError, InvalidRequest
from leadflow.domain.value_objects.assignment_result import AssignmentResult

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def require_id(value: str | None, field_name: str) -> str:
    """Reject missing identifiers before any transaction starts."""
    if value is None or not str(value).strip():
        raise InvalidRequest(f"{field_name} is required")
    return str(value).strip()


class AssignLeadUseCase:
    """Assigns a lead to the next vendor in the tenant's rotation.

    One transaction per attempt:
    1. Lock the tenant's rotation cursor (SELECT ... FOR UPDATE)
    2. Return the existing assignment if the lead already has one
    3. Pick the next vendor (weighted round-robin)
    4. Resolve pipeline + initial stage
    5. Advance the cursor and append the AssignmentEvent
    6. Commit

    Lock timeouts and serialization conflicts retry the whole sequence.
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

    async def execute(
        self, tenant_id: str, lead_id: str, origin: str | None = None
    ) -> AssignmentResult:
        tenant_id = require_id(tenant_id, "tenant_id")
        lead_id = require_id(lead_id, "lead_id")
        origin = (origin.strip() or None) if origin else None

        try:
            return await run_with_retry(
                lambda: self._attempt(tenant_id, lead_id, origin),
                max_attempts=self._max_attempts,
                backoff_seconds=self._backoff,
                attempt_timeout=self._attempt_timeout,
                label=f"assign lead {lead_id} (tenant {tenant_id})",
            )
        except ConfigurationError as e:
            logger.warning("Tenant %s: lead %s not assigned: %s", tenant_id, lead_id, e)
            raise

    async def _attempt(
        self, tenant_id: str, lead_id: str, origin: str | None
    ) -> AssignmentResult:
        async with self._uow_factory() as uow:
            vendors = await uow.vendors.list_participating(tenant_id)
            state = await uow.rotation.lock(tenant_id, self._lock_timeout)

            existing = await uow.events.get_by_lead(tenant_id, lead_id)
            if existing is not None:
                logger.info(
                    "Tenant %s: lead %s already assigned to %s, returning existing assignment",
                    tenant_id, lead_id, existing.vendor_id,
                )
                return await result_from_event(uow, existing)

            plan = await plan_assignment(uow, tenant_id, vendors, state)
            now = self._clock()

            state.advance(plan.pick.vendor.id, plan.pick.slot, now)
            await uow.rotation.save(state)
            event = await uow.events.append(
                AssignmentEvent(
                    id=None,
                    tenant_id=tenant_id,
                    lead_id=lead_id,
                    vendor_id=plan.pick.vendor.id,
                    pipeline_id=plan.pipeline.id,
                    stage_id=plan.stage.id,
                    origin=origin,
                    queue_position=plan.pick.queue_position,
                    total_eligible_vendors=plan.pick.total_eligible,
                    created_at=now,
                )
            )
            await uow.commit()

        logger.info(
            "Tenant %s: lead %s → vendor %s (pipeline %s, stage %s, position %d/%d)",
            tenant_id, lead_id, plan.pick.vendor.display_name,
            plan.pipeline.name, plan.stage.name,
            plan.pick.queue_position, plan.pick.total_eligible,
        )
        return replace(
            plan.to_result(),
            lead_id=lead_id,
            event_id=event.id,
            assigned_at=event.created_at,
        )
