"""SimulateNextUseCase — dry run of the next assignment."""

from __future__ import annotations

import logging

from leadflow.application.ports.unit_of_work import UnitOfWorkFactory
from leadflow.application.use_cases.assign_lead import require_id
from leadflow.application.use_cases.rotation_step import plan_assignment
from leadflow.domain.value_objects.assignment_result import AssignmentResult

logger = logging.getLogger(__name__)


class SimulateNextUseCase:
    """Predicts who would receive the next lead without committing anything.

    Runs in a read-only transaction without taking the rotation lock, so a
    concurrent AssignLead can make the prediction stale. Advisory only.
    """

    def __init__(self, uow_factory: UnitOfWorkFactory):
        self._uow_factory = uow_factory

    async def execute(self, tenant_id: str) -> AssignmentResult:
        tenant_id = require_id(tenant_id, "tenant_id")

        async with self._uow_factory(read_only=True) as uow:
            vendors = await uow.vendors.list_participating(tenant_id)
            state = await uow.rotation.get(tenant_id)
            plan = await plan_assignment(uow, tenant_id, vendors, state)

        logger.debug(
            "Tenant %s: simulated next vendor %s", tenant_id, plan.pick.vendor.id
        )
        return plan.to_result()
