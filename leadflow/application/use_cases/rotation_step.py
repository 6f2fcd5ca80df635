"""Shared rotation step used by commit, simulation and queue views."""

from __future__ import annotations

from dataclasses import dataclass

from leadflow.application.ports.unit_of_work import UnitOfWork
from leadflow.application.use_cases.resolve_destination import PipelineResolver
from leadflow.domain.entities.assignment_event import AssignmentEvent
from leadflow.domain.entities.pipeline import Pipeline, Stage
from leadflow.domain.entities.rotation_state import RotationState
from leadflow.domain.entities.vendor import Vendor
from leadflow.domain.policies.rotation import RotationPick, pick_next
from leadflow.domain.value_objects.assignment_result import AssignmentResult, NamedRef


@dataclass(frozen=True)
class AssignmentPlan:
    """Everything a commit needs, computed without side effects."""

    pick: RotationPick
    pipeline: Pipeline
    stage: Stage

    def to_result(self) -> AssignmentResult:
        return AssignmentResult(
            vendor=NamedRef(self.pick.vendor.id, self.pick.vendor.display_name),
            pipeline=NamedRef(self.pipeline.id, self.pipeline.name),
            stage=NamedRef(self.stage.id, self.stage.name),
            queue_position=self.pick.queue_position,
            total_eligible_vendors=self.pick.total_eligible,
        )


async def plan_assignment(
    uow: UnitOfWork,
    tenant_id: str,
    vendors: list[Vendor],
    state: RotationState,
) -> AssignmentPlan:
    """Run the rotation policy against ``state`` and resolve the destination."""
    pick = pick_next(vendors, state.last_assigned_vendor_id, state.last_slot)
    pipeline, stage = await PipelineResolver(uow.catalog).resolve(tenant_id, pick.vendor)
    return AssignmentPlan(pick=pick, pipeline=pipeline, stage=stage)


async def result_from_event(uow: UnitOfWork, event: AssignmentEvent) -> AssignmentResult:
    """Rebuild the AssignmentResult of an already committed event."""
    vendor = await uow.vendors.get_by_id(event.tenant_id, event.vendor_id)
    pipeline = await uow.catalog.get_pipeline(event.tenant_id, event.pipeline_id)
    stage = await uow.catalog.get_stage(event.tenant_id, event.stage_id)
    return AssignmentResult(
        vendor=NamedRef(event.vendor_id, vendor.display_name if vendor else None),
        pipeline=NamedRef(event.pipeline_id, pipeline.name if pipeline else None),
        stage=NamedRef(event.stage_id, stage.name if stage else None),
        queue_position=event.queue_position,
        total_eligible_vendors=event.total_eligible_vendors,
        lead_id=event.lead_id,
        event_id=event.id,
        assigned_at=event.created_at,
    )
