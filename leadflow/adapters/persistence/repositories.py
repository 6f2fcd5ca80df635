"""SQLAlchemy repository implementations."""

from __future__ import annotations

from sqlalchemy import func, literal_column, select, text, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from leadflow.adapters.persistence.models import (
    AssignmentEventModel,
    PipelineModel,
    RotationStateModel,
    StageModel,
    TenantModel,
    VendorModel,
)
from leadflow.application.ports.assignment_event_repo import AssignmentEventRepository
from leadflow.application.ports.pipeline_catalog import PipelineCatalog
from leadflow.application.ports.rotation_state_repo import RotationStateRepository
from leadflow.application.ports.vendor_registry import VendorRegistry
from leadflow.domain.entities.assignment_event import AssignmentEvent
from leadflow.domain.entities.pipeline import Pipeline, Stage
from leadflow.domain.entities.rotation_state import RotationState
from leadflow.domain.entities.vendor import Vendor
from leadflow.domain.errors import TenantNotFound
from leadflow.domain.policies.routing_stats import (
    UNKNOWN_ORIGIN,
    EventCounts,
    StatsWindows,
    VendorStats,
)
from leadflow.domain.value_objects.filters import AssignmentFilters

# ─── Mappers ─────────────────────────────────────────────────────────


def _vendor_to_domain(m: VendorModel) -> Vendor:
    return Vendor(
        id=m.id,
        display_name=m.display_name,
        participates=m.participates,
        order=m.rotation_order,
        weight=m.weight,
        pipeline_override_id=m.pipeline_override_id,
        email=m.email,
        is_admin=m.is_admin,
    )


def _pipeline_to_domain(m: PipelineModel) -> Pipeline:
    return Pipeline(
        id=m.id,
        name=m.name,
        responsible_vendor_id=m.responsible_vendor_id,
        active=m.active,
    )


def _stage_to_domain(m: StageModel) -> Stage:
    return Stage(
        id=m.id,
        pipeline_id=m.pipeline_id,
        name=m.name,
        is_initial=m.is_initial,
        position=m.position,
    )


def _state_to_domain(m: RotationStateModel) -> RotationState:
    return RotationState(
        tenant_id=m.tenant_id,
        last_assigned_vendor_id=m.last_assigned_vendor_id,
        last_slot=m.last_slot,
        updated_at=m.updated_at,
    )


def _event_to_domain(m: AssignmentEventModel) -> AssignmentEvent:
    return AssignmentEvent(
        id=m.id,
        tenant_id=m.tenant_id,
        lead_id=m.lead_id,
        vendor_id=m.vendor_id,
        pipeline_id=m.pipeline_id,
        stage_id=m.stage_id,
        origin=m.origin,
        queue_position=m.queue_position,
        total_eligible_vendors=m.total_eligible_vendors,
        created_at=m.created_at,
    )


def _apply_filters(stmt, tenant_id: str, filters: AssignmentFilters):
    stmt = stmt.where(AssignmentEventModel.tenant_id == tenant_id)
    if filters.vendor_ids:
        stmt = stmt.where(AssignmentEventModel.vendor_id.in_(filters.vendor_ids))
    if filters.pipeline_ids:
        stmt = stmt.where(AssignmentEventModel.pipeline_id.in_(filters.pipeline_ids))
    if filters.origins:
        stmt = stmt.where(AssignmentEventModel.origin.in_(filters.origins))
    if filters.date_from:
        stmt = stmt.where(AssignmentEventModel.created_at >= filters.date_from)
    if filters.date_to:
        stmt = stmt.where(AssignmentEventModel.created_at <= filters.date_to)
    return stmt


# ─── Repositories ────────────────────────────────────────────────────


class SqlVendorRegistry(VendorRegistry):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def tenant_exists(self, tenant_id: str) -> bool:
        return await self._s.get(TenantModel, tenant_id) is not None

    async def list_participating(self, tenant_id: str) -> list[Vendor]:
        if not await self.tenant_exists(tenant_id):
            raise TenantNotFound(tenant_id)
        result = await self._s.execute(
            self._ordered()
            .where(VendorModel.tenant_id == tenant_id)
            .where(VendorModel.participates.is_(True))
        )
        return [_vendor_to_domain(m) for m in result.scalars()]

    async def list_all(self, tenant_id: str) -> list[Vendor]:
        result = await self._s.execute(
            self._ordered().where(VendorModel.tenant_id == tenant_id)
        )
        return [_vendor_to_domain(m) for m in result.scalars()]

    async def get_by_id(self, tenant_id: str, vendor_id: str) -> Vendor | None:
        result = await self._s.execute(
            select(VendorModel).where(
                VendorModel.tenant_id == tenant_id, VendorModel.id == vendor_id
            )
        )
        m = result.scalar_one_or_none()
        return _vendor_to_domain(m) if m else None

    @staticmethod
    def _ordered():
        return select(VendorModel).order_by(
            VendorModel.rotation_order.asc().nulls_last(), VendorModel.id.asc()
        )


class SqlPipelineCatalog(PipelineCatalog):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def get_pipeline(self, tenant_id: str, pipeline_id: str) -> Pipeline | None:
        result = await self._s.execute(
            select(PipelineModel).where(
                PipelineModel.tenant_id == tenant_id, PipelineModel.id == pipeline_id
            )
        )
        m = result.scalar_one_or_none()
        return _pipeline_to_domain(m) if m else None

    async def list_owned_by(self, tenant_id: str, vendor_id: str) -> list[Pipeline]:
        result = await self._s.execute(
            select(PipelineModel)
            .where(
                PipelineModel.tenant_id == tenant_id,
                PipelineModel.responsible_vendor_id == vendor_id,
                PipelineModel.active.is_(True),
            )
            .order_by(PipelineModel.id)
        )
        return [_pipeline_to_domain(m) for m in result.scalars()]

    async def list_stages(self, tenant_id: str, pipeline_id: str) -> list[Stage]:
        result = await self._s.execute(
            select(StageModel)
            .where(StageModel.tenant_id == tenant_id, StageModel.pipeline_id == pipeline_id)
            .order_by(StageModel.is_initial.desc(), StageModel.position, StageModel.id)
        )
        return [_stage_to_domain(m) for m in result.scalars()]

    async def get_stage(self, tenant_id: str, stage_id: str) -> Stage | None:
        result = await self._s.execute(
            select(StageModel).where(
                StageModel.tenant_id == tenant_id, StageModel.id == stage_id
            )
        )
        m = result.scalar_one_or_none()
        return _stage_to_domain(m) if m else None


class SqlRotationStateRepository(RotationStateRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def get(self, tenant_id: str) -> RotationState:
        m = await self._s.get(RotationStateModel, tenant_id)
        return _state_to_domain(m) if m else RotationState(tenant_id=tenant_id)

    async def lock(self, tenant_id: str, timeout_seconds: float | None = None) -> RotationState:
        if timeout_seconds is not None:
            # Transaction-scoped; expiry raises lock_not_available (55P03)
            await self._s.execute(
                text("SELECT set_config('lock_timeout', :value, true)"),
                {"value": f"{int(timeout_seconds * 1000)}ms"},
            )

        # Concurrent first-use inserts wait on the primary key instead of failing
        await self._s.execute(
            pg_insert(RotationStateModel)
            .values(tenant_id=tenant_id)
            .on_conflict_do_nothing(index_elements=[RotationStateModel.tenant_id])
        )
        result = await self._s.execute(
            select(RotationStateModel)
            .where(RotationStateModel.tenant_id == tenant_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return _state_to_domain(result.scalar_one())

    async def save(self, state: RotationState) -> None:
        await self._s.execute(
            update(RotationStateModel)
            .where(RotationStateModel.tenant_id == state.tenant_id)
            .values(
                last_assigned_vendor_id=state.last_assigned_vendor_id,
                last_slot=state.last_slot,
                updated_at=state.updated_at or func.now(),
            )
        )
        await self._s.flush()


class SqlAssignmentEventRepository(AssignmentEventRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def append(self, event: AssignmentEvent) -> AssignmentEvent:
        m = AssignmentEventModel(
            tenant_id=event.tenant_id,
            lead_id=event.lead_id,
            vendor_id=event.vendor_id,
            pipeline_id=event.pipeline_id,
            stage_id=event.stage_id,
            origin=event.origin,
            queue_position=event.queue_position,
            total_eligible_vendors=event.total_eligible_vendors,
        )
        if event.created_at is not None:
            m.created_at = event.created_at
        self._s.add(m)
        await self._s.flush()
        if event.created_at is None:
            await self._s.refresh(m, attribute_names=["created_at"])
        event.id = m.id
        event.created_at = m.created_at
        return event

    async def get_by_lead(self, tenant_id: str, lead_id: str) -> AssignmentEvent | None:
        result = await self._s.execute(
            select(AssignmentEventModel).where(
                AssignmentEventModel.tenant_id == tenant_id,
                AssignmentEventModel.lead_id == lead_id,
            )
        )
        m = result.scalar_one_or_none()
        return _event_to_domain(m) if m else None

    async def search(
        self,
        tenant_id: str,
        filters: AssignmentFilters,
        limit: int,
        offset: int = 0,
    ) -> tuple[list[AssignmentEvent], int]:
        total = (
            await self._s.execute(
                _apply_filters(
                    select(func.count(AssignmentEventModel.id)), tenant_id, filters
                )
            )
        ).scalar() or 0

        result = await self._s.execute(
            _apply_filters(select(AssignmentEventModel), tenant_id, filters)
            .order_by(AssignmentEventModel.created_at.desc(), AssignmentEventModel.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return [_event_to_domain(m) for m in result.scalars()], total

    async def count(
        self, tenant_id: str, filters: AssignmentFilters, windows: StatsWindows
    ) -> EventCounts:
        created_at = AssignmentEventModel.created_at
        event_count = func.count(AssignmentEventModel.id)
        window_columns = (
            event_count,
            event_count.filter(created_at >= windows.today),
            event_count.filter(created_at >= windows.week),
            event_count.filter(created_at >= windows.month),
        )

        total, today, week, month = (
            await self._s.execute(_apply_filters(select(*window_columns), tenant_id, filters))
        ).one()

        vendor_rows = (
            await self._s.execute(
                _apply_filters(
                    select(AssignmentEventModel.vendor_id, *window_columns), tenant_id, filters
                ).group_by(AssignmentEventModel.vendor_id)
            )
        ).all()

        # Literal, not a bound parameter, so SELECT and GROUP BY render the same expression
        origin = func.coalesce(AssignmentEventModel.origin, literal_column(f"'{UNKNOWN_ORIGIN}'"))
        origin_rows = (
            await self._s.execute(
                _apply_filters(select(origin, event_count), tenant_id, filters).group_by(origin)
            )
        ).all()

        return EventCounts(
            total=total or 0,
            today=today or 0,
            week=week or 0,
            month=month or 0,
            by_vendor=[
                VendorStats(vendor_id=row[0], vendor_name=None, total=row[1],
                            today=row[2], week=row[3], month=row[4])
                for row in vendor_rows
            ],
            by_origin={row[0]: row[1] for row in origin_rows},
        )
