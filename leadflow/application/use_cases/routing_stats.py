"""Reporting over the assignment log: aggregate stats and the raw log."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone, tzinfo

from leadflow.application.ports.unit_of_work import UnitOfWorkFactory
from leadflow.application.use_cases.assign_lead import require_id, utc_now
from leadflow.domain.entities.assignment_event import AssignmentEvent
from leadflow.domain.errors import InvalidRequest, TenantNotFound
from leadflow.domain.policies.routing_stats import RoutingStats, build_stats, window_starts
from leadflow.domain.value_objects.filters import AssignmentFilters

MAX_PAGE_SIZE = 500


def _prepare_filters(filters: AssignmentFilters | None, tz: tzinfo) -> AssignmentFilters:
    """Read naive date bounds in ``tz`` and reject an inverted range."""
    filters = (filters or AssignmentFilters()).localized(tz)
    if filters.date_from and filters.date_to and filters.date_from > filters.date_to:
        raise InvalidRequest("date_from must not be after date_to")
    return filters


class RoutingStatsUseCase:
    """Counts assignments today / this week / this month / all-time."""

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        tz: tzinfo = timezone.utc,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._uow_factory = uow_factory
        self._tz = tz
        self._clock = clock

    async def execute(
        self, tenant_id: str, filters: AssignmentFilters | None = None
    ) -> RoutingStats:
        tenant_id = require_id(tenant_id, "tenant_id")
        filters = _prepare_filters(filters, self._tz)
        windows = window_starts(self._clock(), self._tz)

        async with self._uow_factory(read_only=True) as uow:
            if not await uow.vendors.tenant_exists(tenant_id):
                raise TenantNotFound(tenant_id)
            counts = await uow.events.count(tenant_id, filters, windows)
            vendors = await uow.vendors.list_all(tenant_id)

        return build_stats(counts, {v.id: v.display_name for v in vendors})


class AssignmentLogUseCase:
    """Paginated assignment log, newest first."""

    def __init__(self, uow_factory: UnitOfWorkFactory, tz: tzinfo = timezone.utc):
        self._uow_factory = uow_factory
        self._tz = tz

    async def execute(
        self,
        tenant_id: str,
        filters: AssignmentFilters | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[AssignmentEvent], int]:
        tenant_id = require_id(tenant_id, "tenant_id")
        filters = _prepare_filters(filters, self._tz)
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise InvalidRequest(f"limit must be between 1 and {MAX_PAGE_SIZE}")
        if offset < 0:
            raise InvalidRequest("offset must be non-negative")

        async with self._uow_factory(read_only=True) as uow:
            if not await uow.vendors.tenant_exists(tenant_id):
                raise TenantNotFound(tenant_id)
            return await uow.events.search(tenant_id, filters, limit, offset)
