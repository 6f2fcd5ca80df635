"""Reporting endpoints — routing stats and the assignment log."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query

from leadflow.application.use_cases.routing_stats import AssignmentLogUseCase, RoutingStatsUseCase
from leadflow.domain.errors import RoutingError
from leadflow.domain.value_objects.filters import AssignmentFilters
from leadflow.infrastructure.api.dependencies import get_assignment_log_uc, get_routing_stats_uc
from leadflow.infrastructure.api.errors import to_http_exception

router = APIRouter(prefix="/tenants/{tenant_id}", tags=["stats"])


def _filters(
    vendor_id: list[str] = Query(default=[]),
    pipeline_id: list[str] = Query(default=[]),
    origin: list[str] = Query(default=[]),
    date_from: datetime | None = None,
    date_to: datetime | None = None,
) -> AssignmentFilters:
    """Query-string filters. Bounds without an offset are read in STATS_TIMEZONE."""
    return AssignmentFilters(
        vendor_ids=tuple(vendor_id),
        pipeline_ids=tuple(pipeline_id),
        origins=tuple(origin),
        date_from=date_from,
        date_to=date_to,
    )


@router.get("/routing/stats")
async def routing_stats(
    tenant_id: str,
    filters: AssignmentFilters = Depends(_filters),
    uc: RoutingStatsUseCase = Depends(get_routing_stats_uc),
):
    """Assignments today / this week / this month / all-time, by vendor and origin."""
    try:
        stats = await uc.execute(tenant_id, filters)
    except RoutingError as e:
        raise to_http_exception(e)

    return {
        "total": stats.total,
        "today": stats.today,
        "week": stats.week,
        "month": stats.month,
        "by_vendor": [
            {
                "vendor_id": v.vendor_id,
                "vendor_name": v.vendor_name,
                "total": v.total,
                "today": v.today,
                "week": v.week,
                "month": v.month,
            }
            for v in stats.by_vendor
        ],
        "by_origin": [
            {"origin": o.origin, "total": o.total, "percentage": o.percentage}
            for o in stats.by_origin
        ],
    }


@router.get("/assignments")
async def assignment_log(
    tenant_id: str,
    filters: AssignmentFilters = Depends(_filters),
    limit: int = 50,
    offset: int = 0,
    uc: AssignmentLogUseCase = Depends(get_assignment_log_uc),
):
    """Assignment log, newest first."""
    try:
        events, total = await uc.execute(tenant_id, filters, limit=limit, offset=offset)
    except RoutingError as e:
        raise to_http_exception(e)

    return {
        "total": total,
        "limit": limit,
        "offset": offset,
        "assignments": [
            {
                "id": ev.id,
                "lead_id": ev.lead_id,
                "vendor_id": ev.vendor_id,
                "pipeline_id": ev.pipeline_id,
                "stage_id": ev.stage_id,
                "origin": ev.origin,
                "queue_position": ev.queue_position,
                "total_eligible_vendors": ev.total_eligible_vendors,
                "created_at": ev.created_at.isoformat() if ev.created_at else None,
            }
            for ev in events
        ],
    }
