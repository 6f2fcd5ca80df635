"""Lead routing endpoints — assign, simulate, queue state, vendor rotation."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from leadflow.application.use_cases.assign_lead import AssignLeadUseCase
from leadflow.application.use_cases.queue_state import GetQueueStateUseCase, ResetQueueUseCase
from leadflow.application.use_cases.simulate_next import SimulateNextUseCase
from leadflow.application.use_cases.vendor_rotation import ListVendorRotationUseCase
from leadflow.domain.errors import RoutingError
from leadflow.domain.value_objects.assignment_result import AssignmentResult, NamedRef
from leadflow.infrastructure.api.dependencies import (
    get_assign_lead_uc,
    get_queue_state_uc,
    get_reset_queue_uc,
    get_simulate_next_uc,
    get_vendor_rotation_uc,
    require_admin,
)
from leadflow.infrastructure.api.errors import to_http_exception

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tenants/{tenant_id}", tags=["routing"])

SIMULATION_NOTICE = (
    "Prediction only: a lead assigned concurrently may change who is next."
)

# ── Request schemas ─────────────────────────────────────────────────


class AssignLeadRequest(BaseModel):
    lead_id: str = Field(min_length=1, max_length=100)
    origin: str | None = Field(default=None, max_length=100)


# ── Endpoints ───────────────────────────────────────────────────────


@router.post("/assignments")
async def assign_lead(
    tenant_id: str,
    req: AssignLeadRequest,
    uc: AssignLeadUseCase = Depends(get_assign_lead_uc),
):
    """Assign a lead to the next vendor in rotation (idempotent per lead)."""
    try:
        result = await uc.execute(tenant_id, req.lead_id, req.origin)
    except RoutingError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.exception("Tenant %s: error assigning lead %s", tenant_id, req.lead_id)
        raise HTTPException(status_code=500, detail=str(e))
    return {"status": "ok", **_result_to_dict(result)}


@router.post("/routing/simulate")
async def simulate_next(
    tenant_id: str,
    uc: SimulateNextUseCase = Depends(get_simulate_next_uc),
):
    """Dry run: who would receive the next lead. Nothing is persisted."""
    try:
        result = await uc.execute(tenant_id)
    except RoutingError as e:
        raise to_http_exception(e)
    return {"status": "ok", "notice": SIMULATION_NOTICE, **_result_to_dict(result)}


@router.get("/routing/queue")
async def get_queue_state(
    tenant_id: str,
    uc: GetQueueStateUseCase = Depends(get_queue_state_uc),
):
    """Last vendor served and next vendor in line."""
    try:
        state = await uc.execute(tenant_id)
    except RoutingError as e:
        raise to_http_exception(e)
    return {
        "last_vendor": _ref(state.last_vendor),
        "next_vendor": _ref(state.next_vendor),
        "total_eligible": state.total_eligible,
        "updated_at": state.updated_at.isoformat() if state.updated_at else None,
    }


@router.delete("/routing/queue", dependencies=[Depends(require_admin)])
async def reset_queue(
    tenant_id: str,
    uc: ResetQueueUseCase = Depends(get_reset_queue_uc),
):
    """Admin: restart the rotation from the first vendor."""
    try:
        await uc.execute(tenant_id)
    except RoutingError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.exception("Tenant %s: error resetting rotation queue", tenant_id)
        raise HTTPException(status_code=500, detail=str(e))
    logger.info("Tenant %s: queue reset via API", tenant_id)
    return {"status": "ok"}


@router.get("/routing/vendors")
async def list_vendor_rotation(
    tenant_id: str,
    uc: ListVendorRotationUseCase = Depends(get_vendor_rotation_uc),
):
    """Every vendor's rotation settings and resolved pipeline."""
    try:
        views = await uc.execute(tenant_id)
    except RoutingError as e:
        raise to_http_exception(e)
    return {
        "total": len(views),
        "vendors": [
            {
                "id": v.vendor_id,
                "display_name": v.display_name,
                "email": v.email,
                "participates": v.participates,
                "order": v.order,
                "weight": v.weight,
                "pipeline_override_id": v.pipeline_override_id,
                "is_admin": v.is_admin,
                "pipeline": _ref(v.pipeline),
            }
            for v in views
        ],
    }


def _ref(ref: NamedRef | None) -> dict | None:
    if ref is None:
        return None
    return {"id": ref.id, "name": ref.name}


def _result_to_dict(r: AssignmentResult) -> dict:
    return {
        "vendor": _ref(r.vendor),
        "pipeline": _ref(r.pipeline),
        "stage": _ref(r.stage),
        "queue_position": r.queue_position,
        "total_eligible_vendors": r.total_eligible_vendors,
        "lead_id": r.lead_id,
        "event_id": r.event_id,
        "assigned_at": r.assigned_at.isoformat() if r.assigned_at else None,
    }
