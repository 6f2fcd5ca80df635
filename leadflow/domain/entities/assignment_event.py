"""AssignmentEvent entity — append-only record of one committed assignment."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class AssignmentEvent:
    id: str | None
    tenant_id: str
    lead_id: str
    vendor_id: str
    pipeline_id: str
    stage_id: str
    origin: str | None = None
    queue_position: int = 1
    total_eligible_vendors: int = 1
    created_at: datetime | None = None
