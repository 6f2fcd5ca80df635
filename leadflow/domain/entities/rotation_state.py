"""RotationState — the per-tenant rotation cursor."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class RotationState:
    """Last committed assignment of a tenant.

    ``last_slot`` is the position of that assignment in the weight-expanded
    rotation sequence, so a vendor with weight > 1 gets all of its
    consecutive turns.
    """

    tenant_id: str
    last_assigned_vendor_id: str | None = None
    last_slot: int | None = None
    updated_at: datetime | None = None

    def advance(self, vendor_id: str, slot: int, now: datetime) -> None:
        self.last_assigned_vendor_id = vendor_id
        self.last_slot = slot
        self.updated_at = now

    def clear(self, now: datetime) -> None:
        self.last_assigned_vendor_id = None
        self.last_slot = None
        self.updated_at = now

    def is_fresh(self) -> bool:
        return self.last_assigned_vendor_id is None
