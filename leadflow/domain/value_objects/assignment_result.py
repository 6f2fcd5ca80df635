"""Read models returned by the routing engine."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class NamedRef:
    """An (id, display name) pair for UI display."""

    id: str
    name: str | None = None


@dataclass(frozen=True)
class AssignmentResult:
    """Outcome of a committed or simulated assignment.

    ``queue_position`` is the 1-based index of the vendor among the
    participating vendors at computation time; display only.
    ``lead_id``, ``event_id`` and ``assigned_at`` are set for committed
    assignments only.
    """

    vendor: NamedRef
    pipeline: NamedRef
    stage: NamedRef
    queue_position: int
    total_eligible_vendors: int
    lead_id: str | None = None
    event_id: str | None = None
    assigned_at: datetime | None = None


@dataclass(frozen=True)
class QueueState:
    last_vendor: NamedRef | None
    next_vendor: NamedRef | None
    total_eligible: int
    updated_at: datetime | None


@dataclass(frozen=True)
class VendorRotationView:
    """A vendor's rotation settings together with the pipeline leads land in."""

    vendor_id: str
    display_name: str
    email: str | None
    participates: bool
    order: int | None
    weight: int
    pipeline_override_id: str | None
    is_admin: bool
    pipeline: NamedRef | None
