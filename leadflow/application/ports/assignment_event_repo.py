"""Port interface for the append-only assignment log."""

from abc import ABC, abstractmethod

from leadflow.domain.entities.assignment_event import AssignmentEvent
from leadflow.domain.policies.routing_stats import EventCounts, StatsWindows
from leadflow.domain.value_objects.filters import AssignmentFilters


class AssignmentEventRepository(ABC):
    @abstractmethod
    async def append(self, event: AssignmentEvent) -> AssignmentEvent:
        """Insert a new event and return it with ``id`` and ``created_at`` set."""
        ...

    @abstractmethod
    async def get_by_lead(self, tenant_id: str, lead_id: str) -> AssignmentEvent | None:
        ...

    @abstractmethod
    async def search(
        self,
        tenant_id: str,
        filters: AssignmentFilters,
        limit: int,
        offset: int = 0,
    ) -> tuple[list[AssignmentEvent], int]:
        """One page of matching events (newest first) and the total match count."""
        ...

    @abstractmethod
    async def count(
        self, tenant_id: str, filters: AssignmentFilters, windows: StatsWindows
    ) -> EventCounts:
        """Matching events counted all-time and since each window start, per vendor and per origin.

        Events without an origin are counted under ``UNKNOWN_ORIGIN``.
        """
        ...
