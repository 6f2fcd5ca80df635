"""AssignmentFilters value object — narrows queries over the assignment log."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, tzinfo

from leadflow.domain.entities.assignment_event import AssignmentEvent


@dataclass(frozen=True)
class AssignmentFilters:
    """Empty tuples mean "no restriction"; date bounds are inclusive."""

    vendor_ids: tuple[str, ...] = ()
    pipeline_ids: tuple[str, ...] = ()
    origins: tuple[str, ...] = ()
    date_from: datetime | None = None
    date_to: datetime | None = None

    def localized(self, tz: tzinfo) -> AssignmentFilters:
        """Copy whose date bounds all carry a timezone; naive bounds are read in ``tz``."""
        return replace(
            self,
            date_from=_with_tz(self.date_from, tz),
            date_to=_with_tz(self.date_to, tz),
        )

    def matches(self, event: AssignmentEvent) -> bool:
        if self.vendor_ids and event.vendor_id not in self.vendor_ids:
            return False
        if self.pipeline_ids and event.pipeline_id not in self.pipeline_ids:
            return False
        if self.origins and event.origin not in self.origins:
            return False
        if self.date_from and (event.created_at is None or event.created_at < self.date_from):
            return False
        if self.date_to and (event.created_at is None or event.created_at > self.date_to):
            return False
        return True


def _with_tz(value: datetime | None, tz: tzinfo) -> datetime | None:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=tz)
