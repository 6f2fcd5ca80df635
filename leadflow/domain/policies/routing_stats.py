"""RoutingStatsPolicy — bucket assignment events by vendor, origin and window."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone, tzinfo

from leadflow.domain.entities.assignment_event import AssignmentEvent

UNKNOWN_ORIGIN = "unknown"


@dataclass(frozen=True)
class StatsWindows:
    """Start of each reporting window, in the reporting timezone."""

    today: datetime
    week: datetime
    month: datetime


@dataclass
class VendorStats:
    vendor_id: str
    vendor_name: str | None
    total: int = 0
    today: int = 0
    week: int = 0
    month: int = 0


@dataclass
class OriginStats:
    origin: str
    total: int
    percentage: int


@dataclass
class RoutingStats:
    total: int = 0
    today: int = 0
    week: int = 0
    month: int = 0
    by_vendor: list[VendorStats] = field(default_factory=list)
    by_origin: list[OriginStats] = field(default_factory=list)


@dataclass
class EventCounts:
    """Raw counts as the event log returns them, before names and percentages."""

    total: int = 0
    today: int = 0
    week: int = 0
    month: int = 0
    by_vendor: list[VendorStats] = field(default_factory=list)
    by_origin: dict[str, int] = field(default_factory=dict)


def window_starts(now: datetime, tz: tzinfo = timezone.utc) -> StatsWindows:
    """Midnight today, midnight of the last Sunday, midnight of the 1st."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    local = now.astimezone(tz)
    today = local.replace(hour=0, minute=0, second=0, microsecond=0)
    # weekday(): Monday == 0, so Sunday is 6 days back from Saturday
    week = today - timedelta(days=(local.weekday() + 1) % 7)
    month = today.replace(day=1)
    return StatsWindows(today=today, week=week, month=month)


def count_events(events: list[AssignmentEvent], windows: StatsWindows) -> EventCounts:
    """Count events per window, per vendor and per origin in memory.

    Events with no origin are counted under ``UNKNOWN_ORIGIN``.
    """
    counts = EventCounts()
    per_vendor: dict[str, VendorStats] = {}

    for event in events:
        in_today, in_week, in_month = _windows_hit(event.created_at, windows)

        counts.total += 1
        counts.today += in_today
        counts.week += in_week
        counts.month += in_month

        vs = per_vendor.get(event.vendor_id)
        if vs is None:
            vs = VendorStats(vendor_id=event.vendor_id, vendor_name=None)
            per_vendor[event.vendor_id] = vs
        vs.total += 1
        vs.today += in_today
        vs.week += in_week
        vs.month += in_month

        origin = event.origin or UNKNOWN_ORIGIN
        counts.by_origin[origin] = counts.by_origin.get(origin, 0) + 1

    counts.by_vendor = list(per_vendor.values())
    return counts


def build_stats(counts: EventCounts, vendor_names: dict[str, str] | None = None) -> RoutingStats:
    """Name vendors, order both breakdowns and compute origin percentages.

    Vendors are ordered by total descending then id; origins by count
    descending then name. Percentages are rounded half-up and therefore may
    not sum to 100.
    """
    names = vendor_names or {}
    by_vendor = sorted(
        (
            VendorStats(
                vendor_id=v.vendor_id,
                vendor_name=names.get(v.vendor_id, v.vendor_name),
                total=v.total,
                today=v.today,
                week=v.week,
                month=v.month,
            )
            for v in counts.by_vendor
        ),
        key=lambda v: (-v.total, v.vendor_id),
    )
    by_origin = [
        OriginStats(origin=origin, total=count, percentage=_percentage(count, counts.total))
        for origin, count in sorted(counts.by_origin.items(), key=lambda kv: (-kv[1], kv[0]))
    ]
    return RoutingStats(
        total=counts.total,
        today=counts.today,
        week=counts.week,
        month=counts.month,
        by_vendor=by_vendor,
        by_origin=by_origin,
    )


def _windows_hit(created_at: datetime | None, windows: StatsWindows) -> tuple[int, int, int]:
    if created_at is None:
        return 0, 0, 0
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return (
        int(created_at >= windows.today),
        int(created_at >= windows.week),
        int(created_at >= windows.month),
    )


def _percentage(count: int, total: int) -> int:
    if total == 0:
        return 0
    return int(count * 100 / total + 0.5)
