"""Tests for RoutingStatsPolicy (windows and aggregation)."""

from datetime import datetime, timedelta, timezone

import pytest

from leadflow.domain.entities.assignment_event import AssignmentEvent
from leadflow.domain.policies.routing_stats import (
    UNKNOWN_ORIGIN,
    EventCounts,
    VendorStats,
    build_stats,
    count_events,
    window_starts,
)

UTC = timezone.utc
# Wednesday
NOW = datetime(2026, 3, 11, 12, 0, tzinfo=UTC)


def _event(eid: str, vendor: str, at: datetime, origin: str | None = "whatsapp") -> AssignmentEvent:
    return AssignmentEvent(
        id=eid, tenant_id="t1", lead_id=f"lead-{eid}", vendor_id=vendor,
        pipeline_id=f"p-{vendor}", stage_id=f"s-{vendor}", origin=origin, created_at=at,
    )


def test_windows_midweek():
    w = window_starts(NOW)
    assert w.today == datetime(2026, 3, 11, tzinfo=UTC)
    assert w.week == datetime(2026, 3, 8, tzinfo=UTC)  # Sunday
    assert w.month == datetime(2026, 3, 1, tzinfo=UTC)


@pytest.mark.parametrize("day,week_start", [(8, 8), (9, 8), (14, 8), (15, 15)])
def test_week_starts_on_sunday(day, week_start):
    w = window_starts(datetime(2026, 3, day, 18, 30, tzinfo=UTC))
    assert w.week.day == week_start


def test_windows_use_reporting_timezone():
    tz = timezone(timedelta(hours=-3))
    # 02:00 UTC on the 1st is still the last day of February locally
    w = window_starts(datetime(2026, 3, 1, 2, 0, tzinfo=UTC), tz)
    assert w.today == datetime(2026, 2, 28, tzinfo=tz)
    assert w.month == datetime(2026, 2, 1, tzinfo=tz)


def test_naive_now_treated_as_utc():
    w = window_starts(datetime(2026, 3, 11, 12, 0))
    assert w.today == datetime(2026, 3, 11, tzinfo=UTC)


def test_counts_windows_vendors_and_origins():
    events = [
        _event("1", "a", datetime(2026, 3, 11, 9, 0, tzinfo=UTC)),
        _event("2", "a", datetime(2026, 3, 9, 10, 0, tzinfo=UTC), origin="site"),
        _event("3", "b", datetime(2026, 3, 2, 10, 0, tzinfo=UTC)),
        _event("4", "c", datetime(2026, 2, 20, 10, 0, tzinfo=UTC), origin=None),
    ]
    stats = build_stats(count_events(events, window_starts(NOW)), {"a": "Ana", "b": "Bruno"})

    assert (stats.total, stats.today, stats.week, stats.month) == (4, 1, 2, 3)

    assert [v.vendor_id for v in stats.by_vendor] == ["a", "b", "c"]
    ana = stats.by_vendor[0]
    assert (ana.vendor_name, ana.total, ana.today, ana.week, ana.month) == ("Ana", 2, 1, 2, 2)
    assert stats.by_vendor[2].vendor_name is None

    assert [(o.origin, o.total, o.percentage) for o in stats.by_origin] == [
        ("whatsapp", 2, 50),
        ("site", 1, 25),
        (UNKNOWN_ORIGIN, 1, 25),
    ]


def test_percentages_round_half_up():
    events = [_event("0", "a", NOW, origin="x")]
    events += [_event(str(i), "a", NOW, origin="y") for i in range(1, 8)]
    stats = build_stats(count_events(events, window_starts(NOW)))
    assert {o.origin: o.percentage for o in stats.by_origin} == {"y": 88, "x": 13}


def test_empty_log():
    stats = build_stats(count_events([], window_starts(NOW)))
    assert stats.total == 0
    assert stats.by_vendor == []
    assert stats.by_origin == []


def test_build_stats_orders_and_names_grouped_counts():
    # Grouped rows come back from the database in no particular order
    counts = EventCounts(
        total=6, today=1, week=3, month=5,
        by_vendor=[
            VendorStats(vendor_id="b", vendor_name=None, total=2, month=2),
            VendorStats(vendor_id="c", vendor_name=None, total=1),
            VendorStats(vendor_id="a", vendor_name=None, total=3, today=1, week=3, month=3),
        ],
        by_origin={"site": 1, UNKNOWN_ORIGIN: 2, "whatsapp": 3},
    )

    stats = build_stats(counts, {"a": "Ana", "b": "Bruno"})

    assert (stats.total, stats.today, stats.week, stats.month) == (6, 1, 3, 5)
    assert [(v.vendor_id, v.vendor_name, v.total) for v in stats.by_vendor] == [
        ("a", "Ana", 3), ("b", "Bruno", 2), ("c", None, 1),
    ]
    assert [(o.origin, o.percentage) for o in stats.by_origin] == [
        ("whatsapp", 50), (UNKNOWN_ORIGIN, 33), ("site", 17),
    ]
    # Input rows are left as they were
    assert counts.by_vendor[0].vendor_name is None
