"""Tests for GetQueueStateUseCase and ResetQueueUseCase."""

from datetime import datetime, timezone

import pytest

from leadflow.application.use_cases.assign_lead import AssignLeadUseCase
from leadflow.application.use_cases.queue_state import GetQueueStateUseCase, ResetQueueUseCase
from leadflow.domain.errors import RotationBusy, TenantNotFound

RESET_AT = datetime(2026, 3, 11, 18, 0, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_fresh_queue(uow_factory, rotation):
    rotation("t1", "a", "b")

    state = await GetQueueStateUseCase(uow_factory).execute("t1")

    assert state.last_vendor is None
    assert state.next_vendor.id == "a"
    assert state.total_eligible == 2
    assert state.updated_at is None


@pytest.mark.asyncio
async def test_queue_after_assignments(uow_factory, rotation):
    rotation("t1", "a", "b", "c")
    assign = AssignLeadUseCase(uow_factory, backoff_seconds=0)
    await assign.execute("t1", "lead-1")
    committed = await assign.execute("t1", "lead-2")

    state = await GetQueueStateUseCase(uow_factory).execute("t1")

    assert state.last_vendor.id == "b"
    assert state.last_vendor.name == "Vendor b"
    assert state.next_vendor.id == "c"
    assert state.updated_at == committed.assigned_at


@pytest.mark.asyncio
async def test_last_vendor_named_after_leaving_rotation(uow_factory, rotation):
    vendors = rotation("t1", "a", "b")
    await AssignLeadUseCase(uow_factory, backoff_seconds=0).execute("t1", "lead-1")
    vendors[0].participates = False

    state = await GetQueueStateUseCase(uow_factory).execute("t1")

    assert state.last_vendor.id == "a"
    assert state.last_vendor.name == "Vendor a"
    assert state.next_vendor.id == "b"
    assert state.total_eligible == 1


@pytest.mark.asyncio
async def test_queue_with_nobody_in_rotation(uow_factory, rotation):
    rotation("t1")
    state = await GetQueueStateUseCase(uow_factory).execute("t1")
    assert state.next_vendor is None
    assert state.total_eligible == 0


@pytest.mark.asyncio
async def test_queue_unknown_tenant(uow_factory):
    with pytest.raises(TenantNotFound):
        await GetQueueStateUseCase(uow_factory).execute("missing")


@pytest.mark.asyncio
async def test_reset_restarts_rotation(uow_factory, store, rotation):
    rotation("t1", "a", "b", "c")
    assign = AssignLeadUseCase(uow_factory, backoff_seconds=0)
    await assign.execute("t1", "lead-1")
    await assign.execute("t1", "lead-2")

    await ResetQueueUseCase(uow_factory, backoff_seconds=0, clock=lambda: RESET_AT).execute("t1")

    assert store.states["t1"].last_assigned_vendor_id is None
    assert store.states["t1"].updated_at == RESET_AT
    # Events are never touched by a reset
    assert len(store.events) == 2
    assert (await assign.execute("t1", "lead-3")).vendor.id == "a"


@pytest.mark.asyncio
async def test_queue_after_reset_has_no_last_vendor(uow_factory, store, rotation):
    rotation("t1", "a", "b")
    await AssignLeadUseCase(uow_factory, backoff_seconds=0).execute("t1", "lead-1")
    await ResetQueueUseCase(uow_factory, backoff_seconds=0, clock=lambda: RESET_AT).execute("t1")

    state = await GetQueueStateUseCase(uow_factory).execute("t1")

    assert store.states["t1"].is_fresh()
    assert state.last_vendor is None
    assert state.next_vendor.id == "a"
    assert state.updated_at == RESET_AT


@pytest.mark.asyncio
async def test_reset_unknown_tenant(uow_factory, store):
    with pytest.raises(TenantNotFound):
        await ResetQueueUseCase(uow_factory).execute("missing")
    assert store.states == {}


@pytest.mark.asyncio
async def test_reset_gives_up_when_locked(uow_factory, store, rotation):
    rotation("t1", "a")
    store.lock_failures = 5

    with pytest.raises(RotationBusy):
        await ResetQueueUseCase(uow_factory, max_attempts=2, backoff_seconds=0).execute("t1")
    assert store.commits == 0
