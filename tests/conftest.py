"""Pytest configuration and shared fixtures.

In-memory implementations of every persistence port. A FakeUnitOfWork
stages its writes and applies them on commit, and the per-tenant cursor
lock is an asyncio.Lock held until the unit of work ends, which mirrors a
row lock held until COMMIT/ROLLBACK.
"""

from __future__ import annotations

import asyncio
import itertools
from dataclasses import replace
from datetime import datetime, timezone

import pytest

from leadflow.application.ports.assignment_event_repo import AssignmentEventRepository
from leadflow.application.ports.pipeline_catalog import PipelineCatalog
from leadflow.application.ports.rotation_state_repo import RotationStateRepository
from leadflow.application.ports.unit_of_work import UnitOfWork
from leadflow.application.ports.vendor_registry import VendorRegistry
from leadflow.domain.entities.assignment_event import AssignmentEvent
from leadflow.domain.entities.pipeline import Pipeline, Stage
from leadflow.domain.entities.rotation_state import RotationState
from leadflow.domain.entities.vendor import Vendor
from leadflow.domain.errors import RotationConflict, TenantNotFound
from leadflow.domain.policies.routing_stats import count_events

# ─── In-memory store ────────────────────────────────────────────────


class InMemoryStore:
    """Committed data shared by every unit of work of a test."""

    def __init__(self):
        self.tenants: set[str] = set()
        self.vendors: dict[str, dict[str, Vendor]] = {}
        self.pipelines: dict[str, dict[str, Pipeline]] = {}
        self.stages: dict[str, dict[str, Stage]] = {}
        self.states: dict[str, RotationState] = {}
        self.events: list[AssignmentEvent] = []
        self.locks: dict[str, asyncio.Lock] = {}
        self.commits = 0
        # Failure injection
        self.fail_next_append = False
        self.lock_failures = 0
        self._ids = itertools.count(1)

    def add_tenant(self, tenant_id: str) -> None:
        self.tenants.add(tenant_id)
        self.vendors.setdefault(tenant_id, {})
        self.pipelines.setdefault(tenant_id, {})
        self.stages.setdefault(tenant_id, {})

    def add_vendor(self, tenant_id: str, vendor: Vendor, with_pipeline: bool = True) -> Vendor:
        """Add a vendor; by default also an owned pipeline ``p-<id>`` with stage ``s-<id>``."""
        self.add_tenant(tenant_id)
        self.vendors[tenant_id][vendor.id] = vendor
        if with_pipeline:
            self.add_pipeline(
                tenant_id,
                Pipeline(id=f"p-{vendor.id}", name=f"Pipeline {vendor.id}",
                         responsible_vendor_id=vendor.id),
                [Stage(id=f"s-{vendor.id}", pipeline_id=f"p-{vendor.id}",
                       name="New", is_initial=True)],
            )
        return vendor

    def add_pipeline(self, tenant_id: str, pipeline: Pipeline, stages: list[Stage] = ()) -> None:
        self.add_tenant(tenant_id)
        self.pipelines[tenant_id][pipeline.id] = pipeline
        for stage in stages:
            self.stages[tenant_id][stage.id] = stage

    def lock_for(self, tenant_id: str) -> asyncio.Lock:
        return self.locks.setdefault(tenant_id, asyncio.Lock())

    def committed_state(self, tenant_id: str) -> RotationState:
        state = self.states.get(tenant_id)
        return replace(state) if state else RotationState(tenant_id=tenant_id)

    def next_id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._ids)}"


# ─── Port fakes ─────────────────────────────────────────────────────


class FakeVendorRegistry(VendorRegistry):
    def __init__(self, store: InMemoryStore):
        self._store = store

    async def tenant_exists(self, tenant_id):
        return tenant_id in self._store.tenants

    async def list_participating(self, tenant_id):
        return [v for v in await self.list_all(tenant_id) if v.participates]

    async def list_all(self, tenant_id):
        if tenant_id not in self._store.tenants:
            raise TenantNotFound(tenant_id)
        return sorted(self._store.vendors[tenant_id].values(), key=Vendor.rotation_key)

    async def get_by_id(self, tenant_id, vendor_id):
        return self._store.vendors.get(tenant_id, {}).get(vendor_id)


class FakePipelineCatalog(PipelineCatalog):
    def __init__(self, store: InMemoryStore):
        self._store = store

    async def get_pipeline(self, tenant_id, pipeline_id):
        return self._store.pipelines.get(tenant_id, {}).get(pipeline_id)

    async def list_owned_by(self, tenant_id, vendor_id):
        return [
            p for p in self._store.pipelines.get(tenant_id, {}).values()
            if p.active and p.responsible_vendor_id == vendor_id
        ]

    async def list_stages(self, tenant_id, pipeline_id):
        return [
            s for s in self._store.stages.get(tenant_id, {}).values()
            if s.pipeline_id == pipeline_id
        ]

    async def get_stage(self, tenant_id, stage_id):
        return self._store.stages.get(tenant_id, {}).get(stage_id)


class FakeRotationStateRepo(RotationStateRepository):
    def __init__(self, uow: FakeUnitOfWork):
        self._uow = uow
        self._store = uow.store

    async def get(self, tenant_id):
        return self._store.committed_state(tenant_id)

    async def lock(self, tenant_id, timeout_seconds=None):
        self._uow.check_writable()
        if self._store.lock_failures > 0:
            self._store.lock_failures -= 1
            raise RotationConflict("injected lock failure")

        lock = self._store.lock_for(tenant_id)
        try:
            await asyncio.wait_for(lock.acquire(), timeout=timeout_seconds)
        except asyncio.TimeoutError:
            raise RotationConflict("lock timeout")
        self._uow.held_locks.append(lock)
        return self._store.committed_state(tenant_id)

    async def save(self, state):
        self._uow.check_writable()
        self._uow.pending_states[state.tenant_id] = replace(state)


class FakeAssignmentEventRepo(AssignmentEventRepository):
    def __init__(self, uow: FakeUnitOfWork):
        self._uow = uow
        self._store = uow.store

    async def append(self, event):
        self._uow.check_writable()
        if self._store.fail_next_append:
            self._store.fail_next_append = False
            raise RuntimeError("event log unavailable")

        stored = replace(
            event,
            id=self._store.next_id("evt"),
            created_at=event.created_at or datetime.now(timezone.utc),
        )
        self._uow.pending_events.append(stored)
        return stored

    async def get_by_lead(self, tenant_id, lead_id):
        for event in self._store.events + self._uow.pending_events:
            if event.tenant_id == tenant_id and event.lead_id == lead_id:
                return event
        return None

    async def search(self, tenant_id, filters, limit, offset=0):
        matching = self._matching(tenant_id, filters)
        matching.sort(key=lambda e: (e.created_at, e.id), reverse=True)
        return matching[offset:offset + limit], len(matching)

    async def count(self, tenant_id, filters, windows):
        return count_events(self._matching(tenant_id, filters), windows)

    def _matching(self, tenant_id, filters):
        return [
            e for e in self._store.events
            if e.tenant_id == tenant_id and filters.matches(e)
        ]


class FakeUnitOfWork(UnitOfWork):
    def __init__(self, store: InMemoryStore, read_only: bool = False):
        self.store = store
        self.read_only = read_only
        self.pending_states: dict[str, RotationState] = {}
        self.pending_events: list[AssignmentEvent] = []
        self.held_locks: list[asyncio.Lock] = []
        self.committed = False

        self.vendors = FakeVendorRegistry(store)
        self.catalog = FakePipelineCatalog(store)
        self.rotation = FakeRotationStateRepo(self)
        self.events = FakeAssignmentEventRepo(self)

    def check_writable(self) -> None:
        if self.read_only:
            raise RuntimeError("write attempted in a read-only unit of work")

    async def commit(self):
        self.check_writable()
        for event in self.pending_events:
            if any(
                e.tenant_id == event.tenant_id and e.lead_id == event.lead_id
                for e in self.store.events
            ):
                await self.rollback()
                raise RotationConflict("duplicate lead assignment")
        self.store.states.update(self.pending_states)
        self.store.events.extend(self.pending_events)
        self.store.commits += 1
        self.committed = True
        self._finish()

    async def rollback(self):
        self._finish()

    def _finish(self) -> None:
        self.pending_states = {}
        self.pending_events = []
        while self.held_locks:
            self.held_locks.pop().release()


# ─── Fixtures ───────────────────────────────────────────────────────


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def uow_factory(store):
    def factory(read_only: bool = False) -> FakeUnitOfWork:
        return FakeUnitOfWork(store, read_only=read_only)

    return factory


@pytest.fixture
def rotation(store):
    """Build a tenant from vendor entries: ``rotation("t1", "A", ("C", 2))``.

    Each entry is an id or an (id, weight) pair; vendors participate in the
    given order and own one pipeline with one initial stage.
    """

    def build(tenant_id: str, *entries) -> list[Vendor]:
        store.add_tenant(tenant_id)
        vendors = []
        for order, entry in enumerate(entries):
            vendor_id, weight = (entry, 1) if isinstance(entry, str) else entry
            vendors.append(
                store.add_vendor(
                    tenant_id,
                    Vendor(id=vendor_id, display_name=f"Vendor {vendor_id}",
                           participates=True, order=order, weight=weight),
                )
            )
        return vendors

    return build
