"""Port interface for the transactional boundary around one routing call."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Protocol

from leadflow.application.ports.assignment_event_repo import AssignmentEventRepository
from leadflow.application.ports.pipeline_catalog import PipelineCatalog
from leadflow.application.ports.rotation_state_repo import RotationStateRepository
from leadflow.application.ports.vendor_registry import VendorRegistry


class UnitOfWork(ABC):
    """One database transaction exposing every repository the engine needs.

    Used as ``async with factory() as uow``. Leaving the block without
    ``commit()`` rolls everything back, including on cancellation.
    """

    vendors: VendorRegistry
    catalog: PipelineCatalog
    rotation: RotationStateRepository
    events: AssignmentEventRepository

    async def __aenter__(self) -> UnitOfWork:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.rollback()

    @abstractmethod
    async def commit(self) -> None:
        ...

    @abstractmethod
    async def rollback(self) -> None:
        ...


class UnitOfWorkFactory(Protocol):
    def __call__(self, read_only: bool = False) -> UnitOfWork:
        ...
