"""Port interface for rotation cursor persistence."""

from abc import ABC, abstractmethod

from leadflow.domain.entities.rotation_state import RotationState


class RotationStateRepository(ABC):
    @abstractmethod
    async def get(self, tenant_id: str) -> RotationState:
        """Snapshot read without locking. Returns an empty state if none is stored."""
        ...

    @abstractmethod
    async def lock(self, tenant_id: str, timeout_seconds: float | None = None) -> RotationState:
        """Lock the tenant's cursor for the rest of the transaction and return it.

        Must use row-level locking (SELECT ... FOR UPDATE), creating the row
        on first use. Raises RotationConflict if the lock is not granted
        within ``timeout_seconds``.
        """
        ...

    @abstractmethod
    async def save(self, state: RotationState) -> None:
        """Persist a cursor previously returned by lock()."""
        ...
