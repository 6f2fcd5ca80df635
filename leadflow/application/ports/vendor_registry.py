"""Port interface for the vendor registry (read-only from the engine)."""

from abc import ABC, abstractmethod

from leadflow.domain.entities.vendor import Vendor


class VendorRegistry(ABC):
    @abstractmethod
    async def tenant_exists(self, tenant_id: str) -> bool:
        ...

    @abstractmethod
    async def list_participating(self, tenant_id: str) -> list[Vendor]:
        """Vendors in rotation, ordered by (order ASC nulls last, id ASC).

        Returns an empty list when nobody participates.

        Raises:
            TenantNotFound: if the tenant does not exist.
        """
        ...

    @abstractmethod
    async def list_all(self, tenant_id: str) -> list[Vendor]:
        """Every vendor of the tenant, same ordering as list_participating."""
        ...

    @abstractmethod
    async def get_by_id(self, tenant_id: str, vendor_id: str) -> Vendor | None:
        ...
