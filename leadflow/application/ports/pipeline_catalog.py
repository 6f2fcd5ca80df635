"""Port interface for the pipeline/stage catalog (read-only)."""

from abc import ABC, abstractmethod

from leadflow.domain.entities.pipeline import Pipeline, Stage


class PipelineCatalog(ABC):
    @abstractmethod
    async def get_pipeline(self, tenant_id: str, pipeline_id: str) -> Pipeline | None:
        """Pipeline by id regardless of its active flag."""
        ...

    @abstractmethod
    async def list_owned_by(self, tenant_id: str, vendor_id: str) -> list[Pipeline]:
        """Active pipelines whose responsible vendor is ``vendor_id``."""
        ...

    @abstractmethod
    async def list_stages(self, tenant_id: str, pipeline_id: str) -> list[Stage]:
        ...

    @abstractmethod
    async def get_stage(self, tenant_id: str, stage_id: str) -> Stage | None:
        ...
