"""PipelineResolver — resolve where a vendor's lead lands."""

from __future__ import annotations

from leadflow.application.ports.pipeline_catalog import PipelineCatalog
from leadflow.domain.entities.pipeline import Pipeline, Stage
from leadflow.domain.entities.vendor import Vendor
from leadflow.domain.policies.destination import select_initial_stage, select_pipeline


class PipelineResolver:
    """Looks up the vendor's pipelines in the catalog and applies DestinationPolicy."""

    def __init__(self, catalog: PipelineCatalog):
        self._catalog = catalog

    async def resolve_pipeline(self, tenant_id: str, vendor: Vendor) -> Pipeline:
        override = None
        if vendor.pipeline_override_id:
            override = await self._catalog.get_pipeline(tenant_id, vendor.pipeline_override_id)
        owned = await self._catalog.list_owned_by(tenant_id, vendor.id)
        return select_pipeline(vendor, override, owned)

    async def resolve(self, tenant_id: str, vendor: Vendor) -> tuple[Pipeline, Stage]:
        """Return (pipeline, initial stage).

        Raises:
            NoPipelineConfigured, NoInitialStage
        """
        pipeline = await self.resolve_pipeline(tenant_id, vendor)
        stages = await self._catalog.list_stages(tenant_id, pipeline.id)
        return pipeline, select_initial_stage(pipeline, stages)
