"""ListVendorRotationUseCase — rotation settings of every vendor."""

from __future__ import annotations

from leadflow.application.ports.unit_of_work import UnitOfWorkFactory
from leadflow.application.use_cases.assign_lead import require_id
from leadflow.application.use_cases.resolve_destination import PipelineResolver
from leadflow.domain.errors import NoPipelineConfigured, TenantNotFound
from leadflow.domain.value_objects.assignment_result import NamedRef, VendorRotationView


class ListVendorRotationUseCase:
    def __init__(self, uow_factory: UnitOfWorkFactory):
        self._uow_factory = uow_factory

    async def execute(self, tenant_id: str) -> list[VendorRotationView]:
        """All vendors in rotation order, each with the pipeline its leads land in.

        ``pipeline`` is None for vendors that would fail with
        NoPipelineConfigured if they were picked.
        """
        tenant_id = require_id(tenant_id, "tenant_id")

        views = []
        async with self._uow_factory(read_only=True) as uow:
            if not await uow.vendors.tenant_exists(tenant_id):
                raise TenantNotFound(tenant_id)
            resolver = PipelineResolver(uow.catalog)

            for vendor in await uow.vendors.list_all(tenant_id):
                try:
                    pipeline = await resolver.resolve_pipeline(tenant_id, vendor)
                    pipeline_ref = NamedRef(pipeline.id, pipeline.name)
                except NoPipelineConfigured:
                    pipeline_ref = None

                views.append(
                    VendorRotationView(
                        vendor_id=vendor.id,
                        display_name=vendor.display_name,
                        email=vendor.email,
                        participates=vendor.participates,
                        order=vendor.order,
                        weight=vendor.weight,
                        pipeline_override_id=vendor.pipeline_override_id,
                        is_admin=vendor.is_admin,
                        pipeline=pipeline_ref,
                    )
                )
        return views
