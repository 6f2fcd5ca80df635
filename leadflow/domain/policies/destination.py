"""DestinationPolicy — pick the pipeline and initial stage a lead lands in."""

from __future__ import annotations

from leadflow.domain.entities.pipeline import Pipeline, Stage
from leadflow.domain.entities.vendor import Vendor
from leadflow.domain.errors import NoInitialStage, NoPipelineConfigured


def select_pipeline(
    vendor: Vendor,
    override: Pipeline | None,
    owned: list[Pipeline],
) -> Pipeline:
    """Select the vendor's destination pipeline.

    The rotation override wins when it points at an active pipeline;
    otherwise the active pipeline the vendor is responsible for (lowest id
    if there are several).

    Args:
        vendor: the vendor receiving the lead.
        override: pipeline referenced by ``vendor.pipeline_override_id``,
            or None if unset or unknown.
        owned: pipelines whose responsible vendor is ``vendor``.

    Raises:
        NoPipelineConfigured: if neither source yields an active pipeline.
    """
    if override is not None and override.active:
        return override

    candidates = sorted(
        (p for p in owned if p.active and p.responsible_vendor_id == vendor.id),
        key=lambda p: p.id,
    )
    if not candidates:
        raise NoPipelineConfigured(vendor.id, vendor.display_name)
    return candidates[0]


def select_initial_stage(pipeline: Pipeline, stages: list[Stage]) -> Stage:
    """Initial stage: flagged initial first, then lowest position, then id.

    Raises:
        NoInitialStage: if the pipeline has no stages.
    """
    own = [s for s in stages if s.pipeline_id == pipeline.id]
    if not own:
        raise NoInitialStage(pipeline.id, pipeline.name)
    return min(own, key=lambda s: (not s.is_initial, s.position, s.id))
