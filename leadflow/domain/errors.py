"""Routing errors — the closed set of failures the engine can report.

Every error carries a stable ``code`` for API clients and a ``retryable``
flag telling the caller whether nothing happened and the call may be
repeated safely.
"""

from __future__ import annotations


class RoutingError(Exception):
    """Base class for all lead-routing failures."""

    code = "routing_error"
    retryable = False
    default_message = "Lead routing failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


# ─── Input ───────────────────────────────────────────────────────────


class InvalidRequest(RoutingError):
    code = "invalid_request"
    default_message = "Invalid routing request"


class InvalidVendorConfig(InvalidRequest):
    code = "invalid_vendor_config"
    default_message = "Invalid vendor rotation settings"


class TenantNotFound(RoutingError):
    code = "tenant_not_found"

    def __init__(self, tenant_id: str):
        self.tenant_id = tenant_id
        super().__init__(f"Tenant {tenant_id!r} not found")


# ─── Configuration ───────────────────────────────────────────────────


class ConfigurationError(RoutingError):
    """Incomplete admin setup. Not retryable until someone fixes the data."""

    code = "configuration_error"


class NoEligibleVendors(ConfigurationError):
    code = "no_eligible_vendors"
    default_message = (
        "No vendor takes part in the lead rotation. "
        "Configure at least one active vendor in rotation."
    )


class NoPipelineConfigured(ConfigurationError):
    code = "no_pipeline_configured"

    def __init__(self, vendor_id: str, vendor_name: str | None = None):
        self.vendor_id = vendor_id
        label = vendor_name or vendor_id
        super().__init__(
            f"Vendor {label!r} has no active pipeline. "
            "Select a rotation pipeline for the vendor or make them "
            "responsible for an active pipeline."
        )


class NoInitialStage(ConfigurationError):
    code = "no_initial_stage"

    def __init__(self, pipeline_id: str, pipeline_name: str | None = None):
        self.pipeline_id = pipeline_id
        label = pipeline_name or pipeline_id
        super().__init__(f"Pipeline {label!r} has no stages. Add at least one stage.")


# ─── Concurrency ─────────────────────────────────────────────────────


class RotationConflict(RoutingError):
    """A concurrent commit for the same tenant won the race.

    Raised by storage adapters; the engine retries the whole transaction.
    """

    code = "rotation_conflict"
    retryable = True
    default_message = "Concurrent assignment for the same tenant"


class RotationBusy(RoutingError):
    """Retries or the lock wait were exhausted. Nothing was committed."""

    code = "rotation_busy"
    retryable = True
    default_message = "Lead rotation is busy, try again shortly"
