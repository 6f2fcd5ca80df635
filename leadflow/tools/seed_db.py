"""Seed database from a JSON document.

Usage:
    python -m leadflow.tools.seed_db --file seed.json
    python -m leadflow.tools.seed_db --file seed.json --drop  # drop existing data first

Document shape:
    {"tenants": [{"id": "...", "name": "...",
                  "vendors": [{"id", "display_name", "email", "participates",
                               "order", "weight", "pipeline_override_id", "is_admin"}],
                  "pipelines": [{"id", "name", "responsible_vendor_id", "active",
                                 "stages": [{"id", "name", "is_initial", "position"}]}]}]}
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from leadflow.adapters.persistence.database import async_session_factory
from leadflow.adapters.persistence.models import (
    AssignmentEventModel,
    PipelineModel,
    RotationStateModel,
    StageModel,
    TenantModel,
    VendorModel,
)
from leadflow.domain.entities.pipeline import Pipeline, Stage
from leadflow.domain.entities.vendor import Vendor
from leadflow.domain.errors import InvalidRequest, InvalidVendorConfig

logging.basicConfig(level=logging.INFO, format="%(levelname)s | %(message)s")
logger = logging.getLogger(__name__)


@dataclass
class TenantSeed:
    id: str
    name: str
    vendors: list[Vendor] = field(default_factory=list)
    pipelines: list[Pipeline] = field(default_factory=list)
    stages: list[Stage] = field(default_factory=list)


def parse_seed(document: dict) -> list[TenantSeed]:
    """Build validated tenant seeds from a decoded JSON document.

    Raises:
        InvalidVendorConfig: bad weight/order or an override to an unknown pipeline.
        InvalidRequest: missing keys or duplicated ids.
    """
    tenants = []
    seen_ids: set[str] = set()

    def _claim(kind: str, raw_id) -> str:
        if not raw_id:
            raise InvalidRequest(f"{kind} without an id")
        key = f"{kind}:{raw_id}"
        if key in seen_ids:
            raise InvalidRequest(f"Duplicate {kind} id {raw_id!r}")
        seen_ids.add(key)
        return str(raw_id)

    for raw_tenant in document.get("tenants", []):
        tenant = TenantSeed(
            id=_claim("tenant", raw_tenant.get("id")),
            name=raw_tenant.get("name") or raw_tenant["id"],
        )

        for raw in raw_tenant.get("vendors", []):
            tenant.vendors.append(
                Vendor(
                    id=_claim("vendor", raw.get("id")),
                    display_name=raw.get("display_name") or raw["id"],
                    participates=bool(raw.get("participates", False)),
                    order=raw.get("order"),
                    weight=int(raw.get("weight", 1)),
                    pipeline_override_id=raw.get("pipeline_override_id"),
                    email=raw.get("email"),
                    is_admin=bool(raw.get("is_admin", False)),
                )
            )

        for raw in raw_tenant.get("pipelines", []):
            pipeline = Pipeline(
                id=_claim("pipeline", raw.get("id")),
                name=raw.get("name") or raw["id"],
                responsible_vendor_id=raw.get("responsible_vendor_id"),
                active=bool(raw.get("active", True)),
            )
            tenant.pipelines.append(pipeline)
            for position, stage in enumerate(raw.get("stages", [])):
                tenant.stages.append(
                    Stage(
                        id=_claim("stage", stage.get("id")),
                        pipeline_id=pipeline.id,
                        name=stage.get("name") or stage["id"],
                        is_initial=bool(stage.get("is_initial", False)),
                        position=int(stage.get("position", position)),
                    )
                )

        _check_references(tenant)
        tenants.append(tenant)

    return tenants


def _check_references(tenant: TenantSeed) -> None:
    vendor_ids = {v.id for v in tenant.vendors}
    pipeline_ids = {p.id for p in tenant.pipelines}
    for vendor in tenant.vendors:
        if vendor.pipeline_override_id and vendor.pipeline_override_id not in pipeline_ids:
            raise InvalidVendorConfig(
                f"Vendor {vendor.id!r}: rotation pipeline "
                f"{vendor.pipeline_override_id!r} does not exist in tenant {tenant.id!r}"
            )
    for pipeline in tenant.pipelines:
        if pipeline.responsible_vendor_id and pipeline.responsible_vendor_id not in vendor_ids:
            raise InvalidRequest(
                f"Pipeline {pipeline.id!r}: responsible vendor "
                f"{pipeline.responsible_vendor_id!r} does not exist in tenant {tenant.id!r}"
            )


def load_seed_file(path: Path) -> list[TenantSeed]:
    with open(path, encoding="utf-8") as f:
        return parse_seed(json.load(f))


async def _drop_data(session: AsyncSession) -> None:
    """Delete all data in correct order (respecting FK constraints)."""
    for model in [
        AssignmentEventModel,
        RotationStateModel,
        StageModel,
        PipelineModel,
        VendorModel,
        TenantModel,
    ]:
        await session.execute(delete(model))
    await session.commit()
    logger.info("Dropped all existing data")


async def seed(path: Path, drop: bool = False) -> dict[str, int]:
    """Main seed function. Returns counts of seeded records."""
    tenants = load_seed_file(path)
    counts = {"tenants": 0, "vendors": 0, "pipelines": 0, "stages": 0}

    async with async_session_factory() as session:
        if drop:
            await _drop_data(session)

        for tenant in tenants:
            if await session.get(TenantModel, tenant.id):
                logger.info("Tenant '%s' already exists, skipping", tenant.id)
                continue

            session.add(TenantModel(id=tenant.id, name=tenant.name))
            await session.flush()

            for v in tenant.vendors:
                session.add(
                    VendorModel(
                        id=v.id,
                        tenant_id=tenant.id,
                        display_name=v.display_name,
                        email=v.email,
                        is_admin=v.is_admin,
                        participates=v.participates,
                        rotation_order=v.order,
                        weight=v.weight,
                        pipeline_override_id=v.pipeline_override_id,
                    )
                )
            await session.flush()

            for p in tenant.pipelines:
                session.add(
                    PipelineModel(
                        id=p.id,
                        tenant_id=tenant.id,
                        name=p.name,
                        responsible_vendor_id=p.responsible_vendor_id,
                        active=p.active,
                    )
                )
            await session.flush()

            for s in tenant.stages:
                session.add(
                    StageModel(
                        id=s.id,
                        tenant_id=tenant.id,
                        pipeline_id=s.pipeline_id,
                        name=s.name,
                        is_initial=s.is_initial,
                        position=s.position,
                    )
                )
            await session.flush()

            counts["tenants"] += 1
            counts["vendors"] += len(tenant.vendors)
            counts["pipelines"] += len(tenant.pipelines)
            counts["stages"] += len(tenant.stages)

        await session.commit()

    logger.info(
        "Seeded %d tenants, %d vendors, %d pipelines, %d stages",
        counts["tenants"], counts["vendors"], counts["pipelines"], counts["stages"],
    )
    return counts


def main():
    parser = argparse.ArgumentParser(description="Seed leadflow database from a JSON file")
    parser.add_argument(
        "--file", type=str, default="seed.json",
        help="JSON document with tenants, vendors and pipelines (default: seed.json)",
    )
    parser.add_argument(
        "--drop", action="store_true",
        help="Drop existing data before seeding",
    )
    args = parser.parse_args()

    path = Path(args.file)
    if not path.exists():
        logger.error("Seed file not found: %s", path)
        sys.exit(1)

    asyncio.run(seed(path, drop=args.drop))


if __name__ == "__main__":
    main()
