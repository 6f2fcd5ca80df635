"""SQLAlchemy ORM models — maps to PostgreSQL tables."""

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leadflow.adapters.persistence.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class TenantModel(Base):
    __tablename__ = "tenants"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    vendors: Mapped[list["VendorModel"]] = relationship(back_populates="tenant")


class VendorModel(Base):
    __tablename__ = "vendors"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    tenant_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False
    )
    display_name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    is_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    participates: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    rotation_order: Mapped[int | None] = mapped_column(Integer, nullable=True)
    weight: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    # References pipelines.id; no FK because pipelines point back at vendors
    pipeline_override_id: Mapped[str | None] = mapped_column(String(36), nullable=True)

    tenant: Mapped["TenantModel"] = relationship(back_populates="vendors")

    __table_args__ = (
        CheckConstraint("weight >= 1", name="ck_vendors_weight_positive"),
        CheckConstraint(
            "rotation_order IS NULL OR rotation_order >= 0",
            name="ck_vendors_order_non_negative",
        ),
        Index("idx_vendors_tenant_participates", "tenant_id", "participates"),
    )


class PipelineModel(Base):
    __tablename__ = "pipelines"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    tenant_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    responsible_vendor_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("vendors.id", ondelete="SET NULL"), nullable=True
    )
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    stages: Mapped[list["StageModel"]] = relationship(back_populates="pipeline")

    __table_args__ = (
        Index("idx_pipelines_tenant_responsible", "tenant_id", "responsible_vendor_id"),
    )


class StageModel(Base):
    __tablename__ = "stages"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    tenant_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False
    )
    pipeline_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("pipelines.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    is_initial: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    pipeline: Mapped["PipelineModel"] = relationship(back_populates="stages")

    __table_args__ = (Index("idx_stages_pipeline", "pipeline_id"),)


class RotationStateModel(Base):
    __tablename__ = "rotation_state"

    tenant_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("tenants.id", ondelete="CASCADE"), primary_key=True
    )
    # No FK: the vendor may be deleted while still being the last one served
    last_assigned_vendor_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    last_slot: Mapped[int | None] = mapped_column(Integer, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class AssignmentEventModel(Base):
    __tablename__ = "assignment_events"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    tenant_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False
    )
    lead_id: Mapped[str] = mapped_column(String(100), nullable=False)
    vendor_id: Mapped[str] = mapped_column(String(36), nullable=False)
    pipeline_id: Mapped[str] = mapped_column(String(36), nullable=False)
    stage_id: Mapped[str] = mapped_column(String(36), nullable=False)
    origin: Mapped[str | None] = mapped_column(String(100), nullable=True)
    queue_position: Mapped[int] = mapped_column(Integer, nullable=False)
    total_eligible_vendors: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("tenant_id", "lead_id", name="uq_assignment_events_tenant_lead"),
        Index("idx_assignment_events_tenant_created", "tenant_id", "created_at"),
        Index("idx_assignment_events_tenant_vendor", "tenant_id", "vendor_id"),
    )
