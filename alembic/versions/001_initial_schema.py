"""Initial schema — tenants, vendors, pipeline catalog, rotation state, assignment log.

Revision ID: 001
Revises: None
Create Date: 2026-10-18
"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Tenants
    op.create_table(
        "tenants",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )

    # Vendors
    op.create_table(
        "vendors",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "tenant_id",
            sa.String(36),
            sa.ForeignKey("tenants.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("display_name", sa.String(200), nullable=False),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("is_admin", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("participates", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("rotation_order", sa.Integer, nullable=True),
        sa.Column("weight", sa.Integer, nullable=False, server_default="1"),
        sa.Column("pipeline_override_id", sa.String(36), nullable=True),
        sa.CheckConstraint("weight >= 1", name="ck_vendors_weight_positive"),
        sa.CheckConstraint(
            "rotation_order IS NULL OR rotation_order >= 0",
            name="ck_vendors_order_non_negative",
        ),
    )
    op.create_index(
        "idx_vendors_tenant_participates", "vendors", ["tenant_id", "participates"]
    )

    # Pipelines
    op.create_table(
        "pipelines",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "tenant_id",
            sa.String(36),
            sa.ForeignKey("tenants.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column(
            "responsible_vendor_id",
            sa.String(36),
            sa.ForeignKey("vendors.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("active", sa.Boolean, nullable=False, server_default="true"),
    )
    op.create_index(
        "idx_pipelines_tenant_responsible",
        "pipelines",
        ["tenant_id", "responsible_vendor_id"],
    )

    # Stages
    op.create_table(
        "stages",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "tenant_id",
            sa.String(36),
            sa.ForeignKey("tenants.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "pipeline_id",
            sa.String(36),
            sa.ForeignKey("pipelines.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("is_initial", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("position", sa.Integer, nullable=False, server_default="0"),
    )
    op.create_index("idx_stages_pipeline", "stages", ["pipeline_id"])

    # Rotation State
    op.create_table(
        "rotation_state",
        sa.Column(
            "tenant_id",
            sa.String(36),
            sa.ForeignKey("tenants.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("last_assigned_vendor_id", sa.String(36), nullable=True),
        sa.Column("last_slot", sa.Integer, nullable=True),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )

    # Assignment Events
    op.create_table(
        "assignment_events",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "tenant_id",
            sa.String(36),
            sa.ForeignKey("tenants.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("lead_id", sa.String(100), nullable=False),
        sa.Column("vendor_id", sa.String(36), nullable=False),
        sa.Column("pipeline_id", sa.String(36), nullable=False),
        sa.Column("stage_id", sa.String(36), nullable=False),
        sa.Column("origin", sa.String(100), nullable=True),
        sa.Column("queue_position", sa.Integer, nullable=False),
        sa.Column("total_eligible_vendors", sa.Integer, nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.UniqueConstraint(
            "tenant_id", "lead_id", name="uq_assignment_events_tenant_lead"
        ),
    )
    op.create_index(
        "idx_assignment_events_tenant_created",
        "assignment_events",
        ["tenant_id", "created_at"],
    )
    op.create_index(
        "idx_assignment_events_tenant_vendor",
        "assignment_events",
        ["tenant_id", "vendor_id"],
    )


def downgrade() -> None:
    op.drop_table("assignment_events")
    op.drop_table("rotation_state")
    op.drop_table("stages")
    op.drop_table("pipelines")
    op.drop_table("vendors")
    op.drop_table("tenants")
