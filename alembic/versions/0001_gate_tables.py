"""gate tables

Revision ID: 0001
Revises:
Create Date: 2026-10-17
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "order_authorizations",
        sa.Column("order_id", sa.String(length=66), nullable=False),
        sa.Column("target", sa.String(length=42), nullable=False),
        sa.Column("registrant", sa.String(length=42), nullable=False),
        sa.Column("fulfilled", sa.Boolean(), nullable=False),
        sa.Column("via_fallback", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("fulfilled_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("order_id", name=op.f("pk_order_authorizations")),
    )
    op.create_index(
        op.f("ix_order_authorizations_target"), "order_authorizations", ["target"]
    )

    op.create_table(
        "gate_events",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("order_id", sa.String(length=66), nullable=False),
        sa.Column(
            "event_type",
            sa.Enum("TARGETED", "FULFILLED", "CANCELLED", name="gateeventtype"),
            nullable=False,
        ),
        sa.Column("actor", sa.String(length=42), nullable=False),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_gate_events")),
    )
    op.create_index(op.f("ix_gate_events_order_id"), "gate_events", ["order_id"])
    op.create_index(op.f("ix_gate_events_event_type"), "gate_events", ["event_type"])
    op.create_index(op.f("ix_gate_events_created_at"), "gate_events", ["created_at"])
    op.create_index(
        "ix_gate_events_order_created", "gate_events", ["order_id", "created_at"]
    )


def downgrade() -> None:
    op.drop_table("gate_events")
    op.drop_table("order_authorizations")
