"""Initial schema: journeys table.

Revision ID: 0001
Revises:
Create Date: 2026-10-19

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ACTIVE_STATUS_SQL = "status IN ('started', 'in_progress', 'under_review')"


def upgrade() -> None:
    op.create_table(
        "journeys",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("email", sa.String(256), nullable=False),
        sa.Column("origin_country", sa.String(2), nullable=False),
        sa.Column("destination_country", sa.String(2), nullable=False),
        sa.Column("user_type", sa.String(32), server_default="student"),
        sa.Column("visa_type", sa.String(100), server_default="student"),
        sa.Column("status", sa.String(32), server_default="started"),
        sa.Column("phase", sa.String(32), server_default="selection"),
        sa.Column("personalization_data", postgresql.JSONB, nullable=True),
        sa.Column("step_completion", postgresql.JSONB, nullable=True),
        sa.Column("checklist", postgresql.JSONB, nullable=True),
        sa.Column("progress_metrics", postgresql.JSONB, nullable=True),
        sa.Column("timestamps", postgresql.JSONB, nullable=True),
        sa.Column("notes", postgresql.JSONB, nullable=True),
        sa.Column("is_shared", sa.Boolean, server_default=sa.false()),
        sa.Column("shared_with", postgresql.JSONB, nullable=True),
        sa.Column("documents", postgresql.JSONB, nullable=True),
        sa.Column("version", sa.Integer, nullable=False, server_default="1"),
        sa.Column("last_activity", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_journeys_user_status", "journeys", ["user_id", "status"])
    op.create_index("ix_journeys_email", "journeys", ["email"])
    op.create_index("ix_journeys_route", "journeys", ["origin_country", "destination_country"])
    op.create_index("ix_journeys_last_activity", "journeys", ["last_activity"])
    op.create_index(
        "uq_journeys_active_route",
        "journeys",
        ["user_id", "origin_country", "destination_country"],
        unique=True,
        postgresql_where=sa.text(ACTIVE_STATUS_SQL),
    )


def downgrade() -> None:
    op.drop_index("uq_journeys_active_route", table_name="journeys")
    op.drop_index("ix_journeys_last_activity", table_name="journeys")
    op.drop_index("ix_journeys_route", table_name="journeys")
    op.drop_index("ix_journeys_email", table_name="journeys")
    op.drop_index("ix_journeys_user_status", table_name="journeys")
    op.drop_table("journeys")
