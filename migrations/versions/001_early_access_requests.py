"""Create early_access_requests table.

Revision ID: 001_early_access_requests
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "001_early_access_requests"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "early_access_requests",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("company", sa.Text(), nullable=False),
        sa.Column("role", sa.Text(), nullable=False),
        sa.Column("team_size", sa.Text(), nullable=False),
        sa.Column("db_type", sa.Text(), nullable=False),
        sa.Column("slack_workspace_size", sa.Text(), nullable=True),
        sa.Column("pricing_feedback", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    )
    op.create_index(
        "ix_early_access_requests_email",
        "early_access_requests",
        ["email"],
        unique=True,
    )
    # Rows are stored normalized; this guards writers that bypass the API.
    op.create_check_constraint(
        "ck_early_access_requests_email_normalized",
        "early_access_requests",
        "email = lower(btrim(email))",
    )


def downgrade() -> None:
    op.drop_constraint(
        "ck_early_access_requests_email_normalized", "early_access_requests", type_="check"
    )
    op.drop_index("ix_early_access_requests_email", table_name="early_access_requests")
    op.drop_table("early_access_requests")
