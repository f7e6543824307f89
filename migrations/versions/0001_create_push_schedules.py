"""Create push_schedules table.

Revision ID: 0001_create_push_schedules
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001_create_push_schedules"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
  """Upgrade schema."""
  op.create_table(
    "push_schedules",
    sa.Column("id", sa.String(length=64), nullable=False),
    sa.Column("endpoint", sa.Text(), nullable=False),
    sa.Column("p256dh", sa.Text(), nullable=False),
    sa.Column("auth", sa.Text(), nullable=False),
    sa.Column("notify_at", sa.BigInteger(), nullable=False),
    sa.Column("title", sa.Text(), nullable=False),
    sa.Column("body", sa.Text(), nullable=False),
    sa.Column("created_at", sa.BigInteger(), nullable=False),
    sa.PrimaryKeyConstraint("id"),
  )
  op.create_index("ix_push_schedules_notify_at", "push_schedules", ["notify_at"], unique=False)


def downgrade() -> None:
  """Downgrade schema."""
  op.drop_index("ix_push_schedules_notify_at", table_name="push_schedules")
  op.drop_table("push_schedules")
