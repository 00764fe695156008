"""add recurrence fields and per-day instance constraint"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0002_add_recurrence"
down_revision = "0001_create_tasks"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.add_column(
        "tasks",
        sa.Column("is_recurring", sa.Boolean(), nullable=False, server_default=sa.text("false")),
    )
    op.add_column("tasks", sa.Column("recurrence_type", sa.String(length=20), nullable=True))
    op.add_column("tasks", sa.Column("recurrence_interval", sa.Integer(), nullable=True))
    op.add_column(
        "tasks",
        sa.Column("recurrence_days", sa.String(length=20), nullable=False, server_default=""),
    )
    op.add_column("tasks", sa.Column("recurrence_day_of_month", sa.Integer(), nullable=True))
    op.add_column("tasks", sa.Column("recurrence_end_date", sa.Date(), nullable=True))
    op.add_column(
        "tasks",
        sa.Column(
            "parent_id",
            sa.Integer(),
            sa.ForeignKey("tasks.id", ondelete="SET NULL"),
            nullable=True,
        ),
    )
    op.create_index("ix_tasks_is_recurring", "tasks", ["is_recurring"], unique=False)
    op.create_index("ix_tasks_parent_id", "tasks", ["parent_id"], unique=False)
    op.create_unique_constraint("uq_tasks_parent_due_date", "tasks", ["parent_id", "due_date"])


def downgrade() -> None:
    op.drop_constraint("uq_tasks_parent_due_date", "tasks", type_="unique")
    op.drop_index("ix_tasks_parent_id", table_name="tasks")
    op.drop_index("ix_tasks_is_recurring", table_name="tasks")
    op.drop_column("tasks", "parent_id")
    op.drop_column("tasks", "recurrence_end_date")
    op.drop_column("tasks", "recurrence_day_of_month")
    op.drop_column("tasks", "recurrence_days")
    op.drop_column("tasks", "recurrence_interval")
    op.drop_column("tasks", "recurrence_type")
    op.drop_column("tasks", "is_recurring")
