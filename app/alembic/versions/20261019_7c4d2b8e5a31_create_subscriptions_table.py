"""create subscriptions table

Revision ID: 7c4d2b8e5a31
Revises: 3f1a9c2e7b10
Create Date: 2026-10-19 09:05:00.000000

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "7c4d2b8e5a31"
down_revision = "3f1a9c2e7b10"
branch_labels = None
depends_on = None

_TIMESTAMP_COLUMNS = (
    "start_at",
    "end_at",
    "current_start",
    "current_end",
    "charge_at",
    "last_charged_at",
    "last_failed_at",
    "activated_at",
    "cancelled_at",
    "paused_at",
    "resumed_at",
    "completed_at",
    "halted_at",
)


def upgrade() -> None:
    op.create_table(
        "subscriptions",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("subscription_id", sa.String(length=64), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("plan_id", sa.String(length=64), nullable=False),
        sa.Column("customer_id", sa.String(length=64), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="created"),
        sa.Column("short_url", sa.String(length=255), nullable=True),
        sa.Column("total_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("paid_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("remaining_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_payment_id", sa.String(length=64), nullable=True),
        sa.Column("last_failed_payment_id", sa.String(length=64), nullable=True),
        sa.Column("failure_reason", sa.Text(), nullable=True),
        *[
            sa.Column(name, sa.DateTime(timezone=True), nullable=True)
            for name in _TIMESTAMP_COLUMNS
        ],
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=True,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=True,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_subscriptions_subscription_id"),
        "subscriptions",
        ["subscription_id"],
        unique=True,
    )
    op.create_index(op.f("ix_subscriptions_user_id"), "subscriptions", ["user_id"])
    op.create_index(op.f("ix_subscriptions_plan_id"), "subscriptions", ["plan_id"])
    op.create_index(op.f("ix_subscriptions_status"), "subscriptions", ["status"])


def downgrade() -> None:
    op.drop_index(op.f("ix_subscriptions_status"), table_name="subscriptions")
    op.drop_index(op.f("ix_subscriptions_plan_id"), table_name="subscriptions")
    op.drop_index(op.f("ix_subscriptions_user_id"), table_name="subscriptions")
    op.drop_index(op.f("ix_subscriptions_subscription_id"), table_name="subscriptions")
    op.drop_table("subscriptions")
