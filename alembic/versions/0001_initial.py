"""Initial schema: members, gym_memberships, notifications_log

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19

"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa


revision: str = "0001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "members",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name_en", sa.String(length=256), nullable=False),
        sa.Column("name_ar", sa.String(length=256), nullable=True),
        sa.Column("email", sa.String(length=512), nullable=True),
        sa.Column("phone", sa.String(length=64), nullable=True),
        sa.Column("whatsapp_number", sa.String(length=64), nullable=True),
        sa.Column(
            "notification_preference",
            sa.String(length=32),
            server_default=sa.text("'whatsapp'"),
            nullable=True,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "gym_memberships",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("member_id", sa.Uuid(), nullable=False),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("status", sa.String(length=32), server_default=sa.text("'active'"), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["member_id"], ["members.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_gym_memberships_end_date", "gym_memberships", ["end_date"])

    # -- append-only reminder attempts ---------------------------------------
    op.create_table(
        "notifications_log",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("batch_id", sa.String(length=64), nullable=True),
        sa.Column("member_id", sa.String(length=128), nullable=True),
        sa.Column("membership_id", sa.String(length=128), nullable=False),
        sa.Column(
            "type",
            sa.String(length=64),
            server_default=sa.text("'membership_expiry'"),
            nullable=False,
        ),
        sa.Column("channel", sa.String(length=32), nullable=True),
        sa.Column("message_content", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("error_detail", sa.Text(), nullable=True),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_notifications_log_batch_id", "notifications_log", ["batch_id"])
    op.create_index("ix_notifications_log_membership_id", "notifications_log", ["membership_id"])


def downgrade() -> None:
    op.drop_index("ix_notifications_log_membership_id", table_name="notifications_log")
    op.drop_index("ix_notifications_log_batch_id", table_name="notifications_log")
    op.drop_table("notifications_log")
    op.drop_index("ix_gym_memberships_end_date", table_name="gym_memberships")
    op.drop_table("gym_memberships")
    op.drop_table("members")
