"""initial ledger schema

Revision ID: 0001
Revises: 
Create Date: 2026-10-19 00:00:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def _uuid_pk() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        primary_key=True,
        server_default=sa.text("gen_random_uuid()"),
    )


def upgrade() -> None:
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto"')

    op.create_table(
        "users",
        _uuid_pk(),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("initials", sa.Text(), nullable=False),
        sa.Column("color", sa.Text(), nullable=False, server_default="#3B82F6"),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "expenses",
        _uuid_pk(),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("payer_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("amount > 0", name="expenses_amount_positive"),
    )

    op.create_table(
        "expense_participants",
        _uuid_pk(),
        sa.Column(
            "expense_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("expenses.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.CheckConstraint("amount >= 0", name="expense_participants_amount_non_negative"),
    )

    op.create_table(
        "payments",
        _uuid_pk(),
        sa.Column(
            "from_user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "to_user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("payment_date", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("amount > 0", name="payments_amount_positive"),
        sa.CheckConstraint("from_user_id <> to_user_id", name="payments_different_users"),
    )

    op.create_index("idx_expenses_date", "expenses", ["date"])
    op.create_index("idx_expenses_payer_id", "expenses", ["payer_id"])
    op.create_index("idx_expense_participants_expense_id", "expense_participants", ["expense_id"])
    op.create_index("idx_expense_participants_user_id", "expense_participants", ["user_id"])
    op.create_index("idx_payments_from_user", "payments", ["from_user_id"])
    op.create_index("idx_payments_to_user", "payments", ["to_user_id"])
    op.create_index("idx_payments_date", "payments", ["payment_date"])


def downgrade() -> None:
    op.drop_index("idx_payments_date", table_name="payments")
    op.drop_index("idx_payments_to_user", table_name="payments")
    op.drop_index("idx_payments_from_user", table_name="payments")
    op.drop_index("idx_expense_participants_user_id", table_name="expense_participants")
    op.drop_index("idx_expense_participants_expense_id", table_name="expense_participants")
    op.drop_index("idx_expenses_payer_id", table_name="expenses")
    op.drop_index("idx_expenses_date", table_name="expenses")

    op.drop_table("payments")
    op.drop_table("expense_participants")
    op.drop_table("expenses")
    op.drop_table("users")
