"""unique user initials

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-19 00:00:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "0002"
down_revision = "0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    # поиск по инициалам регистронезависимый, поэтому и уникальность тоже
    op.create_index(
        "uq_users_initials_upper",
        "users",
        [sa.text("upper(initials)")],
        unique=True,
    )


def downgrade() -> None:
    op.drop_index("uq_users_initials_upper", table_name="users")
