"""create clients table

Revision ID: 4c2e8a1f7b30
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "4c2e8a1f7b30"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "clients",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("va_name", sa.String(), nullable=False),
        sa.Column("hire_type", sa.String(), nullable=False),
        sa.Column("affiliate_id", sa.String(), nullable=True),
        sa.Column("is_hired", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_paid", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index("ix_clients_created_at", "clients", ["created_at"], unique=False)
    op.create_index("ix_clients_affiliate_id", "clients", ["affiliate_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_clients_affiliate_id", table_name="clients")
    op.drop_index("ix_clients_created_at", table_name="clients")
    op.drop_table("clients")
