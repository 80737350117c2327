"""create currency tables

Revision ID: 3c1f9a2e7b10
Revises:
Create Date: 2026-10-19 09:12:44.118305

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c1f9a2e7b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "currency_rates",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("code", sa.String(length=3), nullable=False),
        sa.Column("description", sa.String(length=120), nullable=False),
        sa.Column("rate", sa.Numeric(precision=18, scale=8), nullable=False),
        sa.Column("as_of", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code"),
    )
    op.create_table(
        "currency_conversions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("from_code", sa.String(length=3), nullable=False),
        sa.Column("from_description", sa.String(length=120), nullable=False),
        sa.Column("to_code", sa.String(length=3), nullable=False),
        sa.Column("to_description", sa.String(length=120), nullable=False),
        sa.Column("original_amount", sa.Numeric(precision=18, scale=4), nullable=False),
        sa.Column("converted_amount", sa.Numeric(precision=18, scale=4), nullable=False),
        sa.Column("converted_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_currency_conversions_converted_at", "currency_conversions", ["converted_at"]
    )
    op.create_index("ix_currency_conversions_from_code", "currency_conversions", ["from_code"])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_currency_conversions_from_code", table_name="currency_conversions")
    op.drop_index("ix_currency_conversions_converted_at", table_name="currency_conversions")
    op.drop_table("currency_conversions")
    op.drop_table("currency_rates")
