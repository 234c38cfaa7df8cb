"""add quotes, quote lines and order economics snapshots

Revision ID: c4a6e19f5d03
Revises: 8e52d7b3a910
Create Date: 2026-03-09 11:40:03.517262

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "c4a6e19f5d03"
down_revision: Union[str, Sequence[str], None] = "8e52d7b3a910"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_JSON = sa.JSON().with_variant(postgresql.JSONB(astext_type=sa.Text()), "postgresql")
_NOW = sa.text("CURRENT_TIMESTAMP")


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "quotes",
        sa.Column("id", sa.String(), primary_key=True, nullable=False),
        sa.Column("customer_id", sa.String(), nullable=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("state", sa.String(length=2), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="DRAFT"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=_NOW),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=_NOW),
        sa.CheckConstraint("status IN ('DRAFT','GENERATED')", name="ck_quotes_status"),
    )
    op.create_index("ix_quotes_customer_id", "quotes", ["customer_id"], unique=False)

    op.create_table(
        "quote_lines",
        sa.Column("id", sa.String(), primary_key=True, nullable=False),
        sa.Column("quote_id", sa.String(), nullable=False),
        sa.Column("trade_id", sa.String(), nullable=False),
        sa.Column("base_rate", sa.Numeric(12, 4), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=_NOW),
        sa.ForeignKeyConstraint(["quote_id"], ["quotes.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("quote_id", "trade_id", name="uq_quote_lines_quote_trade"),
        sa.CheckConstraint("base_rate >= 0", name="ck_quote_lines_base_rate_nonnegative"),
    )
    op.create_index("ix_quote_lines_quote_id", "quote_lines", ["quote_id"], unique=False)

    op.create_table(
        "order_economics_snapshots",
        sa.Column("id", sa.String(), primary_key=True, nullable=False),
        sa.Column("quote_id", sa.String(), nullable=False),
        sa.Column("input_hash", sa.String(length=64), nullable=False),
        sa.Column("payload", _JSON, nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=_NOW),
        sa.ForeignKeyConstraint(["quote_id"], ["quotes.id"], ondelete="RESTRICT"),
        sa.UniqueConstraint("quote_id", "input_hash", name="uq_order_economics_snapshots_quote_hash"),
    )
    op.create_index(
        "ix_order_economics_snapshots_quote_id", "order_economics_snapshots", ["quote_id"], unique=False
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_order_economics_snapshots_quote_id", table_name="order_economics_snapshots")
    op.drop_table("order_economics_snapshots")

    op.drop_index("ix_quote_lines_quote_id", table_name="quote_lines")
    op.drop_table("quote_lines")

    op.drop_index("ix_quotes_customer_id", table_name="quotes")
    op.drop_table("quotes")
