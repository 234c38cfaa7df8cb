"""add users and payroll burden rates

Revision ID: 3c1f0a9d2b47
Revises:
Create Date: 2026-03-02 09:14:51.204117

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "3c1f0a9d2b47"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_JSON = sa.JSON().with_variant(postgresql.JSONB(astext_type=sa.Text()), "postgresql")
_NOW = sa.text("CURRENT_TIMESTAMP")

_LEVELS = "('WORKER','SITE','STATE','GLOBAL')"
_CATEGORIES = "('WC','GL','FICA','SUTA','FUTA','PEO','OVERHEAD','INT_W','INT_PD','ADMIN','BANK')"


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "users",
        sa.Column("id", sa.String(), primary_key=True, nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("full_name", sa.String(), nullable=False),
        sa.Column("hashed_password", sa.String(), nullable=False, server_default=""),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=_NOW),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "payroll_burden_rates",
        sa.Column("id", sa.String(), primary_key=True, nullable=False),
        sa.Column("level", sa.String(length=16), nullable=False),
        sa.Column("category", sa.String(length=16), nullable=False),
        sa.Column("effective_date", sa.DateTime(), nullable=False),
        sa.Column("rate_percent", sa.Numeric(10, 4), nullable=False),
        sa.Column("worker_id", sa.String(), nullable=True),
        sa.Column("location_id", sa.String(), nullable=True),
        sa.Column("state_code", sa.String(length=2), nullable=True),
        sa.Column("created_by_user_id", sa.String(), nullable=False),
        sa.Column("updated_by_user_id", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=_NOW),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=_NOW),
        sa.CheckConstraint("rate_percent > 0", name="ck_payroll_burden_rates_rate_positive"),
        sa.CheckConstraint(f"level IN {_LEVELS}", name="ck_payroll_burden_rates_level"),
        sa.CheckConstraint(f"category IN {_CATEGORIES}", name="ck_payroll_burden_rates_category"),
        sa.CheckConstraint(
            "(level = 'WORKER' AND worker_id IS NOT NULL AND location_id IS NULL AND state_code IS NULL)"
            " OR (level = 'SITE' AND location_id IS NOT NULL AND worker_id IS NULL AND state_code IS NULL)"
            " OR (level = 'STATE' AND state_code IS NOT NULL AND worker_id IS NULL AND location_id IS NULL)"
            " OR (level = 'GLOBAL' AND worker_id IS NULL AND location_id IS NULL AND state_code IS NULL)",
            name="ck_payroll_burden_rates_scope_keys",
        ),
    )
    op.create_index(
        "ix_payroll_burden_rates_lookup",
        "payroll_burden_rates",
        ["category", "level", "effective_date"],
        unique=False,
    )
    op.create_index("ix_payroll_burden_rates_worker", "payroll_burden_rates", ["worker_id"], unique=False)
    op.create_index("ix_payroll_burden_rates_location", "payroll_burden_rates", ["location_id"], unique=False)
    op.create_index("ix_payroll_burden_rates_state", "payroll_burden_rates", ["state_code"], unique=False)

    op.create_table(
        "payroll_burden_rate_audits",
        sa.Column("id", sa.String(), primary_key=True, nullable=False),
        sa.Column("burden_rate_id", sa.String(), nullable=False),
        sa.Column("action", sa.String(length=16), nullable=False),
        sa.Column("before", _JSON, nullable=True),
        sa.Column("after", _JSON, nullable=True),
        sa.Column("created_by_user_id", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=_NOW),
        sa.CheckConstraint("action IN ('CREATE','UPDATE','DELETE')", name="ck_payroll_burden_rate_audits_action"),
    )
    op.create_index(
        "ix_payroll_burden_rate_audits_burden_rate_id",
        "payroll_burden_rate_audits",
        ["burden_rate_id"],
        unique=False,
    )
    op.create_index(
        "ix_payroll_burden_rate_audits_created_at",
        "payroll_burden_rate_audits",
        ["created_at"],
        unique=False,
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_payroll_burden_rate_audits_created_at", table_name="payroll_burden_rate_audits")
    op.drop_index("ix_payroll_burden_rate_audits_burden_rate_id", table_name="payroll_burden_rate_audits")
    op.drop_table("payroll_burden_rate_audits")

    op.drop_index("ix_payroll_burden_rates_state", table_name="payroll_burden_rates")
    op.drop_index("ix_payroll_burden_rates_location", table_name="payroll_burden_rates")
    op.drop_index("ix_payroll_burden_rates_worker", table_name="payroll_burden_rates")
    op.drop_index("ix_payroll_burden_rates_lookup", table_name="payroll_burden_rates")
    op.drop_table("payroll_burden_rates")

    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
