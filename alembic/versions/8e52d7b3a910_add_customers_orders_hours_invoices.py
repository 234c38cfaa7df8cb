"""add customers, orders, hours entries and invoices

Revision ID: 8e52d7b3a910
Revises: 3c1f0a9d2b47
Create Date: 2026-03-04 15:02:17.884520

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "8e52d7b3a910"
down_revision: Union[str, Sequence[str], None] = "3c1f0a9d2b47"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_NOW = sa.text("CURRENT_TIMESTAMP")


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "customers",
        sa.Column("id", sa.String(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=_NOW),
    )

    op.create_table(
        "customer_contacts",
        sa.Column("id", sa.String(), primary_key=True, nullable=False),
        sa.Column("customer_id", sa.String(), nullable=False),
        sa.Column("first_name", sa.String(), nullable=False),
        sa.Column("last_name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("office_phone", sa.String(), nullable=True),
        sa.Column("cell_phone", sa.String(), nullable=True),
        sa.Column("job_title", sa.String(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=_NOW),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"]),
    )
    op.create_index("ix_customer_contacts_customer_id", "customer_contacts", ["customer_id"], unique=False)

    op.create_table(
        "orders",
        sa.Column("id", sa.String(), primary_key=True, nullable=False),
        sa.Column("customer_id", sa.String(), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="DRAFT"),
        sa.Column("primary_customer_contact_id", sa.String(), nullable=True),
        sa.Column("sd_pay_delta_rate", sa.Numeric(12, 4), nullable=True),
        sa.Column("sd_bill_delta_rate", sa.Numeric(12, 4), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=_NOW),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=_NOW),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"]),
        sa.ForeignKeyConstraint(
            ["primary_customer_contact_id"], ["customer_contacts.id"], ondelete="SET NULL"
        ),
        sa.CheckConstraint(
            "status IN ('DRAFT','NEEDS_TO_BE_FILLED','FILLED','COMPLETED','CANCELLED')",
            name="ck_orders_status",
        ),
    )
    op.create_index("ix_orders_customer_id", "orders", ["customer_id"], unique=False)
    op.create_index("ix_orders_status", "orders", ["status"], unique=False)

    op.create_table(
        "order_trade_requirements",
        sa.Column("id", sa.String(), primary_key=True, nullable=False),
        sa.Column("order_id", sa.String(), nullable=False),
        sa.Column("trade_id", sa.String(), nullable=False),
        sa.Column("priority", sa.String(), nullable=True),
        sa.Column("enforcement", sa.String(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("base_pay_rate", sa.Numeric(12, 4), nullable=True),
        sa.Column("base_bill_rate", sa.Numeric(12, 4), nullable=True),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"], ondelete="CASCADE"),
    )
    op.create_index(
        "ix_order_trade_requirements_order_id", "order_trade_requirements", ["order_id"], unique=False
    )

    op.create_table(
        "hours_entries",
        sa.Column("id", sa.String(), primary_key=True, nullable=False),
        sa.Column("order_id", sa.String(), nullable=False),
        sa.Column("approval_status", sa.String(length=16), nullable=False, server_default="PENDING"),
        sa.Column("hours", sa.Numeric(10, 2), nullable=False),
        sa.Column("work_date", sa.Date(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=_NOW),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"], ondelete="RESTRICT"),
        sa.CheckConstraint("hours >= 0", name="ck_hours_entries_hours_nonnegative"),
        sa.CheckConstraint(
            "approval_status IN ('PENDING','APPROVED','REJECTED')",
            name="ck_hours_entries_approval_status",
        ),
    )
    op.create_index("ix_hours_entries_order_id", "hours_entries", ["order_id"], unique=False)
    op.create_index("ix_hours_entries_approval_status", "hours_entries", ["approval_status"], unique=False)

    op.create_table(
        "invoices",
        sa.Column("id", sa.String(), primary_key=True, nullable=False),
        sa.Column("order_id", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=_NOW),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"], ondelete="RESTRICT"),
    )
    op.create_index("ix_invoices_order_id", "invoices", ["order_id"], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_invoices_order_id", table_name="invoices")
    op.drop_table("invoices")

    op.drop_index("ix_hours_entries_approval_status", table_name="hours_entries")
    op.drop_index("ix_hours_entries_order_id", table_name="hours_entries")
    op.drop_table("hours_entries")

    op.drop_index("ix_order_trade_requirements_order_id", table_name="order_trade_requirements")
    op.drop_table("order_trade_requirements")

    op.drop_index("ix_orders_status", table_name="orders")
    op.drop_index("ix_orders_customer_id", table_name="orders")
    op.drop_table("orders")

    op.drop_index("ix_customer_contacts_customer_id", table_name="customer_contacts")
    op.drop_table("customer_contacts")

    op.drop_table("customers")
