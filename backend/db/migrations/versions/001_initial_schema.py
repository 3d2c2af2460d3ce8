"""
Initial schema - all 5 tables

Revision ID: 001
Revises: None
Create Date: 2026-10-17
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # 1. Products
    op.create_table(
        "products",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("sku", sa.String(50), nullable=False, unique=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("category", sa.String(50), nullable=False),
        sa.Column("unit_cost", sa.Float, nullable=False, server_default="0"),
        sa.Column("reorder_point", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("unit_cost >= 0", name="ck_product_cost_positive"),
        sa.CheckConstraint("reorder_point >= 0", name="ck_product_reorder_point_positive"),
    )
    op.create_index("ix_products_category", "products", ["category"])
    # SKUs are unique regardless of case
    op.execute("CREATE UNIQUE INDEX ix_products_sku_lower ON products (lower(sku))")

    # 2. Warehouses
    op.create_table(
        "warehouses",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("code", sa.String(20), nullable=False, unique=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("location", sa.String(200), nullable=False),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
    )
    op.execute("CREATE UNIQUE INDEX ix_warehouses_code_lower ON warehouses (lower(code))")

    # 3. Stock Records
    op.create_table(
        "stock_records",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("product_id", sa.Integer, sa.ForeignKey("products.id", ondelete="CASCADE"), nullable=False),
        sa.Column("warehouse_id", sa.Integer, sa.ForeignKey("warehouses.id", ondelete="CASCADE"), nullable=False),
        sa.Column("quantity", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("product_id", "warehouse_id", name="uq_stock_product_warehouse"),
        sa.CheckConstraint("quantity >= 0", name="ck_stock_qty_positive"),
    )
    op.create_index("ix_stock_warehouse", "stock_records", ["warehouse_id"])

    # 4. Transfers (no FKs: the log outlives deleted products and warehouses)
    op.create_table(
        "transfers",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("product_id", sa.Integer, nullable=False),
        sa.Column("from_warehouse_id", sa.Integer, nullable=False),
        sa.Column("to_warehouse_id", sa.Integer, nullable=False),
        sa.Column("quantity", sa.Integer, nullable=False),
        sa.Column("notes", sa.Text, nullable=False, server_default=""),
        sa.Column("status", sa.String(20), nullable=False, server_default="completed"),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("quantity > 0", name="ck_transfer_quantity_positive"),
        sa.CheckConstraint("from_warehouse_id <> to_warehouse_id", name="ck_transfer_distinct_warehouses"),
        sa.CheckConstraint("status IN ('completed')", name="ck_transfer_status"),
    )
    op.create_index("ix_transfers_product", "transfers", ["product_id"])
    op.create_index("ix_transfers_created", "transfers", ["created_at"])

    # 5. Alert Records
    op.create_table(
        "alert_records",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column(
            "product_id",
            sa.Integer,
            sa.ForeignKey("products.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("acknowledged", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("acknowledged_at", sa.DateTime),
        sa.Column("dismissed", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("dismissed_at", sa.DateTime),
        sa.Column("notes", sa.Text, nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
    )


def downgrade() -> None:
    tables = [
        "alert_records",
        "transfers",
        "stock_records",
        "warehouses",
        "products",
    ]
    for table in tables:
        op.drop_table(table)
