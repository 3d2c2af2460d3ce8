"""
Stockpoint Database Models

5 tables for multi-warehouse inventory tracking.

Tables:
  1. products        - Product catalog with reorder point
  2. warehouses      - Stock-holding locations
  3. stock_records   - Quantity per (product, warehouse), the ledger
  4. transfers       - Immutable warehouse-to-warehouse movements (audit trail)
  5. alert_records   - Per-product alert lifecycle (acknowledged/dismissed/notes)

Integer ids are assigned by the database on insert.
"""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from db.session import Base

# ─── 1. Products ────────────────────────────────────────────────────────────


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    sku = Column(String(50), nullable=False, unique=True)
    name = Column(String(100), nullable=False)
    category = Column(String(50), nullable=False)
    unit_cost = Column(Float, nullable=False, default=0.0)
    reorder_point = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("ix_products_category", "category"),
        CheckConstraint("unit_cost >= 0", name="ck_product_cost_positive"),
        CheckConstraint("reorder_point >= 0", name="ck_product_reorder_point_positive"),
    )

    stock_records = relationship("StockRecord", back_populates="product", passive_deletes=True)


# ─── 2. Warehouses ──────────────────────────────────────────────────────────


class Warehouse(Base):
    __tablename__ = "warehouses"

    id = Column(Integer, primary_key=True)
    code = Column(String(20), nullable=False, unique=True)
    name = Column(String(100), nullable=False)
    location = Column(String(200), nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    stock_records = relationship("StockRecord", back_populates="warehouse", passive_deletes=True)


# ─── 3. Stock Records ───────────────────────────────────────────────────────


class StockRecord(Base):
    __tablename__ = "stock_records"

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    warehouse_id = Column(Integer, ForeignKey("warehouses.id", ondelete="CASCADE"), nullable=False)
    quantity = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("product_id", "warehouse_id", name="uq_stock_product_warehouse"),
        Index("ix_stock_warehouse", "warehouse_id"),
        CheckConstraint("quantity >= 0", name="ck_stock_qty_positive"),
    )

    product = relationship("Product", back_populates="stock_records")
    warehouse = relationship("Warehouse", back_populates="stock_records")


# ─── 4. Transfers ───────────────────────────────────────────────────────────


class Transfer(Base):
    """Warehouse-to-warehouse stock movement.

    References are plain integers so the audit trail outlives deleted
    products and warehouses.
    """

    __tablename__ = "transfers"

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, nullable=False)
    from_warehouse_id = Column(Integer, nullable=False)
    to_warehouse_id = Column(Integer, nullable=False)
    quantity = Column(Integer, nullable=False)
    notes = Column(Text, nullable=False, default="")
    status = Column(String(20), nullable=False, default="completed")
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        Index("ix_transfers_product", "product_id"),
        Index("ix_transfers_created", "created_at"),
        CheckConstraint("quantity > 0", name="ck_transfer_quantity_positive"),
        CheckConstraint("from_warehouse_id <> to_warehouse_id", name="ck_transfer_distinct_warehouses"),
        CheckConstraint("status IN ('completed')", name="ck_transfer_status"),
    )


# ─── 5. Alert Records ───────────────────────────────────────────────────────


class AlertRecord(Base):
    """Lifecycle flags for a product's stock alert.

    Severity is never stored here; it is recomputed from live stock.
    """

    __tablename__ = "alert_records"

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, unique=True)
    acknowledged = Column(Boolean, nullable=False, default=False)
    acknowledged_at = Column(DateTime)
    dismissed = Column(Boolean, nullable=False, default=False)
    dismissed_at = Column(DateTime)
    notes = Column(Text, nullable=False, default="")
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow)
