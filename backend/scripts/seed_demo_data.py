"""
Seed Demo Data — Creates a small multi-warehouse inventory for development.

Run: python scripts/seed_demo_data.py
"""

import asyncio
import random

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from core.config import get_settings
from db.models import Product, StockRecord, Warehouse
from db.session import Base
from supply_chain.transfers import create_transfer

settings = get_settings()

# Seed data constants
CATEGORIES = ["Electronics", "Hardware", "Office Supplies", "Packaging", "Tools"]
WAREHOUSES = [
    ("WH-MSP", "Minneapolis Main", "Minneapolis, MN"),
    ("WH-CHI", "Chicago Cross-Dock", "Chicago, IL"),
    ("WH-MKE", "Milwaukee Overflow", "Milwaukee, WI"),
]


async def seed_data(create_tables: bool = False):
    """Create demo products, warehouses, stock and a few transfers."""
    engine = create_async_engine(settings.database_url)
    if create_tables:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    SessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with SessionLocal() as db:
        # ── Warehouses ───────────────────────────────────────
        warehouses = []
        for code, name, location in WAREHOUSES:
            warehouse = Warehouse(code=code, name=name, location=location)
            db.add(warehouse)
            warehouses.append(warehouse)
        await db.flush()

        # ── Products ─────────────────────────────────────────
        products = []
        for i in range(20):
            cat = CATEGORIES[i % len(CATEGORIES)]
            product = Product(
                sku=f"SKU-{i+1:04d}",
                name=f"{cat} Item #{i+1}",
                category=cat,
                unit_cost=round(random.uniform(0.5, 40.0), 2),
                reorder_point=random.choice([0, 20, 50, 100]),
            )
            db.add(product)
            products.append(product)
        await db.flush()

        # ── Stock ────────────────────────────────────────────
        # Skew levels so every status shows up on the alerts page
        records = 0
        for product in products:
            for warehouse in random.sample(warehouses, k=random.randint(0, len(warehouses))):
                db.add(
                    StockRecord(
                        product_id=product.id,
                        warehouse_id=warehouse.id,
                        quantity=random.choice([0, 5, 15, 40, 120, 400]),
                    )
                )
                records += 1
        await db.commit()

        # ── Transfers ────────────────────────────────────────
        stocked = (
            await db.execute(StockRecord.__table__.select().where(StockRecord.quantity >= 10))
        ).all()
        transfers = 0
        for row in random.sample(stocked, k=min(5, len(stocked))):
            destination = random.choice([w for w in warehouses if w.id != row.warehouse_id])
            await create_transfer(
                db,
                product_id=row.product_id,
                from_warehouse_id=row.warehouse_id,
                to_warehouse_id=destination.id,
                quantity=random.randint(1, row.quantity // 2),
                notes="Seed rebalance",
            )
            transfers += 1

    await engine.dispose()
    print(
        f"✅ Seeded: {len(warehouses)} warehouses, {len(products)} products, "
        f"{records} stock records, {transfers} transfers"
    )


if __name__ == "__main__":
    import sys

    asyncio.run(seed_data(create_tables="--create-tables" in sys.argv))
