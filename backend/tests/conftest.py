"""
Test Configuration — Fixtures for async DB, test client, and seeded inventory.

Each test gets its own in-memory SQLite database. StaticPool keeps the single
connection alive so every session in the test sees the same tables.
"""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from api.deps import get_db
from api.main import app
from db.models import Product, StockRecord, Warehouse
from db.session import Base

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def test_engine():
    """Fresh database with all tables built."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def test_db(test_engine):
    session = AsyncSession(bind=test_engine, expire_on_commit=False)
    yield session
    await session.close()


@pytest.fixture
async def client(test_db):
    """Create an async test client bound to the test session."""

    async def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


async def seed_inventory(db: AsyncSession) -> dict[str, int]:
    """Two warehouses and three products with stock.

    Widget X: 100 at WH-A, 20 at WH-B, reorder point 50 (adequate overall)
    Gadget Y: no stock anywhere, reorder point 100 (out)
    Bolt Z:   30 at WH-A, reorder point 100 (critical)

    Returns plain integer ids; ORM instances expire after a rollback.
    """
    wh_a = Warehouse(code="WH-A", name="Main Warehouse", location="Minneapolis, MN")
    wh_b = Warehouse(code="WH-B", name="East Depot", location="St Paul, MN")
    db.add_all([wh_a, wh_b])

    widget = Product(sku="WID-001", name="Widget X", category="Hardware", unit_cost=2.50, reorder_point=50)
    gadget = Product(sku="GAD-001", name="Gadget Y", category="Electronics", unit_cost=10.00, reorder_point=100)
    bolt = Product(sku="BLT-001", name="Bolt Z", category="Hardware", unit_cost=0.25, reorder_point=100)
    db.add_all([widget, gadget, bolt])
    await db.flush()

    db.add_all(
        [
            StockRecord(product_id=widget.id, warehouse_id=wh_a.id, quantity=100),
            StockRecord(product_id=widget.id, warehouse_id=wh_b.id, quantity=20),
            StockRecord(product_id=bolt.id, warehouse_id=wh_a.id, quantity=30),
        ]
    )
    await db.commit()

    return {
        "wh_a": wh_a.id,
        "wh_b": wh_b.id,
        "widget": widget.id,
        "gadget": gadget.id,
        "bolt": bolt.id,
    }


@pytest.fixture
async def seeded_db(test_db):
    return await seed_inventory(test_db)


@pytest.fixture
async def file_session_factory(tmp_path):
    """Sessions on separate connections to one file-backed database.

    Used where concurrent writers must not share a session or connection.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'stockpoint.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    yield factory
    await engine.dispose()


@pytest.fixture
async def file_seeded_db(file_session_factory):
    async with file_session_factory() as db:
        return await seed_inventory(db)
