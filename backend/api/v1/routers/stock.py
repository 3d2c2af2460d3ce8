"""
Stock Router — Ledger records per (product, warehouse) and direct stock edits.
"""

from datetime import datetime

import structlog
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_db
from core.errors import StockpointError
from db.models import Product, StockRecord, Warehouse
from db.store import RecordStore
from inventory.ledger import MAX_QUANTITY, StockLedger
from inventory.locks import stock_locks

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/stock", tags=["stock"])


# ─── Schemas ────────────────────────────────────────────────────────────────


class StockRecordCreate(BaseModel):
    product_id: int
    warehouse_id: int
    quantity: int = Field(..., ge=0, le=MAX_QUANTITY)


class StockRecordUpdate(BaseModel):
    product_id: int | None = None
    warehouse_id: int | None = None
    quantity: int | None = Field(None, ge=0, le=MAX_QUANTITY)


class StockLevelSet(BaseModel):
    product_id: int
    warehouse_id: int
    quantity: int = Field(..., le=MAX_QUANTITY)


class StockAdjustment(BaseModel):
    product_id: int
    warehouse_id: int
    delta: int = Field(..., ge=-MAX_QUANTITY, le=MAX_QUANTITY)


class StockRecordResponse(BaseModel):
    id: int
    product_id: int
    warehouse_id: int
    quantity: int
    created_at: datetime
    updated_at: datetime
    product_name: str | None = None
    sku: str | None = None
    warehouse_name: str | None = None
    warehouse_code: str | None = None


# ─── Endpoints ──────────────────────────────────────────────────────────────


@router.get("/", response_model=list[StockRecordResponse])
async def list_stock(
    product_id: int | None = None,
    warehouse_id: int | None = None,
    db: AsyncSession = Depends(get_db),
):
    """List stock records, optionally for one product and/or warehouse."""
    records = await StockLedger(db).list_records(product_id=product_id, warehouse_id=warehouse_id)
    products, warehouses = await _reference_maps(db)
    return [_serialize_record(r, products, warehouses) for r in records]


@router.get("/{record_id}", response_model=StockRecordResponse)
async def get_stock_record(
    record_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Get a single stock record."""
    record = await RecordStore(db, StockRecord).require(record_id)
    products, warehouses = await _reference_maps(db)
    return _serialize_record(record, products, warehouses)


@router.post("/", response_model=StockRecordResponse, status_code=201)
async def create_stock_record(
    body: StockRecordCreate,
    db: AsyncSession = Depends(get_db),
):
    """Create the stock record for a (product, warehouse) pair. 409 if it already exists."""
    async with stock_locks.hold((body.product_id, body.warehouse_id)):
        record = await StockLedger(db).create_record(body.product_id, body.warehouse_id, body.quantity)
        await db.commit()
    logger.info("stock.record_created", record_id=record.id, product=body.product_id, warehouse=body.warehouse_id)
    products, warehouses = await _reference_maps(db)
    return _serialize_record(record, products, warehouses)


@router.put("/level", response_model=StockRecordResponse)
async def set_stock_level(
    body: StockLevelSet,
    db: AsyncSession = Depends(get_db),
):
    """Set the absolute quantity for a (product, warehouse) pair, creating the record if needed."""
    ledger = StockLedger(db)
    await ledger.products.require(body.product_id)
    await ledger.warehouses.require(body.warehouse_id)

    async with stock_locks.hold((body.product_id, body.warehouse_id)):
        try:
            record = await ledger.set_quantity(body.product_id, body.warehouse_id, body.quantity)
            await db.commit()
        except StockpointError:
            await db.rollback()
            raise
    logger.info("stock.level_set", product=body.product_id, warehouse=body.warehouse_id, quantity=body.quantity)
    products, warehouses = await _reference_maps(db)
    return _serialize_record(record, products, warehouses)


@router.post("/adjust", response_model=StockRecordResponse)
async def adjust_stock(
    body: StockAdjustment,
    db: AsyncSession = Depends(get_db),
):
    """Add (or remove, with a negative delta) units. Never drives stock below zero."""
    ledger = StockLedger(db)
    await ledger.products.require(body.product_id)
    await ledger.warehouses.require(body.warehouse_id)

    async with stock_locks.hold((body.product_id, body.warehouse_id)):
        try:
            record = await ledger.adjust(body.product_id, body.warehouse_id, body.delta)
            await db.commit()
        except StockpointError:
            await db.rollback()
            raise
    logger.info("stock.adjusted", product=body.product_id, warehouse=body.warehouse_id, delta=body.delta)
    products, warehouses = await _reference_maps(db)
    return _serialize_record(record, products, warehouses)


@router.patch("/{record_id}", response_model=StockRecordResponse)
async def update_stock_record(
    record_id: int,
    body: StockRecordUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Update quantity, or move the record to another product/warehouse pair."""
    current = await RecordStore(db, StockRecord).require(record_id)
    old_key = (current.product_id, current.warehouse_id)
    new_key = (
        body.product_id if body.product_id is not None else current.product_id,
        body.warehouse_id if body.warehouse_id is not None else current.warehouse_id,
    )

    async with stock_locks.hold(old_key, new_key):
        try:
            record = await StockLedger(db).update_record(
                record_id,
                quantity=body.quantity,
                product_id=body.product_id,
                warehouse_id=body.warehouse_id,
            )
            await db.commit()
        except StockpointError:
            await db.rollback()
            raise
    products, warehouses = await _reference_maps(db)
    return _serialize_record(record, products, warehouses)


@router.delete("/{record_id}", status_code=204)
async def delete_stock_record(
    record_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Delete a stock record."""
    record = await RecordStore(db, StockRecord).require(record_id)
    async with stock_locks.hold((record.product_id, record.warehouse_id)):
        await StockLedger(db).delete_record(record_id)
        await db.commit()
    logger.info("stock.record_deleted", record_id=record_id)


# ─── Helpers ─────────────────────────────────────────────────────────────────


async def _reference_maps(db: AsyncSession) -> tuple[dict[int, Product], dict[int, Warehouse]]:
    products = {p.id: p for p in await RecordStore(db, Product).list()}
    warehouses = {w.id: w for w in await RecordStore(db, Warehouse).list()}
    return products, warehouses


def _serialize_record(
    record: StockRecord,
    products: dict[int, Product],
    warehouses: dict[int, Warehouse],
) -> dict:
    product = products.get(record.product_id)
    warehouse = warehouses.get(record.warehouse_id)
    return {
        "id": record.id,
        "product_id": record.product_id,
        "warehouse_id": record.warehouse_id,
        "quantity": record.quantity,
        "created_at": record.created_at,
        "updated_at": record.updated_at,
        "product_name": product.name if product else None,
        "sku": product.sku if product else None,
        "warehouse_name": warehouse.name if warehouse else None,
        "warehouse_code": warehouse.code if warehouse else None,
    }
