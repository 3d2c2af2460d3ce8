"""
Warehouses Router — CRUD for stock-holding locations.
"""

from datetime import datetime

import structlog
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_db
from core.errors import ConflictError
from db.models import StockRecord, Warehouse
from db.store import RecordStore
from inventory.ledger import StockLedger

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/warehouses", tags=["warehouses"])


# ─── Schemas ────────────────────────────────────────────────────────────────


class WarehouseCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=20)
    name: str = Field(..., min_length=1, max_length=100)
    location: str = Field(..., min_length=1, max_length=200)

    model_config = {"str_strip_whitespace": True}


class WarehouseUpdate(BaseModel):
    code: str | None = Field(None, min_length=1, max_length=20)
    name: str | None = Field(None, min_length=1, max_length=100)
    location: str | None = Field(None, min_length=1, max_length=200)

    model_config = {"str_strip_whitespace": True}


class WarehouseResponse(BaseModel):
    id: int
    code: str
    name: str
    location: str
    created_at: datetime
    updated_at: datetime
    total_units: int = 0
    product_count: int = 0

    model_config = {"from_attributes": True}


# ─── Endpoints ──────────────────────────────────────────────────────────────


@router.get("/", response_model=list[WarehouseResponse])
async def list_warehouses(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    """List warehouses with their stock totals."""
    result = await db.execute(select(Warehouse).order_by(Warehouse.id).offset(skip).limit(limit))
    warehouses = result.scalars().all()
    totals = await _build_stock_totals(db, [w.id for w in warehouses])
    return [_serialize_warehouse(w, totals) for w in warehouses]


@router.get("/{warehouse_id}", response_model=WarehouseResponse)
async def get_warehouse(
    warehouse_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Get a single warehouse by ID."""
    warehouse = await RecordStore(db, Warehouse).require(warehouse_id)
    totals = await _build_stock_totals(db, [warehouse.id])
    return _serialize_warehouse(warehouse, totals)


@router.post("/", response_model=WarehouseResponse, status_code=201)
async def create_warehouse(
    warehouse: WarehouseCreate,
    db: AsyncSession = Depends(get_db),
):
    """Create a new warehouse."""
    await _ensure_unique_code(db, warehouse.code)
    db_warehouse = await RecordStore(db, Warehouse).insert(**warehouse.model_dump())
    await db.commit()
    await db.refresh(db_warehouse)
    logger.info("warehouse.created", warehouse_id=db_warehouse.id, code=db_warehouse.code)
    return _serialize_warehouse(db_warehouse, {})


@router.patch("/{warehouse_id}", response_model=WarehouseResponse)
async def update_warehouse(
    warehouse_id: int,
    update: WarehouseUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Update a warehouse."""
    store = RecordStore(db, Warehouse)
    warehouse = await store.require(warehouse_id)

    patch = update.model_dump(exclude_unset=True, exclude_none=True)
    if "code" in patch and patch["code"].lower() != warehouse.code.lower():
        await _ensure_unique_code(db, patch["code"], exclude_id=warehouse_id)
    patch["updated_at"] = datetime.utcnow()

    await store.apply(warehouse, patch)
    await db.commit()
    await db.refresh(warehouse)
    totals = await _build_stock_totals(db, [warehouse.id])
    return _serialize_warehouse(warehouse, totals)


@router.delete("/{warehouse_id}", status_code=204)
async def delete_warehouse(
    warehouse_id: int,
    cascade: bool = False,
    db: AsyncSession = Depends(get_db),
):
    """Delete a warehouse. Stock records block deletion unless ``cascade=true``."""
    store = RecordStore(db, Warehouse)
    warehouse = await store.require(warehouse_id)

    ledger = StockLedger(db)
    related = await ledger.list_records(warehouse_id=warehouse_id)
    if related and not cascade:
        raise ConflictError(
            f"Cannot delete warehouse: {len(related)} stock record(s) reference this warehouse. "
            "Use ?cascade=true to delete with related stock records.",
            related_records=len(related),
        )

    removed = await ledger.delete_for_warehouse(warehouse_id)
    await db.delete(warehouse)
    await db.commit()
    logger.info("warehouse.deleted", warehouse_id=warehouse_id, cascaded_stock_records=removed)


def _serialize_warehouse(warehouse: Warehouse, totals: dict[int, dict]) -> dict:
    stats = totals.get(warehouse.id, {})
    return {
        "id": warehouse.id,
        "code": warehouse.code,
        "name": warehouse.name,
        "location": warehouse.location,
        "created_at": warehouse.created_at,
        "updated_at": warehouse.updated_at,
        "total_units": stats.get("total_units", 0),
        "product_count": stats.get("product_count", 0),
    }


async def _build_stock_totals(db: AsyncSession, warehouse_ids: list[int]) -> dict[int, dict]:
    if not warehouse_ids:
        return {}
    result = await db.execute(
        select(
            StockRecord.warehouse_id,
            func.coalesce(func.sum(StockRecord.quantity), 0).label("total_units"),
            func.count(StockRecord.id).label("product_count"),
        )
        .where(StockRecord.warehouse_id.in_(warehouse_ids))
        .group_by(StockRecord.warehouse_id)
    )
    return {
        row.warehouse_id: {"total_units": int(row.total_units or 0), "product_count": int(row.product_count or 0)}
        for row in result.all()
    }


async def _ensure_unique_code(db: AsyncSession, code: str, exclude_id: int | None = None) -> None:
    query = select(Warehouse.id).where(func.lower(Warehouse.code) == code.lower())
    if exclude_id is not None:
        query = query.where(Warehouse.id != exclude_id)
    if (await db.execute(query)).first() is not None:
        raise ConflictError("A warehouse with this code already exists")
