"""
Products Router — CRUD for product catalog.
"""

from datetime import datetime

import structlog
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_db
from core.errors import ConflictError
from db.models import AlertRecord, Product
from db.store import RecordStore
from inventory.ledger import StockLedger

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/products", tags=["products"])


# ─── Schemas ────────────────────────────────────────────────────────────────


class ProductCreate(BaseModel):
    sku: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=100)
    category: str = Field(..., min_length=1, max_length=50)
    unit_cost: float = Field(..., ge=0)
    reorder_point: int = Field(..., ge=0)

    model_config = {"str_strip_whitespace": True}


class ProductUpdate(BaseModel):
    sku: str | None = Field(None, min_length=1, max_length=50)
    name: str | None = Field(None, min_length=1, max_length=100)
    category: str | None = Field(None, min_length=1, max_length=50)
    unit_cost: float | None = Field(None, ge=0)
    reorder_point: int | None = Field(None, ge=0)

    model_config = {"str_strip_whitespace": True}


class ProductResponse(BaseModel):
    id: int
    sku: str
    name: str
    category: str
    unit_cost: float
    reorder_point: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# ─── Endpoints ──────────────────────────────────────────────────────────────


@router.get("/", response_model=list[ProductResponse])
async def list_products(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    category: str | None = None,
    db: AsyncSession = Depends(get_db),
):
    """List products with optional category filter."""
    query = select(Product)
    if category:
        query = query.where(Product.category == category)
    query = query.order_by(Product.id).offset(skip).limit(limit)
    result = await db.execute(query)
    return result.scalars().all()


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Get a single product by ID."""
    return await RecordStore(db, Product).require(product_id)


@router.post("/", response_model=ProductResponse, status_code=201)
async def create_product(
    product: ProductCreate,
    db: AsyncSession = Depends(get_db),
):
    """Create a new product."""
    await _ensure_unique_sku(db, product.sku)
    db_product = await RecordStore(db, Product).insert(**product.model_dump())
    await db.commit()
    await db.refresh(db_product)
    logger.info("product.created", product_id=db_product.id, sku=db_product.sku)
    return db_product


@router.patch("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: int,
    update: ProductUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Update a product."""
    store = RecordStore(db, Product)
    product = await store.require(product_id)

    patch = update.model_dump(exclude_unset=True, exclude_none=True)
    if "sku" in patch and patch["sku"].lower() != product.sku.lower():
        await _ensure_unique_sku(db, patch["sku"], exclude_id=product_id)
    patch["updated_at"] = datetime.utcnow()

    await store.apply(product, patch)
    await db.commit()
    await db.refresh(product)
    return product


@router.delete("/{product_id}", status_code=204)
async def delete_product(
    product_id: int,
    cascade: bool = False,
    db: AsyncSession = Depends(get_db),
):
    """Delete a product. Stock records block deletion unless ``cascade=true``."""
    store = RecordStore(db, Product)
    product = await store.require(product_id)

    ledger = StockLedger(db)
    related = await ledger.list_records(product_id=product_id)
    if related and not cascade:
        raise ConflictError(
            f"Cannot delete product: {len(related)} stock record(s) reference this product. "
            "Use ?cascade=true to delete with related stock records.",
            related_records=len(related),
        )

    removed = await ledger.delete_for_product(product_id)
    await db.execute(delete(AlertRecord).where(AlertRecord.product_id == product_id))
    await db.delete(product)
    await db.commit()
    logger.info("product.deleted", product_id=product_id, cascaded_stock_records=removed)


async def _ensure_unique_sku(db: AsyncSession, sku: str, exclude_id: int | None = None) -> None:
    query = select(Product.id).where(func.lower(Product.sku) == sku.lower())
    if exclude_id is not None:
        query = query.where(Product.id != exclude_id)
    if (await db.execute(query)).first() is not None:
        raise ConflictError("A product with this SKU already exists")
