"""
Transfers Router — Move stock between warehouses and browse the transfer log.
"""

from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_db
from supply_chain.transfers import create_transfer, delete_transfer, get_transfer, list_transfers

router = APIRouter(prefix="/api/v1/transfers", tags=["transfers"])


# ─── Schemas ────────────────────────────────────────────────────────────────


class TransferCreate(BaseModel):
    # Presence, ordering and range checks live in the transfer engine so the
    # first failing precondition is the one reported.
    product_id: int | None = None
    from_warehouse_id: int | None = None
    to_warehouse_id: int | None = None
    quantity: int | float | None = None
    notes: str | None = None


class ProductRef(BaseModel):
    id: int
    sku: str
    name: str
    category: str
    unit_cost: float
    reorder_point: int


class WarehouseRef(BaseModel):
    id: int
    code: str
    name: str
    location: str


class TransferResponse(BaseModel):
    id: int
    product_id: int
    from_warehouse_id: int
    to_warehouse_id: int
    quantity: int
    notes: str
    status: str
    created_at: datetime
    product: ProductRef | None = None
    from_warehouse: WarehouseRef | None = None
    to_warehouse: WarehouseRef | None = None


# ─── Endpoints ──────────────────────────────────────────────────────────────


@router.get("/", response_model=list[TransferResponse])
async def list_all_transfers(
    product_id: int | None = None,
    db: AsyncSession = Depends(get_db),
):
    """List transfers, most recent first, with product and warehouse details."""
    return await list_transfers(db, product_id=product_id)


@router.post("/", response_model=TransferResponse, status_code=201)
async def create_new_transfer(
    body: TransferCreate,
    db: AsyncSession = Depends(get_db),
):
    """Move stock from one warehouse to another."""
    transfer = await create_transfer(
        db,
        product_id=body.product_id,
        from_warehouse_id=body.from_warehouse_id,
        to_warehouse_id=body.to_warehouse_id,
        quantity=body.quantity,
        notes=body.notes,
    )
    return await get_transfer(db, transfer.id)


@router.get("/{transfer_id}", response_model=TransferResponse)
async def get_single_transfer(
    transfer_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Get one transfer with product and warehouse details."""
    return await get_transfer(db, transfer_id)


@router.delete("/{transfer_id}", status_code=204)
async def delete_single_transfer(
    transfer_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Remove a transfer from the log. Stock levels are left as they are."""
    await delete_transfer(db, transfer_id)
