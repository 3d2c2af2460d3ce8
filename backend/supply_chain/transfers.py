"""
Transfer Engine — Warehouse-to-Warehouse Stock Movement.

A transfer debits the source warehouse, credits the destination (creating
its stock record on first arrival) and appends an immutable Transfer row.
All three writes commit together or not at all.

Preconditions, checked in order (first failure wins):
1. product, source, destination and quantity present and well-typed
2. source != destination
3. quantity is a positive integer
4. product exists
5. both warehouses exist
6. source holds at least ``quantity`` units

Validation fully precedes mutation. Quantity is conserved by construction:
the same integer leaves the source and lands in the destination.
"""

from datetime import datetime
from typing import Any

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import get_settings
from core.errors import (
    InsufficientStockError,
    InternalError,
    NotFoundError,
    StockpointError,
    ValidationError,
)
from db.models import Product, Transfer, Warehouse
from db.store import RecordStore
from inventory.ledger import MAX_QUANTITY, StockLedger
from inventory.locks import stock_locks

logger = structlog.get_logger()

_settings = get_settings()
NOTES_MAX_LENGTH = int(_settings.transfer_notes_max_length)

TRANSFER_STATUS_COMPLETED = "completed"


def _is_id(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value <= MAX_QUANTITY


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_transfer_request(
    product_id: Any,
    from_warehouse_id: Any,
    to_warehouse_id: Any,
    quantity: Any,
    notes: Any = None,
) -> tuple[int, int, int, int, str]:
    """Preconditions 1-3. Returns normalized (product, from, to, quantity, notes)."""
    if product_id is None:
        raise ValidationError("Product ID is required.", field="product_id")
    if from_warehouse_id is None:
        raise ValidationError("Source warehouse ID is required.", field="from_warehouse_id")
    if to_warehouse_id is None:
        raise ValidationError("Destination warehouse ID is required.", field="to_warehouse_id")
    if quantity is None:
        raise ValidationError("Quantity is required.", field="quantity")
    if not _is_id(product_id):
        raise ValidationError("Product ID must be a valid number.", field="product_id")
    if not _is_id(from_warehouse_id) or not _is_id(to_warehouse_id):
        raise ValidationError("Warehouse IDs must be valid numbers.", field="warehouse_id")
    if not _is_number(quantity):
        raise ValidationError("Quantity must be a number.", field="quantity")
    if notes is not None and not isinstance(notes, str):
        raise ValidationError("Notes must be text.", field="notes")

    if from_warehouse_id == to_warehouse_id:
        raise ValidationError("Source and destination warehouses must be different.", field="to_warehouse_id")

    if isinstance(quantity, float):
        if not quantity.is_integer():
            raise ValidationError("Quantity must be a positive whole number.", field="quantity")
        quantity = int(quantity)
    if quantity <= 0:
        raise ValidationError("Quantity must be a positive whole number.", field="quantity")
    if quantity > MAX_QUANTITY:
        raise ValidationError(f"Quantity cannot exceed {MAX_QUANTITY}.", field="quantity")

    clean_notes = (notes or "").strip()[:NOTES_MAX_LENGTH]
    return product_id, from_warehouse_id, to_warehouse_id, quantity, clean_notes


async def create_transfer(
    db: AsyncSession,
    product_id: Any,
    from_warehouse_id: Any,
    to_warehouse_id: Any,
    quantity: Any,
    notes: Any = None,
) -> Transfer:
    """Move ``quantity`` units of a product between two warehouses."""
    product_id, from_id, to_id, quantity, notes = validate_transfer_request(
        product_id, from_warehouse_id, to_warehouse_id, quantity, notes
    )

    ledger = StockLedger(db)
    transfers = RecordStore(db, Transfer)

    product = await ledger.products.get(product_id)
    if product is None:
        raise NotFoundError("product", product_id, message="The specified product does not exist.")
    source = await ledger.warehouses.get(from_id)
    if source is None:
        raise NotFoundError("warehouse", from_id, message="Source warehouse does not exist.")
    destination = await ledger.warehouses.get(to_id)
    if destination is None:
        raise NotFoundError("warehouse", to_id, message="Destination warehouse does not exist.")

    async with stock_locks.hold((product_id, from_id), (product_id, to_id)):
        try:
            locked = await ledger.lock_records(product_id, [from_id, to_id])
            source_record = locked[from_id]
            available = source_record.quantity if source_record else 0
            if available < quantity:
                if source_record is None:
                    message = f"{product.name} is not available at {source.name}."
                else:
                    message = (
                        f"Only {available} units available at {source.name}. "
                        f"Cannot transfer {quantity} units."
                    )
                raise InsufficientStockError(available=available, requested=quantity, message=message)

            await ledger.adjust(product_id, from_id, -quantity)
            await ledger.adjust(product_id, to_id, quantity)
            transfer = await transfers.insert(
                product_id=product_id,
                from_warehouse_id=from_id,
                to_warehouse_id=to_id,
                quantity=quantity,
                notes=notes,
                status=TRANSFER_STATUS_COMPLETED,
                created_at=datetime.utcnow(),
            )
            await db.commit()
        except StockpointError:
            await db.rollback()
            raise
        except SQLAlchemyError as exc:
            await db.rollback()
            logger.error("transfer.failed", product=product_id, from_warehouse=from_id, to_warehouse=to_id, error=str(exc))
            raise InternalError("An error occurred while processing the transfer.") from exc

    logger.info(
        "transfer.created",
        transfer_id=transfer.id,
        product=product_id,
        from_warehouse=from_id,
        to_warehouse=to_id,
        quantity=quantity,
    )
    return transfer


# ─── Reads ──────────────────────────────────────────────────────────────────


def product_ref(product: Product | None) -> dict | None:
    if product is None:
        return None
    return {
        "id": product.id,
        "sku": product.sku,
        "name": product.name,
        "category": product.category,
        "unit_cost": product.unit_cost,
        "reorder_point": product.reorder_point,
    }


def warehouse_ref(warehouse: Warehouse | None) -> dict | None:
    if warehouse is None:
        return None
    return {
        "id": warehouse.id,
        "code": warehouse.code,
        "name": warehouse.name,
        "location": warehouse.location,
    }


def enrich_transfer(
    transfer: Transfer,
    products: dict[int, Product],
    warehouses: dict[int, Warehouse],
) -> dict:
    """Transfer fields plus the referenced product and warehouses (None if deleted)."""
    return {
        "id": transfer.id,
        "product_id": transfer.product_id,
        "from_warehouse_id": transfer.from_warehouse_id,
        "to_warehouse_id": transfer.to_warehouse_id,
        "quantity": transfer.quantity,
        "notes": transfer.notes,
        "status": transfer.status,
        "created_at": transfer.created_at,
        "product": product_ref(products.get(transfer.product_id)),
        "from_warehouse": warehouse_ref(warehouses.get(transfer.from_warehouse_id)),
        "to_warehouse": warehouse_ref(warehouses.get(transfer.to_warehouse_id)),
    }


async def _reference_maps(db: AsyncSession) -> tuple[dict[int, Product], dict[int, Warehouse]]:
    products = {p.id: p for p in await RecordStore(db, Product).list()}
    warehouses = {w.id: w for w in await RecordStore(db, Warehouse).list()}
    return products, warehouses


async def list_transfers(db: AsyncSession, product_id: int | None = None) -> list[dict]:
    """All transfers, most recent first, enriched for display."""
    criteria = [Transfer.product_id == product_id] if product_id is not None else []
    rows = await RecordStore(db, Transfer).list(*criteria)
    rows.sort(key=lambda t: (t.created_at, t.id), reverse=True)

    products, warehouses = await _reference_maps(db)
    return [enrich_transfer(t, products, warehouses) for t in rows]


async def get_transfer(db: AsyncSession, transfer_id: int) -> dict:
    transfer = await RecordStore(db, Transfer).require(transfer_id)
    products, warehouses = await _reference_maps(db)
    return enrich_transfer(transfer, products, warehouses)


async def delete_transfer(db: AsyncSession, transfer_id: int) -> None:
    """Remove a transfer from the audit trail. Stock is NOT moved back."""
    await RecordStore(db, Transfer).delete(transfer_id)
    await db.commit()
    logger.info("transfer.deleted", transfer_id=transfer_id)
