"""
Stock Ledger — quantity per (product, warehouse).

Invariants:
  - at most one StockRecord per (product_id, warehouse_id)
  - quantity is a non-negative integer
  - no record means zero stock, not an error

Ledger methods flush but never commit, and never take the in-process
stock locks themselves: callers that mutate hold
``inventory.locks.stock_locks`` for the affected keys and own the commit.
"""

from collections.abc import Iterable

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import ConflictError, InsufficientStockError, InvalidQuantityError
from db.models import Product, StockRecord, Warehouse
from db.store import RecordStore

logger = structlog.get_logger()

# Largest quantity an INTEGER column holds on every supported database
MAX_QUANTITY = 2**31 - 1


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _require_quantity(quantity) -> int:
    if not _is_int(quantity):
        raise InvalidQuantityError("Quantity must be a whole number")
    if quantity < 0:
        raise InvalidQuantityError("Quantity must be a non-negative integer", quantity=quantity)
    if quantity > MAX_QUANTITY:
        raise InvalidQuantityError(f"Quantity cannot exceed {MAX_QUANTITY}", quantity=quantity)
    return quantity


class StockLedger:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.records = RecordStore(db, StockRecord)
        self.products = RecordStore(db, Product)
        self.warehouses = RecordStore(db, Warehouse)

    # ── Reads ─────────────────────────────────────────────────────────────

    async def get_record(self, product_id: int, warehouse_id: int, *, for_update: bool = False) -> StockRecord | None:
        return await self.records.find_one(
            for_update=for_update,
            product_id=product_id,
            warehouse_id=warehouse_id,
        )

    async def get_quantity(self, product_id: int, warehouse_id: int) -> int:
        record = await self.get_record(product_id, warehouse_id)
        return record.quantity if record else 0

    async def total_quantity(self, product_id: int) -> int:
        result = await self.db.execute(
            select(func.coalesce(func.sum(StockRecord.quantity), 0)).where(StockRecord.product_id == product_id)
        )
        return int(result.scalar() or 0)

    async def list_records(
        self,
        product_id: int | None = None,
        warehouse_id: int | None = None,
    ) -> list[StockRecord]:
        filters = {}
        if product_id is not None:
            filters["product_id"] = product_id
        if warehouse_id is not None:
            filters["warehouse_id"] = warehouse_id
        return await self.records.find_by(**filters)

    async def lock_records(self, product_id: int, warehouse_ids: Iterable[int]) -> dict[int, StockRecord | None]:
        """Row-lock the product's records at ``warehouse_ids`` in id order."""
        locked: dict[int, StockRecord | None] = {}
        for warehouse_id in sorted(set(warehouse_ids)):
            locked[warehouse_id] = await self.get_record(product_id, warehouse_id, for_update=True)
        return locked

    # ── Mutations ─────────────────────────────────────────────────────────

    async def set_quantity(self, product_id: int, warehouse_id: int, quantity: int) -> StockRecord:
        """Create the record if absent, else overwrite its quantity."""
        quantity = _require_quantity(quantity)
        record = await self.get_record(product_id, warehouse_id, for_update=True)
        return await self._write(record, product_id, warehouse_id, quantity)

    async def adjust(self, product_id: int, warehouse_id: int, delta: int) -> StockRecord:
        """Add ``delta`` (may be negative) to the record's quantity."""
        if not _is_int(delta):
            raise InvalidQuantityError("Adjustment must be a whole number")
        if abs(delta) > MAX_QUANTITY:
            raise InvalidQuantityError(f"Adjustment cannot exceed {MAX_QUANTITY} units", delta=delta)

        record = await self.get_record(product_id, warehouse_id, for_update=True)
        current = record.quantity if record else 0
        new_quantity = current + delta
        if new_quantity < 0:
            raise InsufficientStockError(available=current, requested=-delta)
        if new_quantity > MAX_QUANTITY:
            raise InvalidQuantityError(f"Quantity cannot exceed {MAX_QUANTITY}", quantity=new_quantity)

        record = await self._write(record, product_id, warehouse_id, new_quantity)
        logger.debug(
            "stock.adjusted",
            product_id=product_id,
            warehouse_id=warehouse_id,
            delta=delta,
            quantity=new_quantity,
        )
        return record

    async def _write(
        self,
        record: StockRecord | None,
        product_id: int,
        warehouse_id: int,
        quantity: int,
    ) -> StockRecord:
        if record is None:
            return await self.records.insert(
                product_id=product_id,
                warehouse_id=warehouse_id,
                quantity=quantity,
            )
        return await self.records.apply(record, {"quantity": quantity})

    # ── Record CRUD ───────────────────────────────────────────────────────

    async def create_record(self, product_id: int, warehouse_id: int, quantity: int) -> StockRecord:
        quantity = _require_quantity(quantity)
        await self.products.require(product_id)
        await self.warehouses.require(warehouse_id)

        existing = await self.get_record(product_id, warehouse_id)
        if existing is not None:
            raise ConflictError(
                "A stock record for this product and warehouse already exists. Update it instead.",
                existing_id=existing.id,
            )
        return await self.records.insert(
            product_id=product_id,
            warehouse_id=warehouse_id,
            quantity=quantity,
        )

    async def update_record(
        self,
        record_id: int,
        quantity: int | None = None,
        product_id: int | None = None,
        warehouse_id: int | None = None,
    ) -> StockRecord:
        record = await self.records.require(record_id)
        patch: dict = {}

        if quantity is not None:
            patch["quantity"] = _require_quantity(quantity)

        target_product = product_id if product_id is not None else record.product_id
        target_warehouse = warehouse_id if warehouse_id is not None else record.warehouse_id
        if (target_product, target_warehouse) != (record.product_id, record.warehouse_id):
            await self.products.require(target_product)
            await self.warehouses.require(target_warehouse)
            clash = await self.get_record(target_product, target_warehouse)
            if clash is not None and clash.id != record.id:
                raise ConflictError(
                    "A stock record for this product and warehouse already exists",
                    existing_id=clash.id,
                )
            patch["product_id"] = target_product
            patch["warehouse_id"] = target_warehouse

        return await self.records.apply(record, patch)

    async def delete_record(self, record_id: int) -> None:
        await self.records.delete(record_id)

    async def delete_for_product(self, product_id: int) -> int:
        records = await self.list_records(product_id=product_id)
        for record in records:
            await self.db.delete(record)
        await self.db.flush()
        return len(records)

    async def delete_for_warehouse(self, warehouse_id: int) -> int:
        records = await self.list_records(warehouse_id=warehouse_id)
        for record in records:
            await self.db.delete(record)
        await self.db.flush()
        return len(records)
