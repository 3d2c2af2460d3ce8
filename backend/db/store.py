"""
Record Store — Collection-style access to one table.

Every collection (products, warehouses, stock records, transfers, alert
records) is reached through the same small contract:

  list()              -> all records, ordered by id
  get(id)             -> record | None
  insert(**values)    -> record with its database-assigned id
  update(id, patch)   -> updated record
  delete(id)          -> None

Writes are flushed, never committed. The caller owns the transaction so
multi-record mutations (e.g. a transfer) commit or roll back as one unit.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any, Generic, TypeVar

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import ConflictError, NotFoundError
from db.session import Base

logger = structlog.get_logger()

ModelT = TypeVar("ModelT", bound=Base)


def _resource_name(model: type) -> str:
    # StockRecord -> "stock record"
    return re.sub(r"(?<!^)(?=[A-Z])", " ", model.__name__).lower()


class RecordStore(Generic[ModelT]):
    """Async CRUD over a single SQLAlchemy model."""

    def __init__(self, db: AsyncSession, model: type[ModelT], resource: str | None = None):
        self.db = db
        self.model = model
        self.resource = resource or _resource_name(model)

    async def list(self, *criteria, order_by=None) -> list[ModelT]:
        query = select(self.model)
        if criteria:
            query = query.where(*criteria)
        query = query.order_by(order_by if order_by is not None else self.model.id)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get(self, record_id: int) -> ModelT | None:
        result = await self.db.execute(select(self.model).where(self.model.id == record_id))
        return result.scalar_one_or_none()

    async def require(self, record_id: int) -> ModelT:
        record = await self.get(record_id)
        if record is None:
            raise NotFoundError(self.resource, record_id)
        return record

    async def find_by(self, **filters: Any) -> list[ModelT]:
        query = select(self.model).filter_by(**filters).order_by(self.model.id)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def find_one(self, *, for_update: bool = False, **filters: Any) -> ModelT | None:
        """Single record matching ``filters``; ``for_update`` takes a row lock."""
        query = select(self.model).filter_by(**filters)
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def insert(self, **values: Any) -> ModelT:
        record = self.model(**values)
        self.db.add(record)
        try:
            await self.db.flush()
        except IntegrityError as exc:
            await self.db.rollback()
            logger.warning("store.insert_conflict", resource=self.resource, error=str(exc.orig))
            raise ConflictError(f"Duplicate {self.resource}: a record with these values already exists") from exc
        return record

    async def update(self, record_id: int, patch: Mapping[str, Any]) -> ModelT:
        record = await self.require(record_id)
        return await self.apply(record, patch)

    async def apply(self, record: ModelT, patch: Mapping[str, Any]) -> ModelT:
        """Apply ``patch`` to an already loaded record."""
        for field, value in patch.items():
            setattr(record, field, value)
        try:
            await self.db.flush()
        except IntegrityError as exc:
            await self.db.rollback()
            logger.warning("store.update_conflict", resource=self.resource, error=str(exc.orig))
            raise ConflictError(f"Duplicate {self.resource}: a record with these values already exists") from exc
        return record

    async def delete(self, record_id: int) -> None:
        record = await self.require(record_id)
        await self.db.delete(record)
        await self.db.flush()
