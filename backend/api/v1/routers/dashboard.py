"""
Dashboard Router — Inventory totals and stock status overview.
"""

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_db
from inventory.dashboard import build_dashboard

router = APIRouter(prefix="/api/v1/dashboard", tags=["dashboard"])


class StatusCounts(BaseModel):
    critical: int
    low: int
    adequate: int
    overstocked: int


class WarehouseTotals(BaseModel):
    warehouse_id: int
    code: str
    name: str
    total_units: int
    total_value: float


class CategoryTotals(BaseModel):
    category: str
    total_units: int


class LowStockItem(BaseModel):
    product_id: int
    sku: str
    name: str
    current_stock: int
    reorder_point: int
    stock_status: dict


class DashboardResponse(BaseModel):
    total_products: int
    total_warehouses: int
    total_units: int
    total_value: float
    status_counts: StatusCounts
    warehouses: list[WarehouseTotals]
    categories: list[CategoryTotals]
    low_stock_items: list[LowStockItem]


@router.get("/", response_model=DashboardResponse)
async def get_dashboard(
    low_stock_limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """Inventory overview across all warehouses."""
    return await build_dashboard(db, low_stock_limit=low_stock_limit)
