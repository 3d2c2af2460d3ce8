"""
Alerts Router — Reorder alerts per product and their lifecycle actions.
"""

from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from alerts.tracker import apply_alert_action, get_product_alert, list_alerts
from api.deps import get_db

router = APIRouter(prefix="/api/v1/alerts", tags=["alerts"])


# ─── Schemas ────────────────────────────────────────────────────────────────


class StockStatusResponse(BaseModel):
    status: str
    severity: int
    label: str
    priority: str


class ReorderRecommendationResponse(BaseModel):
    recommended_quantity: int
    estimated_cost: float
    urgency: str
    target_stock: int


class WarehouseBreakdown(BaseModel):
    warehouse_id: int
    warehouse_name: str
    warehouse_code: str
    warehouse_location: str
    quantity: int


class AlertProduct(BaseModel):
    id: int
    sku: str
    name: str
    category: str
    unit_cost: float
    reorder_point: int


class AlertResponse(BaseModel):
    id: int | None
    product_id: int
    product: AlertProduct
    current_stock: int
    stock_status: StockStatusResponse
    reorder_recommendation: ReorderRecommendationResponse | None
    warehouse_breakdown: list[WarehouseBreakdown]
    acknowledged: bool
    acknowledged_at: datetime | None
    dismissed: bool
    dismissed_at: datetime | None
    notes: str
    updated_at: datetime | None


class AlertSummary(BaseModel):
    total: int
    critical: int
    low: int
    adequate: int
    overstocked: int
    needs_attention: int
    total_reorder_value: float


class AlertListResponse(BaseModel):
    alerts: list[AlertResponse]
    summary: AlertSummary


class AlertActionCreate(BaseModel):
    action: str
    notes: str | None = None


class AlertRecordResponse(BaseModel):
    id: int
    product_id: int
    acknowledged: bool
    acknowledged_at: datetime | None
    dismissed: bool
    dismissed_at: datetime | None
    notes: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# ─── Endpoints ──────────────────────────────────────────────────────────────


@router.get("/", response_model=AlertListResponse)
async def list_product_alerts(
    status: str | None = None,
    category: str | None = None,
    acknowledged: bool | None = None,
    db: AsyncSession = Depends(get_db),
):
    """
    All product alerts, most severe first.

    ``status`` accepts a comma-separated list (e.g. ``out,critical``).
    The summary always covers every product, regardless of filters.
    """
    listing = await list_alerts(db, status=status, category=category, acknowledged=acknowledged)
    return listing.to_dict()


@router.get("/{product_id}", response_model=AlertResponse)
async def get_alert(
    product_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Current alert for one product."""
    return await get_product_alert(db, product_id)


@router.post("/{product_id}/actions", response_model=AlertRecordResponse)
async def apply_action(
    product_id: int,
    body: AlertActionCreate,
    db: AsyncSession = Depends(get_db),
):
    """Acknowledge, unacknowledge, dismiss, undismiss or update_notes."""
    return await apply_alert_action(db, product_id, body.action, notes=body.notes)
