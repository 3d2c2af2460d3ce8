"""
Alert Tracker — Per-product reorder alerts and their lifecycle.

Every product has exactly one alert, derived on each read from live stock:
  total quantity (all warehouses) → classify() → status + severity
                                  → recommend() → reorder suggestion

The tracker only stores what a person did about the alert:

  {none recorded} → unacknowledged ⇄ acknowledged
  dismissed ⇄ undismissed          (orthogonal flag)
  notes                            (free text)

A product without an AlertRecord is in the default state
(not acknowledged, not dismissed, empty notes); the record is created
lazily by the first action. Severity is never persisted, so it cannot go
stale.
"""

from collections import defaultdict
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import ConflictError, InternalError, NotFoundError, StockpointError, ValidationError
from db.models import AlertRecord, Product, StockRecord, Warehouse
from db.store import RecordStore
from inventory.locks import alert_locks
from inventory.reorder import recommend
from inventory.status import ATTENTION_SEVERITY, StockStatus, classify

logger = structlog.get_logger()

# ──────────────────────────────────────────────────────────────────────────
# Lifecycle
# ──────────────────────────────────────────────────────────────────────────

ALERT_ACTIONS = ("acknowledge", "unacknowledge", "dismiss", "undismiss", "update_notes")


@dataclass(frozen=True)
class AlertState:
    acknowledged: bool = False
    acknowledged_at: datetime | None = None
    dismissed: bool = False
    dismissed_at: datetime | None = None
    notes: str = ""
    updated_at: datetime | None = None


DEFAULT_ALERT_STATE = AlertState()


def alert_state(record: AlertRecord | None) -> AlertState:
    """Lifecycle state of a product's alert; absence means the default state."""
    if record is None:
        return DEFAULT_ALERT_STATE
    return AlertState(
        acknowledged=bool(record.acknowledged),
        acknowledged_at=record.acknowledged_at,
        dismissed=bool(record.dismissed),
        dismissed_at=record.dismissed_at,
        notes=record.notes or "",
        updated_at=record.updated_at,
    )


def validate_action(action: Any) -> str:
    if action not in ALERT_ACTIONS:
        raise ValidationError(
            f"Invalid action. Valid actions are: {', '.join(ALERT_ACTIONS)}",
            valid_actions=list(ALERT_ACTIONS),
        )
    return action


def apply_action(record: AlertRecord, action: str, notes: str | None, now: datetime) -> None:
    """Apply one lifecycle action to ``record`` in place."""
    if action == "acknowledge":
        record.acknowledged = True
        record.acknowledged_at = now
    elif action == "unacknowledge":
        record.acknowledged = False
        record.acknowledged_at = None
    elif action == "dismiss":
        record.dismissed = True
        record.dismissed_at = now
    elif action == "undismiss":
        record.dismissed = False
        record.dismissed_at = None
    elif action == "update_notes":
        record.notes = notes or ""
    record.updated_at = now


async def _create_alert_record(alerts: RecordStore, product_id: int, now: datetime) -> AlertRecord:
    """Insert the product's alert record, or pick up the one another writer just created."""
    try:
        return await alerts.insert(product_id=product_id, notes="", created_at=now, updated_at=now)
    except ConflictError:
        record = await alerts.find_one(for_update=True, product_id=product_id)
        if record is None:
            raise
        logger.info("alert.record_race", product_id=product_id)
        return record


async def apply_alert_action(
    db: AsyncSession,
    product_id: Any,
    action: Any,
    notes: str | None = None,
) -> AlertRecord:
    """Acknowledge / dismiss / annotate a product's alert, creating its record on first use."""
    action = validate_action(action)
    if not isinstance(product_id, int) or isinstance(product_id, bool):
        raise ValidationError("Product ID is required.", field="product_id")
    if notes is not None and not isinstance(notes, str):
        raise ValidationError("Notes must be text.", field="notes")

    product = await RecordStore(db, Product).get(product_id)
    if product is None:
        raise NotFoundError("product", product_id, message="The specified product does not exist.")

    alerts = RecordStore(db, AlertRecord, resource="alert")
    now = datetime.utcnow()
    async with alert_locks.hold(product_id):
        try:
            record = await alerts.find_one(for_update=True, product_id=product_id)
            if record is None:
                record = await _create_alert_record(alerts, product_id, now)
            apply_action(record, action, notes, now)
            await db.commit()
        except StockpointError:
            await db.rollback()
            raise
        except SQLAlchemyError as exc:
            await db.rollback()
            logger.error("alert.action_failed", product_id=product_id, action=action, error=str(exc))
            raise InternalError("An error occurred while updating the alert.") from exc

    logger.info("alert.action_applied", product_id=product_id, action=action, alert_id=record.id)
    return record


# ──────────────────────────────────────────────────────────────────────────
# Read path
# ──────────────────────────────────────────────────────────────────────────


@dataclass
class AlertSummary:
    total: int = 0
    critical: int = 0
    low: int = 0
    adequate: int = 0
    overstocked: int = 0
    needs_attention: int = 0
    total_reorder_value: float = 0.0


@dataclass
class AlertListing:
    alerts: list[dict] = field(default_factory=list)
    summary: AlertSummary = field(default_factory=AlertSummary)

    def to_dict(self) -> dict:
        return {"alerts": self.alerts, "summary": asdict(self.summary)}


def build_product_alert(
    product: Product,
    records: list[StockRecord],
    warehouses: dict[int, Warehouse],
    alert_record: AlertRecord | None,
) -> dict:
    total = sum(r.quantity for r in records)
    status = classify(total, product.reorder_point)
    recommendation = recommend(total, product.reorder_point, product.unit_cost)
    state = alert_state(alert_record)

    breakdown = []
    for record in records:
        warehouse = warehouses.get(record.warehouse_id)
        breakdown.append(
            {
                "warehouse_id": record.warehouse_id,
                "warehouse_name": warehouse.name if warehouse else "Unknown",
                "warehouse_code": warehouse.code if warehouse else "",
                "warehouse_location": warehouse.location if warehouse else "",
                "quantity": record.quantity,
            }
        )

    return {
        "id": alert_record.id if alert_record else None,
        "product_id": product.id,
        "product": {
            "id": product.id,
            "sku": product.sku,
            "name": product.name,
            "category": product.category,
            "unit_cost": product.unit_cost,
            "reorder_point": product.reorder_point,
        },
        "current_stock": total,
        "stock_status": status.to_dict(),
        "reorder_recommendation": recommendation.to_dict() if recommendation else None,
        "warehouse_breakdown": breakdown,
        **asdict(state),
    }


def summarize(alerts: list[dict]) -> AlertSummary:
    summary = AlertSummary(total=len(alerts))
    reorder_value = 0.0
    for alert in alerts:
        status = StockStatus(alert["stock_status"]["status"])
        if status in (StockStatus.CRITICAL, StockStatus.OUT):
            summary.critical += 1
        elif status is StockStatus.LOW:
            summary.low += 1
        elif status is StockStatus.ADEQUATE:
            summary.adequate += 1
        elif status is StockStatus.OVERSTOCKED:
            summary.overstocked += 1

        if alert["stock_status"]["severity"] >= ATTENTION_SEVERITY and not alert["acknowledged"]:
            summary.needs_attention += 1
        if alert["reorder_recommendation"]:
            reorder_value += alert["reorder_recommendation"]["estimated_cost"]
    summary.total_reorder_value = round(reorder_value, 2)
    return summary


def parse_status_filter(status: str | None) -> set[StockStatus] | None:
    """Comma-separated status values → set of StockStatus (None = no filter)."""
    if not status:
        return None
    values = [s.strip() for s in status.split(",") if s.strip()]
    if not values:
        return None
    valid = [s.value for s in StockStatus]
    unknown = [v for v in values if v not in valid]
    if unknown:
        raise ValidationError(
            f"Unknown status filter: {', '.join(unknown)}. Valid statuses are: {', '.join(valid)}",
            valid_statuses=valid,
        )
    return {StockStatus(v) for v in values}


async def _load_alert_inputs(db: AsyncSession, product_id: int | None = None):
    product_criteria = [Product.id == product_id] if product_id is not None else []
    stock_criteria = [StockRecord.product_id == product_id] if product_id is not None else []
    alert_criteria = [AlertRecord.product_id == product_id] if product_id is not None else []

    products = await RecordStore(db, Product).list(*product_criteria)
    warehouses = {w.id: w for w in await RecordStore(db, Warehouse).list()}

    stock_by_product: dict[int, list[StockRecord]] = defaultdict(list)
    for record in await RecordStore(db, StockRecord).list(*stock_criteria):
        stock_by_product[record.product_id].append(record)

    alert_records = {a.product_id: a for a in await RecordStore(db, AlertRecord).list(*alert_criteria)}
    return products, warehouses, stock_by_product, alert_records


async def list_alerts(
    db: AsyncSession,
    status: str | None = None,
    category: str | None = None,
    acknowledged: bool | None = None,
) -> AlertListing:
    """One alert per product, worst first, plus a summary over all products."""
    statuses = parse_status_filter(status)
    products, warehouses, stock_by_product, alert_records = await _load_alert_inputs(db)

    alerts = [
        build_product_alert(p, stock_by_product.get(p.id, []), warehouses, alert_records.get(p.id))
        for p in products
    ]
    alerts.sort(key=lambda a: (-a["stock_status"]["severity"], a["product_id"]))
    summary = summarize(alerts)

    filtered = alerts
    if statuses is not None:
        wanted = {s.value for s in statuses}
        filtered = [a for a in filtered if a["stock_status"]["status"] in wanted]
    if category:
        filtered = [a for a in filtered if a["product"]["category"] == category]
    if acknowledged is not None:
        filtered = [a for a in filtered if a["acknowledged"] == acknowledged]

    return AlertListing(alerts=filtered, summary=summary)


async def get_product_alert(db: AsyncSession, product_id: int) -> dict:
    products, warehouses, stock_by_product, alert_records = await _load_alert_inputs(db, product_id)
    if not products:
        raise NotFoundError("product", product_id)
    product = products[0]
    return build_product_alert(product, stock_by_product.get(product.id, []), warehouses, alert_records.get(product.id))
