"""
Dashboard aggregation — inventory totals across warehouses.

Uses the same classifier as the alert tracker so status counts on the
dashboard and the alerts page always agree.
"""

from collections import defaultdict

from sqlalchemy.ext.asyncio import AsyncSession

from alerts.tracker import build_product_alert, summarize
from db.models import Product, StockRecord, Warehouse
from db.store import RecordStore
from inventory.status import ATTENTION_SEVERITY


async def build_dashboard(db: AsyncSession, low_stock_limit: int = 10) -> dict:
    products = await RecordStore(db, Product).list()
    warehouses = await RecordStore(db, Warehouse).list()
    records = await RecordStore(db, StockRecord).list()

    product_map = {p.id: p for p in products}
    warehouse_map = {w.id: w for w in warehouses}

    stock_by_product: dict[int, list[StockRecord]] = defaultdict(list)
    for record in records:
        stock_by_product[record.product_id].append(record)

    total_units = sum(r.quantity for r in records)
    total_value = sum(
        r.quantity * float(product_map[r.product_id].unit_cost or 0) for r in records if r.product_id in product_map
    )

    overview = [build_product_alert(p, stock_by_product.get(p.id, []), warehouse_map, None) for p in products]
    summary = summarize(overview)

    category_units: dict[str, int] = defaultdict(int)
    for item in overview:
        category_units[item["product"]["category"]] += item["current_stock"]

    per_warehouse = []
    for warehouse in warehouses:
        held = [r for r in records if r.warehouse_id == warehouse.id]
        per_warehouse.append(
            {
                "warehouse_id": warehouse.id,
                "code": warehouse.code,
                "name": warehouse.name,
                "total_units": sum(r.quantity for r in held),
                "total_value": round(
                    sum(
                        r.quantity * float(product_map[r.product_id].unit_cost or 0)
                        for r in held
                        if r.product_id in product_map
                    ),
                    2,
                ),
            }
        )

    low_stock = [item for item in overview if item["stock_status"]["severity"] >= ATTENTION_SEVERITY]
    low_stock.sort(key=lambda item: (-item["stock_status"]["severity"], item["current_stock"], item["product_id"]))

    return {
        "total_products": len(products),
        "total_warehouses": len(warehouses),
        "total_units": total_units,
        "total_value": round(total_value, 2),
        "status_counts": {
            "critical": summary.critical,
            "low": summary.low,
            "adequate": summary.adequate,
            "overstocked": summary.overstocked,
        },
        "warehouses": per_warehouse,
        "categories": [{"category": c, "total_units": u} for c, u in sorted(category_units.items())],
        "low_stock_items": [
            {
                "product_id": item["product_id"],
                "sku": item["product"]["sku"],
                "name": item["product"]["name"],
                "current_stock": item["current_stock"],
                "reorder_point": item["product"]["reorder_point"],
                "stock_status": item["stock_status"],
            }
            for item in low_stock[:low_stock_limit]
        ],
    }
