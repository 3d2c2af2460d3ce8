"""
API Integration Tests — Warehouse CRUD with seeded data.
"""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
class TestWarehousesIntegration:
    async def test_create_and_list_warehouse(self, client: AsyncClient):
        """Create a warehouse, then list should include it."""
        create_resp = await client.post(
            "/api/v1/warehouses/",
            json={"code": "WH-C", "name": "West Hub", "location": "Bloomington, MN"},
        )
        assert create_resp.status_code == 201
        warehouse_id = create_resp.json()["id"]
        assert create_resp.json()["total_units"] == 0

        list_resp = await client.get("/api/v1/warehouses/")
        assert list_resp.status_code == 200
        assert warehouse_id in [w["id"] for w in list_resp.json()]

    async def test_get_warehouse_with_totals(self, client: AsyncClient, seeded_db):
        resp = await client.get(f"/api/v1/warehouses/{seeded_db['wh_a']}")
        assert resp.status_code == 200
        data = resp.json()
        assert data["code"] == "WH-A"
        assert data["total_units"] == 130
        assert data["product_count"] == 2

    async def test_update_warehouse(self, client: AsyncClient, seeded_db):
        resp = await client.patch(
            f"/api/v1/warehouses/{seeded_db['wh_b']}",
            json={"name": "East Depot (Annex)"},
        )
        assert resp.status_code == 200
        assert resp.json()["name"] == "East Depot (Annex)"
        assert resp.json()["total_units"] == 20

    async def test_duplicate_code_is_case_insensitive(self, client: AsyncClient, seeded_db):
        resp = await client.post(
            "/api/v1/warehouses/",
            json={"code": "wh-a", "name": "Copy", "location": "Nowhere"},
        )
        assert resp.status_code == 409

    async def test_create_warehouse_missing_code(self, client: AsyncClient):
        resp = await client.post("/api/v1/warehouses/", json={"name": "No Code", "location": "MN"})
        assert resp.status_code == 422

    async def test_delete_empty_warehouse(self, client: AsyncClient):
        create_resp = await client.post(
            "/api/v1/warehouses/",
            json={"code": "TMP", "name": "Temp", "location": "St Paul, MN"},
        )
        warehouse_id = create_resp.json()["id"]

        del_resp = await client.delete(f"/api/v1/warehouses/{warehouse_id}")
        assert del_resp.status_code == 204

        get_resp = await client.get(f"/api/v1/warehouses/{warehouse_id}")
        assert get_resp.status_code == 404

    async def test_delete_blocked_by_stock(self, client: AsyncClient, seeded_db):
        resp = await client.delete(f"/api/v1/warehouses/{seeded_db['wh_a']}")
        assert resp.status_code == 409
        assert resp.json()["related_records"] == 2

    async def test_cascade_delete_removes_stock(self, client: AsyncClient, seeded_db):
        resp = await client.delete(f"/api/v1/warehouses/{seeded_db['wh_b']}", params={"cascade": "true"})
        assert resp.status_code == 204

        stock = await client.get("/api/v1/stock/", params={"warehouse_id": seeded_db["wh_b"]})
        assert stock.json() == []
        remaining = await client.get("/api/v1/stock/", params={"product_id": seeded_db["widget"]})
        assert [r["quantity"] for r in remaining.json()] == [100]
