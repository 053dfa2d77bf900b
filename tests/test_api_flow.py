"""Full register day over HTTP against an in-memory database."""
import pytest
from httpx import ASGITransport, AsyncClient

from app.main import app
from tests.factories import make_ingredient, make_product


@pytest.mark.asyncio
async def test_register_day(db):
    await make_ingredient("milk", quantity="1000", min_quantity="700", cost_per_unit="0.05")
    await make_product("latte", recipes=[{
        "size_id": "m", "is_default": True,
        "ingredients": [{"ingredient_slug": "milk", "amount": 200}],
    }])

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        opened = await ac.post("/api/v1/shifts/open", json={"opened_by": "Olena", "opening_cash": 500})
        assert opened.status_code == 201
        shift_id = opened.json()["data"]["id"]

        again = await ac.post("/api/v1/shifts/open", json={"opened_by": "Taras"})
        assert again.status_code == 400

        created = await ac.post("/api/v1/orders", json={
            "order": {"order_number": "A-1", "status": "pending", "type": "dine_in",
                      "discount_type": "percentage", "discount_value": 10},
            "items": [{"product_name": "Latte", "product_slug": "latte", "size_id": "m",
                       "quantity": 2, "unit_price": 70}],
            "payment": {"method": "cash", "amount": 126},
        })
        assert created.status_code == 201
        order = created.json()["data"]
        assert order["total"] == 126.0

        stock = await ac.get("/api/v1/inventory/ingredients/milk")
        assert stock.json()["data"]["quantity"] == 600.0
        low = await ac.get("/api/v1/inventory/low-stock")
        assert [i["slug"] for i in low.json()["data"]] == ["milk"]

        bad = await ac.patch(f"/api/v1/orders/{order['id']}/status", json={"status": "ready"})
        assert bad.status_code == 400
        assert bad.json()["error"]["details"]["allowed_transitions"] == ["confirmed", "cancelled"]
        ok = await ac.patch(f"/api/v1/orders/{order['id']}/status", json={"status": "confirmed"})
        assert ok.json()["data"]["status"] == "confirmed"

        x_report = await ac.get(f"/api/v1/reports/x-report?shift_id={shift_id}")
        assert x_report.json()["data"]["expected_cash"] == 626.0

        closed = await ac.post(f"/api/v1/shifts/{shift_id}/close", json={"closed_by": "Olena", "closing_cash": 620})
        assert closed.status_code == 200
        z_report = await ac.get(f"/api/v1/reports/z-report?shift_id={shift_id}")
        assert z_report.json()["data"]["cash_difference"] == -6.0

        current = await ac.get("/api/v1/shifts/current")
        assert current.json()["data"] is None

        txs = await ac.get("/api/v1/inventory/transactions?ingredient=milk&type=sale")
        assert txs.json()["meta"]["total"] == 1
        assert txs.json()["data"][0]["quantity"] == -400.0

        missing = await ac.get("/api/v1/inventory/ingredients/sugar")
        assert missing.status_code == 404
