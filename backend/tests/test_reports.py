"""Reports, dashboard, suppliers and search."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import update
from sqlalchemy.dialects import postgresql, sqlite

from dukasmart.api.reports import _utc_day
from dukasmart.models.product import Product
from dukasmart.models.sale import Sale


async def _purchase(client, product, quantity, cost="300.00", supplier=None):
    body = {"product_id": str(product.id), "quantity_received": quantity, "cost_per_unit": cost}
    if supplier:
        body["supplier_name"] = supplier
    response = await client.post("/api/purchases", json=body)
    assert response.status_code == 201, response.text


async def _sell(client, product, quantity):
    response = await client.post("/api/sales", json={"product_id": str(product.id), "quantity_sold": quantity})
    assert response.status_code == 201, response.text


@pytest.mark.asyncio
async def test_sales_report(admin_client, product):
    await _purchase(admin_client, product, 20)
    await _sell(admin_client, product, 2)
    await _sell(admin_client, product, 3)

    today = datetime.now(timezone.utc).date()
    response = await admin_client.get(
        "/api/reports/sales",
        params={"start_date": str(today - timedelta(days=1)), "end_date": str(today + timedelta(days=1))},
    )
    assert response.status_code == 200
    report = response.json()
    assert report["total_sales"] == 2
    assert report["total_quantity"] == 5
    assert report["total_revenue"] == "2500.00"
    assert len(report["by_day"]) == 1
    assert report["by_product"][0]["product_code"] == "SODA-500"
    assert report["by_product"][0]["total_quantity"] == 5


def test_sale_day_is_taken_in_utc():
    pg = str(_utc_day(Sale.created_at, "postgresql").compile(dialect=postgresql.dialect()))
    assert pg.startswith("date(timezone(")
    assert pg.endswith(", sales.created_at))")

    lite = str(_utc_day(Sale.created_at, "sqlite").compile(dialect=sqlite.dialect()))
    assert lite == "date(sales.created_at)"


@pytest.mark.asyncio
async def test_sales_report_rejects_inverted_range(admin_client):
    response = await admin_client.get(
        "/api/reports/sales", params={"start_date": "2026-02-01", "end_date": "2026-01-01"}
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_inventory_report(admin_client, product):
    await _purchase(admin_client, product, 4)

    report = (await admin_client.get("/api/reports/inventory")).json()
    assert report["total_products"] == 1
    assert report["total_stock"] == 4
    assert report["total_value"] == "2000.00"
    assert report["low_stock_count"] == 1
    assert report["by_main_category"] == [
        {
            "main_category_id": report["by_main_category"][0]["main_category_id"],
            "main_category": "Beverages",
            "product_count": 1,
            "total_stock": 4,
            "stock_value": "2000.00",
        }
    ]


@pytest.mark.asyncio
async def test_low_stock_report(admin_client, product):
    await _purchase(admin_client, product, 2)

    report = (await admin_client.get("/api/reports/low-stock")).json()
    assert report["total"] == 1
    assert report["items"][0]["shortfall"] == 3


@pytest.mark.asyncio
async def test_reconciliation_flags_drift(admin_client, product, session_factory):
    await _purchase(admin_client, product, 6)
    await _sell(admin_client, product, 1)

    report = (await admin_client.get("/api/reports/stock-reconciliation")).json()
    assert report == {"consistent": True, "checked": 1, "items": []}

    # Simulate an out-of-band edit
    async with session_factory() as session:
        await session.execute(update(Product).where(Product.id == product.id).values(stock_quantity=9))
        await session.commit()

    report = (await admin_client.get("/api/reports/stock-reconciliation")).json()
    assert report["consistent"] is False
    assert report["items"][0]["ledger_quantity"] == 5
    assert report["items"][0]["difference"] == 4


@pytest.mark.asyncio
async def test_dashboard_stats(admin_client, product):
    await _purchase(admin_client, product, 10)
    await _sell(admin_client, product, 2)

    stats = (await admin_client.get("/api/dashboard/stats")).json()
    assert stats["total_products"] == 1
    assert stats["today_sales_count"] == 1
    assert stats["today_sales_total"] == "1000.00"
    assert stats["low_stock_count"] == 0
    assert stats["inventory_value"] == "4000.00"


@pytest.mark.asyncio
async def test_suppliers_are_collected_from_purchases(admin_client, product):
    await _purchase(admin_client, product, 2, cost="100.00", supplier="Coastal Bottlers")
    await _purchase(admin_client, product, 3, cost="100.00", supplier="Coastal Bottlers")
    await _purchase(admin_client, product, 1)

    suppliers = (await admin_client.get("/api/suppliers")).json()
    assert len(suppliers) == 1
    assert suppliers[0]["name"] == "Coastal Bottlers"
    assert suppliers[0]["purchase_count"] == 2
    assert suppliers[0]["total_cost"] == "500.00"


@pytest.mark.asyncio
async def test_search(admin_client, product):
    await _purchase(admin_client, product, 5)
    await _sell(admin_client, product, 1)

    results = (await admin_client.get("/api/search", params={"q": "soda"})).json()
    assert {r["type"] for r in results} == {"product", "sale"}
    product_hit = next(r for r in results if r["type"] == "product")
    assert product_hit["id"] == str(product.id)
    assert product_hit["title"] == "Soda 500ml"

    results = (await admin_client.get("/api/search", params={"q": "drinks", "type": "category"})).json()
    assert [r["title"] for r in results] == ["Soft drinks"]

    results = (await admin_client.get("/api/search", params={"q": "soda", "type": "category"})).json()
    assert results == []
