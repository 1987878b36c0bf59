"""Notification feed: publishing and the read/dismiss/action endpoints."""

import uuid

import pytest
from sqlalchemy import func, select

from dukasmart.models.notification import Notification, NotificationType
from dukasmart.services import notifications


async def _sell(admin_client, product, quantity):
    response = await admin_client.post(
        "/api/sales", json={"product_id": str(product.id), "quantity_sold": quantity}
    )
    assert response.status_code == 201, response.text
    return response.json()


async def _stock_up(admin_client, product, quantity):
    response = await admin_client.post(
        "/api/purchases",
        json={"product_id": str(product.id), "quantity_received": quantity, "cost_per_unit": "300.00"},
    )
    assert response.status_code == 201, response.text


@pytest.mark.asyncio
async def test_publish_is_idempotent_per_fingerprint(db):
    event = notifications.NotificationEvent(
        type=NotificationType.SYSTEM,
        title="Backup finished",
        message="Nightly backup finished",
        fingerprint="system:backup:2026-10-19",
    )

    first = await notifications.publish(db, event)
    second = await notifications.publish(db, event)
    await db.commit()

    assert first.id == second.id
    count = (await db.execute(select(func.count()).select_from(Notification))).scalar_one()
    assert count == 1
    assert first.action_type is None


@pytest.mark.asyncio
async def test_sale_notification_carries_default_action(admin_client, product):
    await _stock_up(admin_client, product, 10)
    sale = await _sell(admin_client, product, 2)

    feed = (await admin_client.get("/api/notifications")).json()
    sale_alert = next(n for n in feed["items"] if n["type"] == "new_sale")
    assert sale_alert["action_type"] == "view_details"
    assert sale_alert["action_label"] == "View Sale"
    assert sale_alert["data"]["sale_id"] == sale["id"]
    assert sale_alert["data"]["amount"] == "1000.00"
    assert "Soda 500ml" in sale_alert["message"]


@pytest.mark.asyncio
async def test_mark_read_is_idempotent(admin_client, product):
    await _stock_up(admin_client, product, 10)
    feed = (await admin_client.get("/api/notifications")).json()
    assert feed["unread_count"] == 1
    notification_id = feed["items"][0]["id"]

    first = await admin_client.patch(f"/api/notifications/{notification_id}/read")
    second = await admin_client.patch(f"/api/notifications/{notification_id}/read")

    assert first.json() == {"success": True, "updated": 1}
    assert second.json() == {"success": True, "updated": 0}
    feed = (await admin_client.get("/api/notifications")).json()
    assert feed["unread_count"] == 0
    assert feed["items"][0]["is_read"] is True


@pytest.mark.asyncio
async def test_mark_all_read_and_unread_filter(admin_client, product):
    await _stock_up(admin_client, product, 10)
    await _sell(admin_client, product, 1)
    await _sell(admin_client, product, 1)

    unread = (await admin_client.get("/api/notifications", params={"unread_only": True})).json()
    assert unread["total"] == 3

    response = await admin_client.patch("/api/notifications/mark-all-read")
    assert response.json()["updated"] == 3

    unread = (await admin_client.get("/api/notifications", params={"unread_only": True})).json()
    assert unread["total"] == 0
    assert unread["unread_count"] == 0


@pytest.mark.asyncio
async def test_dismiss_hides_notification(admin_client, product):
    await _stock_up(admin_client, product, 10)
    notification_id = (await admin_client.get("/api/notifications")).json()["items"][0]["id"]

    assert (await admin_client.delete(f"/api/notifications/{notification_id}")).json()["updated"] == 1
    assert (await admin_client.delete(f"/api/notifications/{notification_id}")).json()["updated"] == 0

    feed = (await admin_client.get("/api/notifications")).json()
    assert feed["total"] == 0
    assert (await admin_client.patch(f"/api/notifications/{notification_id}/read")).status_code == 404


@pytest.mark.asyncio
async def test_unknown_notification(admin_client):
    missing = uuid.uuid4()
    assert (await admin_client.patch(f"/api/notifications/{missing}/read")).status_code == 404
    assert (await admin_client.delete(f"/api/notifications/{missing}")).status_code == 404
    assert (await admin_client.post(f"/api/notifications/{missing}/action")).status_code == 404


@pytest.mark.asyncio
async def test_low_stock_action(admin_client, product):
    await _stock_up(admin_client, product, 8)
    await _sell(admin_client, product, 4)

    feed = (await admin_client.get("/api/notifications")).json()
    low = [n for n in feed["items"] if n["type"] == "low_stock"]
    assert len(low) == 1
    assert low[0]["action_type"] == "restock"
    assert low[0]["action_label"] == "Add to Purchase List"

    response = await admin_client.post(
        f"/api/notifications/{low[0]['id']}/action", json={"action_type": "view_details"}
    )
    assert response.status_code == 400

    response = await admin_client.post(f"/api/notifications/{low[0]['id']}/action", json={"action_type": "restock"})
    assert response.status_code == 200
    assert response.json() == {"success": True, "action_type": "restock"}

    feed = (await admin_client.get("/api/notifications")).json()
    assert next(n for n in feed["items"] if n["id"] == low[0]["id"])["is_read"] is True
