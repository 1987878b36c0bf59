"""Notification fan-out for domain events.

Callers build an event with one of the factory functions and `publish` it on
the same session that writes the causing row, so the notification commits or
rolls back together with it.
"""

import logging
from decimal import Decimal
from typing import Any

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dukasmart.models.notification import Notification, NotificationAction, NotificationType

logger = logging.getLogger(__name__)

DEFAULT_ACTIONS: dict[NotificationType, tuple[NotificationAction, str]] = {
    NotificationType.LOW_STOCK: (NotificationAction.RESTOCK, "Add to Purchase List"),
    NotificationType.NEW_SALE: (NotificationAction.VIEW_DETAILS, "View Sale"),
    NotificationType.NEW_PURCHASE: (NotificationAction.VIEW_DETAILS, "View Purchase"),
}


class NotificationEvent(BaseModel):
    """A domain event rendered for the feed."""
    type: NotificationType
    title: str
    message: str
    fingerprint: str
    data: dict[str, Any] | None = None


def _money(amount: Decimal) -> str:
    return f"{amount:,.2f}"


def sale_recorded(sale, product, seller_name: str) -> NotificationEvent:
    return NotificationEvent(
        type=NotificationType.NEW_SALE,
        title="New Sale Recorded",
        message=f"Sale of {sale.quantity_sold} x {product.name} for {_money(sale.total_amount)} by {seller_name}",
        fingerprint=f"sale:{sale.id}",
        data={
            "sale_id": str(sale.id),
            "product_id": str(product.id),
            "product_name": product.name,
            "amount": str(sale.total_amount),
            "employee": seller_name,
        },
    )


def purchase_recorded(purchase, product, purchaser_name: str) -> NotificationEvent:
    supplier = f" from {purchase.supplier_name}" if purchase.supplier_name else ""
    return NotificationEvent(
        type=NotificationType.NEW_PURCHASE,
        title="New Purchase Recorded",
        message=(
            f"Received {purchase.quantity_received} x {product.name}{supplier} "
            f"for {_money(purchase.total_cost)} by {purchaser_name}"
        ),
        fingerprint=f"purchase:{purchase.id}",
        data={
            "purchase_id": str(purchase.id),
            "product_id": str(product.id),
            "product_name": product.name,
            "total_cost": str(purchase.total_cost),
            "supplier": purchase.supplier_name,
        },
    )


def stock_moved(movement, product, performer_name: str) -> NotificationEvent:
    sign = "+" if movement.signed_quantity > 0 else "-"
    reason = f" ({movement.reason})" if movement.reason else ""
    return NotificationEvent(
        type=NotificationType.STOCK_MOVEMENT,
        title="Stock Movement Recorded",
        message=f"{product.name}: {sign}{movement.quantity} units{reason} by {performer_name}",
        fingerprint=f"stock_movement:{movement.id}",
        data={
            "movement_id": str(movement.id),
            "product_id": str(product.id),
            "product_name": product.name,
            "movement_type": movement.movement_type.value,
            "quantity": movement.quantity,
        },
    )


def low_stock_reached(product, current_stock: int, cause: str) -> NotificationEvent:
    return NotificationEvent(
        type=NotificationType.LOW_STOCK,
        title="Low Stock Alert",
        message=f"{product.name} is running low on stock ({current_stock} units remaining)",
        fingerprint=f"low_stock:{product.id}:{cause}",
        data={
            "product_id": str(product.id),
            "product_name": product.name,
            "current_stock": current_stock,
            "min_stock": product.low_stock_threshold,
        },
    )


def employee_added(user) -> NotificationEvent:
    return NotificationEvent(
        type=NotificationType.EMPLOYEE_ADDED,
        title="New Employee Added",
        message=f"{user.display_name} has been added to the system with {user.role.value} role",
        fingerprint=f"employee:{user.id}",
        data={
            "employee_id": str(user.id),
            "employee_name": user.display_name,
            "role": user.role.value,
        },
    )


def crossed_low_stock(before: int, after: int, threshold: int) -> bool:
    """True when stock moves from above the threshold to at-or-below it."""
    return before > threshold >= after


async def publish(db: AsyncSession, event: NotificationEvent) -> Notification:
    """Add the event to the feed. Publishing the same fingerprint twice is a no-op."""
    existing = await db.execute(
        select(Notification).where(Notification.fingerprint == event.fingerprint)
    )
    notification = existing.scalar_one_or_none()
    if notification is not None:
        return notification

    action = DEFAULT_ACTIONS.get(event.type)
    notification = Notification(
        type=event.type,
        title=event.title,
        message=event.message,
        data=event.data,
        fingerprint=event.fingerprint,
        action_type=action[0] if action else None,
        action_label=action[1] if action else None,
        is_read=False,
        is_dismissed=False,
    )
    db.add(notification)
    await db.flush()
    logger.debug("Notification published: %s", event.fingerprint)
    return notification
