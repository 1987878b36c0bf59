"""Persisted notification feed."""

import enum

from sqlalchemy import JSON, Boolean, Enum, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from dukasmart.db.base import Base
from dukasmart.models.mixins import TimestampMixin, UUIDPrimaryKeyMixin, enum_values


class NotificationType(str, enum.Enum):
    LOW_STOCK = "low_stock"
    NEW_SALE = "new_sale"
    NEW_PURCHASE = "new_purchase"
    STOCK_MOVEMENT = "stock_movement"
    EMPLOYEE_ADDED = "employee_added"
    SYSTEM = "system"


class NotificationAction(str, enum.Enum):
    RESTOCK = "restock"
    VIEW_DETAILS = "view_details"
    APPROVE = "approve"


class Notification(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "notifications"

    type: Mapped[NotificationType] = mapped_column(
        Enum(NotificationType, name="notification_type", values_callable=enum_values),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    data: Mapped[dict | None] = mapped_column(JSON, default=None)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)
    is_dismissed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)
    action_type: Mapped[NotificationAction | None] = mapped_column(
        Enum(NotificationAction, name="notification_action", values_callable=enum_values)
    )
    action_label: Mapped[str | None] = mapped_column(String(100))
    # Identifies the causing event so a replayed publish never duplicates a row
    fingerprint: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)

    def __repr__(self) -> str:
        return f"<Notification {self.type.value}: {self.title}>"
