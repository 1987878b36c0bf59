"""SQLAlchemy models for DukaSmart."""

from dukasmart.models.role import Permission, UserRole
from dukasmart.models.user import User, UserSession
from dukasmart.models.category import MainCategory, SubCategory
from dukasmart.models.product import Product
from dukasmart.models.purchase import Purchase, Supplier
from dukasmart.models.sale import Sale
from dukasmart.models.stock_movement import MovementType, StockMovement
from dukasmart.models.notification import Notification, NotificationAction, NotificationType
from dukasmart.models.audit import AuditLog

__all__ = [
    "Permission",
    "UserRole",
    "User",
    "UserSession",
    "MainCategory",
    "SubCategory",
    "Product",
    "Purchase",
    "Supplier",
    "Sale",
    "MovementType",
    "StockMovement",
    "Notification",
    "NotificationAction",
    "NotificationType",
    "AuditLog",
]
