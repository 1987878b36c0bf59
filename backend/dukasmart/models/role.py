"""Roles & capabilities - closed sets used by the permission gate."""

import enum


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    EMPLOYEE = "employee"


class Permission(str, enum.Enum):
    """Capabilities an admin can grant to an employee."""
    SALES = "sales"
    PURCHASES = "purchases"
    STOCK_IN = "stock_in"
    STOCK_OUT = "stock_out"
    VIEW_REPORTS = "view_reports"

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS = {
    Permission.SALES: "Record Sales",
    Permission.PURCHASES: "Record Purchases",
    Permission.STOCK_IN: "Stock In",
    Permission.STOCK_OUT: "Stock Out",
    Permission.VIEW_REPORTS: "View Reports",
}
