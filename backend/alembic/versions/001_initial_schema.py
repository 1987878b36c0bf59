"""Initial database schema - users, sessions, categories, products, purchases, sales, stock movements, notifications

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def _uuid_pk() -> sa.Column:
    return sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True)


def upgrade() -> None:
    user_role = sa.Enum("admin", "employee", name="user_role")
    movement_type = sa.Enum("in", "out", name="movement_type")
    notification_type = sa.Enum(
        "low_stock", "new_sale", "new_purchase", "stock_movement", "employee_added", "system",
        name="notification_type",
    )
    notification_action = sa.Enum("restock", "view_details", "approve", name="notification_action")

    # --- Users ---
    op.create_table(
        "users",
        _uuid_pk(),
        sa.Column("username", sa.String(100), nullable=False, unique=True),
        sa.Column("email", sa.String(255), unique=True),
        sa.Column("first_name", sa.String(100)),
        sa.Column("last_name", sa.String(100)),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("role", user_role, nullable=False),
        sa.Column("permissions", sa.JSON, nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("last_login_at", sa.DateTime(timezone=True)),
        sa.Column("bootstrap_admin", sa.Boolean, unique=True),
        *_timestamps(),
    )
    op.create_index("ix_users_username", "users", ["username"])
    op.create_index("ix_users_email", "users", ["email"])
    op.create_index("ix_users_created_at", "users", ["created_at"])

    # --- Sessions ---
    op.create_table(
        "user_sessions",
        _uuid_pk(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("revoked_at", sa.DateTime(timezone=True)),
        sa.Column("user_agent", sa.String(255)),
        *_timestamps(),
    )
    op.create_index("ix_user_sessions_user_id", "user_sessions", ["user_id"])
    op.create_index("ix_user_sessions_created_at", "user_sessions", ["created_at"])

    # --- Categories ---
    op.create_table(
        "main_categories",
        _uuid_pk(),
        sa.Column("name", sa.String(255), nullable=False, unique=True),
        *_timestamps(),
    )
    op.create_index("ix_main_categories_name", "main_categories", ["name"])
    op.create_index("ix_main_categories_created_at", "main_categories", ["created_at"])

    op.create_table(
        "sub_categories",
        _uuid_pk(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column(
            "main_category_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("main_categories.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        *_timestamps(),
        sa.UniqueConstraint("main_category_id", "name", name="uq_sub_category_main_name"),
    )
    op.create_index("ix_sub_categories_name", "sub_categories", ["name"])
    op.create_index("ix_sub_categories_main_category_id", "sub_categories", ["main_category_id"])
    op.create_index("ix_sub_categories_created_at", "sub_categories", ["created_at"])

    # --- Products ---
    op.create_table(
        "products",
        _uuid_pk(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("product_code", sa.String(50), nullable=False, unique=True),
        sa.Column("image_url", sa.String(500)),
        sa.Column("price", sa.Numeric(12, 2), nullable=False),
        sa.Column("stock_quantity", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("low_stock_threshold", sa.Integer, nullable=False, server_default=sa.text("5")),
        sa.Column(
            "sub_category_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("sub_categories.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        *_timestamps(),
        sa.CheckConstraint("stock_quantity >= 0", name="ck_products_stock_non_negative"),
    )
    op.create_index("ix_products_name", "products", ["name"])
    op.create_index("ix_products_product_code", "products", ["product_code"])
    op.create_index("ix_products_sub_category_id", "products", ["sub_category_id"])
    op.create_index("ix_products_created_at", "products", ["created_at"])

    # --- Suppliers & purchases ---
    op.create_table(
        "suppliers",
        _uuid_pk(),
        sa.Column("name", sa.String(255), nullable=False, unique=True),
        *_timestamps(),
    )
    op.create_index("ix_suppliers_name", "suppliers", ["name"])
    op.create_index("ix_suppliers_created_at", "suppliers", ["created_at"])

    op.create_table(
        "purchases",
        _uuid_pk(),
        sa.Column("quantity_received", sa.Integer, nullable=False),
        sa.Column("cost_per_unit", sa.Numeric(12, 2), nullable=False),
        sa.Column("total_cost", sa.Numeric(14, 2), nullable=False),
        sa.Column("supplier_name", sa.String(255)),
        sa.Column("product_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("products.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("purchased_by", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("supplier_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("suppliers.id", ondelete="SET NULL")),
        *_timestamps(),
    )
    op.create_index("ix_purchases_product_id", "purchases", ["product_id"])
    op.create_index("ix_purchases_purchased_by", "purchases", ["purchased_by"])
    op.create_index("ix_purchases_supplier_id", "purchases", ["supplier_id"])
    op.create_index("ix_purchases_created_at", "purchases", ["created_at"])

    # --- Sales ---
    op.create_table(
        "sales",
        _uuid_pk(),
        sa.Column("quantity_sold", sa.Integer, nullable=False),
        sa.Column("sale_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("total_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("product_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("products.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("sold_by", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_sales_product_id", "sales", ["product_id"])
    op.create_index("ix_sales_sold_by", "sales", ["sold_by"])
    op.create_index("ix_sales_created_at", "sales", ["created_at"])

    # --- Stock movements ---
    op.create_table(
        "stock_movements",
        _uuid_pk(),
        sa.Column("movement_type", movement_type, nullable=False),
        sa.Column("quantity", sa.Integer, nullable=False),
        sa.Column("reason", sa.String(255)),
        sa.Column("is_opening", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("product_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("products.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("performed_by", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_stock_movements_product_id", "stock_movements", ["product_id"])
    op.create_index("ix_stock_movements_performed_by", "stock_movements", ["performed_by"])
    op.create_index("ix_stock_movements_created_at", "stock_movements", ["created_at"])

    # --- Notifications ---
    op.create_table(
        "notifications",
        _uuid_pk(),
        sa.Column("type", notification_type, nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("data", sa.JSON),
        sa.Column("is_read", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("is_dismissed", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("action_type", notification_action),
        sa.Column("action_label", sa.String(100)),
        sa.Column("fingerprint", sa.String(255), nullable=False, unique=True),
        *_timestamps(),
    )
    op.create_index("ix_notifications_type", "notifications", ["type"])
    op.create_index("ix_notifications_is_read", "notifications", ["is_read"])
    op.create_index("ix_notifications_is_dismissed", "notifications", ["is_dismissed"])
    op.create_index("ix_notifications_created_at", "notifications", ["created_at"])

    # --- Audit log ---
    op.create_table(
        "audit_logs",
        _uuid_pk(),
        sa.Column("action", sa.String(20), nullable=False),
        sa.Column("entity_type", sa.String(50), nullable=False),
        sa.Column("entity_id", sa.String(64)),
        sa.Column("details", sa.JSON),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL")),
        *_timestamps(),
    )
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])


def downgrade() -> None:
    op.drop_table("audit_logs")
    op.drop_table("notifications")
    op.drop_table("stock_movements")
    op.drop_table("sales")
    op.drop_table("purchases")
    op.drop_table("suppliers")
    op.drop_table("products")
    op.drop_table("sub_categories")
    op.drop_table("main_categories")
    op.drop_table("user_sessions")
    op.drop_table("users")

    for enum_name in ("notification_action", "notification_type", "movement_type", "user_role"):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
