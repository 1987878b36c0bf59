"""Stock transaction schemas: purchases, sales and manual movements."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from dukasmart.models.stock_movement import MovementType


# ── Purchases ─────────────────────────────────────
class PurchaseCreate(BaseModel):
    """Total cost is computed server-side."""
    product_id: UUID
    quantity_received: int = Field(..., ge=1)
    cost_per_unit: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    supplier_name: str | None = Field(None, max_length=255)


class PurchaseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    product_id: UUID
    quantity_received: int
    cost_per_unit: Decimal
    total_cost: Decimal
    supplier_name: str | None
    supplier_id: UUID | None
    purchased_by: UUID
    created_at: datetime


# ── Sales ─────────────────────────────────────────
class SaleCreate(BaseModel):
    """Sale price defaults to the product's list price. Total is computed server-side."""
    product_id: UUID
    quantity_sold: int = Field(..., ge=1)
    sale_price: Decimal | None = Field(None, ge=0, max_digits=12, decimal_places=2)


class SaleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    product_id: UUID
    quantity_sold: int
    sale_price: Decimal
    total_amount: Decimal
    sold_by: UUID
    created_at: datetime


# ── Stock movements ───────────────────────────────
class StockMovementCreate(BaseModel):
    product_id: UUID
    movement_type: MovementType
    quantity: int = Field(..., ge=1)
    reason: str | None = Field(None, max_length=255)


class StockMovementResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    product_id: UUID
    movement_type: MovementType
    quantity: int
    reason: str | None
    performed_by: UUID
    created_at: datetime


class InsufficientStockDetail(BaseModel):
    """Body of a 409 returned when stock cannot cover an outbound operation."""
    message: str
    product_id: UUID
    available: int
    requested: int
