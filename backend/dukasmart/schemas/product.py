"""Product schemas for request/response."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ProductBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    product_code: str = Field(..., min_length=1, max_length=50)
    image_url: str | None = Field(None, max_length=500)
    sub_category_id: UUID
    price: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    low_stock_threshold: int = Field(5, ge=0)


class ProductCreate(ProductBase):
    """Initial stock is booked as an opening stock movement."""
    stock_quantity: int = Field(0, ge=0)


class ProductUpdate(BaseModel):
    """Stock is not editable here - use purchases, sales or stock movements."""
    name: str | None = Field(None, min_length=1, max_length=255)
    product_code: str | None = Field(None, min_length=1, max_length=50)
    image_url: str | None = Field(None, max_length=500)
    sub_category_id: UUID | None = None
    price: Decimal | None = Field(None, gt=0, max_digits=12, decimal_places=2)
    low_stock_threshold: int | None = Field(None, ge=0)


class ProductResponse(ProductBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    stock_quantity: int
    is_low_stock: bool
    created_at: datetime
    updated_at: datetime


class ProductListResponse(BaseModel):
    items: list[ProductResponse]
    total: int
    page: int
    size: int
