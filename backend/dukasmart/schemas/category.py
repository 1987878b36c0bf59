"""Category schemas for API request/response."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class MainCategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class MainCategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    sub_category_count: int = 0
    product_count: int = 0
    created_at: datetime


class SubCategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    main_category_id: UUID


class SubCategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    main_category_id: UUID
    product_count: int = 0
    created_at: datetime
