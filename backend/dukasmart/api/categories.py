"""Main / sub category endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dukasmart.core.deps import get_current_user, require_admin
from dukasmart.db.base import get_db
from dukasmart.models.category import MainCategory, SubCategory
from dukasmart.models.product import Product
from dukasmart.schemas.auth import CurrentUser
from dukasmart.schemas.category import (
    MainCategoryCreate,
    MainCategoryResponse,
    SubCategoryCreate,
    SubCategoryResponse,
)

router = APIRouter(prefix="/categories", tags=["categories"])


def _sub_category_product_count():
    return (
        select(func.count(Product.id))
        .where(Product.sub_category_id == SubCategory.id)
        .correlate(SubCategory)
        .scalar_subquery()
    )


@router.get("/main", response_model=list[MainCategoryResponse])
async def list_main_categories(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List main categories with their sub-category and product counts."""
    sub_count = (
        select(func.count(SubCategory.id))
        .where(SubCategory.main_category_id == MainCategory.id)
        .correlate(MainCategory)
        .scalar_subquery()
    )
    product_count = (
        select(func.count(Product.id))
        .join(SubCategory, Product.sub_category_id == SubCategory.id)
        .where(SubCategory.main_category_id == MainCategory.id)
        .correlate(MainCategory)
        .scalar_subquery()
    )
    result = await db.execute(
        select(MainCategory, sub_count.label("sub_count"), product_count.label("product_count"))
        .order_by(MainCategory.name)
    )
    return [
        MainCategoryResponse(
            id=category.id,
            name=category.name,
            sub_category_count=subs,
            product_count=products,
            created_at=category.created_at,
        )
        for category, subs, products in result.all()
    ]


@router.post("/main", response_model=MainCategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_main_category(
    body: MainCategoryCreate,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Create a main category (admin only)."""
    existing = await db.execute(select(MainCategory).where(MainCategory.name == body.name))
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Category with this name already exists",
        )

    category = MainCategory(name=body.name)
    db.add(category)
    await db.commit()
    await db.refresh(category)

    return MainCategoryResponse.model_validate(category)


@router.get("/sub", response_model=list[SubCategoryResponse])
async def list_sub_categories(
    main_category_id: UUID | None = None,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List sub categories, optionally under one main category."""
    query = select(SubCategory, _sub_category_product_count().label("product_count"))
    if main_category_id:
        query = query.where(SubCategory.main_category_id == main_category_id)
    result = await db.execute(query.order_by(SubCategory.name))

    return [
        SubCategoryResponse(
            id=category.id,
            name=category.name,
            main_category_id=category.main_category_id,
            product_count=products,
            created_at=category.created_at,
        )
        for category, products in result.all()
    ]


@router.post("/sub", response_model=SubCategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_sub_category(
    body: SubCategoryCreate,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Create a sub category under an existing main category (admin only)."""
    main = await db.get(MainCategory, body.main_category_id)
    if not main:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Main category not found",
        )

    existing = await db.execute(
        select(SubCategory).where(
            SubCategory.main_category_id == body.main_category_id,
            SubCategory.name == body.name,
        )
    )
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Sub category with this name already exists",
        )

    category = SubCategory(name=body.name, main_category_id=body.main_category_id)
    db.add(category)
    await db.commit()
    await db.refresh(category)

    return SubCategoryResponse.model_validate(category)
