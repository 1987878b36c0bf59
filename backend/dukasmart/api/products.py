"""Product CRUD endpoints. Writes are admin-only; stock changes go through services.stock."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dukasmart.core.deps import get_current_user, require_admin
from dukasmart.db.base import get_db
from dukasmart.models.category import SubCategory
from dukasmart.models.product import Product
from dukasmart.models.purchase import Purchase
from dukasmart.models.sale import Sale
from dukasmart.models.stock_movement import StockMovement
from dukasmart.schemas.auth import CurrentUser
from dukasmart.schemas.product import (
    ProductCreate,
    ProductListResponse,
    ProductResponse,
    ProductUpdate,
)
from dukasmart.services import audit, stock

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["products"])

NULLABLE_FIELDS = {"image_url"}


def escape_like(s: str) -> str:
    """Escape SQL LIKE wildcards in user input."""
    return s.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


async def _get_product_or_404(db: AsyncSession, product_id: UUID) -> Product:
    product = await db.get(Product, product_id)
    if not product:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found",
        )
    return product


async def _ensure_sub_category(db: AsyncSession, sub_category_id: UUID) -> None:
    if not await db.get(SubCategory, sub_category_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Sub category not found",
        )


async def _ensure_code_free(db: AsyncSession, product_code: str, exclude_id: UUID | None = None) -> None:
    query = select(Product.id).where(Product.product_code == product_code)
    if exclude_id:
        query = query.where(Product.id != exclude_id)
    if (await db.execute(query)).first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Product code '{product_code}' already exists",
        )


@router.get("", response_model=ProductListResponse)
async def list_products(
    page: int = Query(1, ge=1),
    size: int = Query(50, ge=1, le=200),
    sub_category_id: UUID | None = None,
    search: str | None = None,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List products, newest first, with optional search and category filter."""
    offset = (page - 1) * size

    query = select(Product)
    if sub_category_id:
        query = query.where(Product.sub_category_id == sub_category_id)
    if search:
        like = f"%{escape_like(search)}%"
        query = query.where(Product.name.ilike(like, escape="\\") | Product.product_code.ilike(like, escape="\\"))

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar_one()

    query = query.order_by(Product.created_at.desc()).offset(offset).limit(size)
    result = await db.execute(query)
    items = result.scalars().all()

    return ProductListResponse(
        items=[ProductResponse.model_validate(p) for p in items],
        total=total,
        page=page,
        size=size,
    )


@router.get("/low-stock", response_model=list[ProductResponse])
async def list_low_stock_products(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Products at or below their low-stock threshold, emptiest first."""
    result = await db.execute(
        select(Product)
        .where(Product.stock_quantity <= Product.low_stock_threshold)
        .order_by(Product.stock_quantity.asc(), Product.name)
    )
    return [ProductResponse.model_validate(p) for p in result.scalars().all()]


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    product = await _get_product_or_404(db, product_id)
    return ProductResponse.model_validate(product)


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    body: ProductCreate,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Create a product (admin only). Initial stock is booked as an opening movement."""
    await _ensure_code_free(db, body.product_code)
    await _ensure_sub_category(db, body.sub_category_id)

    product = Product(**body.model_dump(exclude={"stock_quantity"}), stock_quantity=0)
    db.add(product)
    await db.flush()  # get product.id

    if body.stock_quantity > 0:
        await stock.record_opening_stock(db, product, body.stock_quantity, current_user)

    await audit.record(
        db,
        user_id=current_user.id,
        action="CREATE",
        entity_type="products",
        entity_id=product.id,
        details={"product_code": product.product_code, "opening_stock": body.stock_quantity},
    )
    await db.commit()
    await db.refresh(product)

    logger.info("Product created: %s by=%s", product.product_code, current_user.id)
    return ProductResponse.model_validate(product)


@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: UUID,
    body: ProductUpdate,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Update product details (admin only). Stock is not editable here."""
    product = await _get_product_or_404(db, product_id)
    update_data = body.model_dump(exclude_unset=True)

    if update_data.get("product_code") and update_data["product_code"] != product.product_code:
        await _ensure_code_free(db, update_data["product_code"], exclude_id=product.id)
    if update_data.get("sub_category_id"):
        await _ensure_sub_category(db, update_data["sub_category_id"])

    for field, value in update_data.items():
        if value is None and field not in NULLABLE_FIELDS:
            continue
        setattr(product, field, value)

    await audit.record(
        db,
        user_id=current_user.id,
        action="UPDATE",
        entity_type="products",
        entity_id=product.id,
        details={k: str(v) for k, v in update_data.items()},
    )
    await db.commit()
    await db.refresh(product)

    return ProductResponse.model_validate(product)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(
    product_id: UUID,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Delete a product that has no transaction history (admin only)."""
    product = await _get_product_or_404(db, product_id)

    purchases = (
        await db.execute(select(func.count()).select_from(Purchase).where(Purchase.product_id == product.id))
    ).scalar_one()
    sales = (
        await db.execute(select(func.count()).select_from(Sale).where(Sale.product_id == product.id))
    ).scalar_one()
    movements = (
        await db.execute(
            select(func.count())
            .select_from(StockMovement)
            .where(
                StockMovement.product_id == product.id,
                StockMovement.is_opening.is_(False),
            )
        )
    ).scalar_one()
    if purchases or sales or movements:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Cannot delete a product with recorded purchases, sales or stock movements",
        )

    await db.execute(
        delete(StockMovement).where(StockMovement.product_id == product.id, StockMovement.is_opening.is_(True))
    )
    await db.delete(product)
    await audit.record(
        db,
        user_id=current_user.id,
        action="DELETE",
        entity_type="products",
        entity_id=product_id,
        details={"product_code": product.product_code},
    )
    await db.commit()

    logger.info("Product deleted: %s by=%s", product.product_code, current_user.id)
