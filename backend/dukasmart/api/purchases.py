"""Purchase (stock intake) endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dukasmart.core.deps import get_current_user, require_permission
from dukasmart.db.base import get_db
from dukasmart.models.purchase import Purchase
from dukasmart.models.role import Permission
from dukasmart.schemas.auth import CurrentUser
from dukasmart.schemas.inventory import PurchaseCreate, PurchaseResponse
from dukasmart.services import stock

router = APIRouter(prefix="/purchases", tags=["purchases"])


@router.get("", response_model=list[PurchaseResponse])
async def list_purchases(
    product_id: UUID | None = None,
    limit: int = Query(500, ge=1, le=1000),
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Purchase history, newest first."""
    query = select(Purchase)
    if product_id:
        query = query.where(Purchase.product_id == product_id)
    result = await db.execute(query.order_by(Purchase.created_at.desc()).limit(limit))
    return [PurchaseResponse.model_validate(p) for p in result.scalars().all()]


@router.post("", response_model=PurchaseResponse, status_code=status.HTTP_201_CREATED)
async def create_purchase(
    body: PurchaseCreate,
    current_user: CurrentUser = Depends(require_permission(Permission.PURCHASES)),
    db: AsyncSession = Depends(get_db),
):
    """Record a stock intake (requires purchases permission)."""
    try:
        purchase = await stock.create_purchase(
            db,
            product_id=body.product_id,
            quantity_received=body.quantity_received,
            cost_per_unit=body.cost_per_unit,
            supplier_name=body.supplier_name or None,
            actor=current_user,
        )
    except stock.ProductNotFoundError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")

    await db.commit()
    await db.refresh(purchase)
    return PurchaseResponse.model_validate(purchase)
