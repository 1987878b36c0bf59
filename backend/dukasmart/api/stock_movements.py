"""Manual stock movement endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dukasmart.api.sales import insufficient_stock_http
from dukasmart.core.deps import ensure_permission, get_current_user
from dukasmart.db.base import get_db
from dukasmart.models.role import Permission
from dukasmart.models.stock_movement import MovementType, StockMovement
from dukasmart.schemas.auth import CurrentUser
from dukasmart.schemas.inventory import StockMovementCreate, StockMovementResponse
from dukasmart.services import stock

router = APIRouter(prefix="/stock-movements", tags=["stock-movements"])

MOVEMENT_PERMISSIONS = {
    MovementType.IN: Permission.STOCK_IN,
    MovementType.OUT: Permission.STOCK_OUT,
}


@router.get("", response_model=list[StockMovementResponse])
async def list_stock_movements(
    product_id: UUID | None = None,
    movement_type: MovementType | None = None,
    limit: int = Query(500, ge=1, le=1000),
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Movement history, newest first."""
    query = select(StockMovement)
    if product_id:
        query = query.where(StockMovement.product_id == product_id)
    if movement_type:
        query = query.where(StockMovement.movement_type == movement_type)
    result = await db.execute(query.order_by(StockMovement.created_at.desc()).limit(limit))
    return [StockMovementResponse.model_validate(m) for m in result.scalars().all()]


@router.post("", response_model=StockMovementResponse, status_code=status.HTTP_201_CREATED)
async def create_stock_movement(
    body: StockMovementCreate,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Record a stock in/out adjustment (requires stock_in or stock_out permission)."""
    ensure_permission(current_user, MOVEMENT_PERMISSIONS[body.movement_type])

    try:
        movement = await stock.create_stock_movement(
            db,
            product_id=body.product_id,
            movement_type=body.movement_type,
            quantity=body.quantity,
            reason=body.reason,
            actor=current_user,
        )
    except stock.ProductNotFoundError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    except stock.InsufficientStockError as exc:
        await db.rollback()
        raise insufficient_stock_http(exc)

    await db.commit()
    await db.refresh(movement)
    return StockMovementResponse.model_validate(movement)
