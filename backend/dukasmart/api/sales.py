"""Sale endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dukasmart.core.config import settings
from dukasmart.core.deps import get_current_user, require_permission
from dukasmart.db.base import get_db
from dukasmart.models.role import Permission
from dukasmart.models.sale import Sale
from dukasmart.schemas.auth import CurrentUser
from dukasmart.schemas.inventory import InsufficientStockDetail, SaleCreate, SaleResponse
from dukasmart.services import stock

router = APIRouter(prefix="/sales", tags=["sales"])


def insufficient_stock_http(exc: stock.InsufficientStockError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail=InsufficientStockDetail(
            message="Insufficient stock",
            product_id=exc.product_id,
            available=exc.available,
            requested=exc.requested,
        ).model_dump(mode="json"),
    )


@router.get("", response_model=list[SaleResponse])
async def list_sales(
    product_id: UUID | None = None,
    limit: int = Query(500, ge=1, le=1000),
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Sale history, newest first."""
    query = select(Sale)
    if product_id:
        query = query.where(Sale.product_id == product_id)
    result = await db.execute(query.order_by(Sale.created_at.desc()).limit(limit))
    return [SaleResponse.model_validate(s) for s in result.scalars().all()]


@router.get("/recent", response_model=list[SaleResponse])
async def list_recent_sales(
    limit: int = Query(settings.RECENT_SALES_LIMIT, ge=1, le=100),
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(Sale).order_by(Sale.created_at.desc()).limit(limit))
    return [SaleResponse.model_validate(s) for s in result.scalars().all()]


@router.post("", response_model=SaleResponse, status_code=status.HTTP_201_CREATED)
async def create_sale(
    body: SaleCreate,
    current_user: CurrentUser = Depends(require_permission(Permission.SALES)),
    db: AsyncSession = Depends(get_db),
):
    """Record a sale (requires sales permission). Fails with 409 when stock is short."""
    try:
        sale = await stock.create_sale(
            db,
            product_id=body.product_id,
            quantity_sold=body.quantity_sold,
            sale_price=body.sale_price,
            actor=current_user,
        )
    except stock.ProductNotFoundError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    except stock.InsufficientStockError as exc:
        await db.rollback()
        raise insufficient_stock_http(exc)

    await db.commit()
    await db.refresh(sale)
    return SaleResponse.model_validate(sale)
