"""Dashboard summary."""

from datetime import datetime, time, timedelta, timezone
from decimal import Decimal

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dukasmart.core.deps import get_current_user
from dukasmart.db.base import get_db
from dukasmart.models.product import Product
from dukasmart.models.sale import Sale
from dukasmart.schemas.auth import CurrentUser

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


class DashboardStats(BaseModel):
    total_products: int
    today_sales_count: int
    today_sales_total: Decimal
    low_stock_count: int
    inventory_value: Decimal


@router.get("/stats", response_model=DashboardStats)
async def get_stats(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    today = datetime.combine(datetime.now(timezone.utc).date(), time.min, tzinfo=timezone.utc)
    tomorrow = today + timedelta(days=1)

    products = (
        await db.execute(
            select(
                func.count(Product.id),
                func.coalesce(func.sum(Product.price * Product.stock_quantity), 0),
            )
        )
    ).one()
    low_stock = (
        await db.execute(
            select(func.count(Product.id)).where(Product.stock_quantity <= Product.low_stock_threshold)
        )
    ).scalar_one()
    sales = (
        await db.execute(
            select(func.count(Sale.id), func.coalesce(func.sum(Sale.total_amount), 0))
            .where(Sale.created_at >= today, Sale.created_at < tomorrow)
        )
    ).one()

    return DashboardStats(
        total_products=products[0],
        today_sales_count=sales[0],
        today_sales_total=Decimal(str(sales[1])),
        low_stock_count=low_stock,
        inventory_value=Decimal(str(products[1])),
    )
