"""Reporting endpoints. All require the view_reports permission."""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy import Date, desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dukasmart.core.deps import require_permission
from dukasmart.db.base import get_db
from dukasmart.models.category import MainCategory, SubCategory
from dukasmart.models.product import Product
from dukasmart.models.role import Permission
from dukasmart.models.sale import Sale
from dukasmart.schemas.auth import CurrentUser
from dukasmart.services import stock

router = APIRouter(prefix="/reports", tags=["reports"])

ZERO = Decimal("0.00")


# Response schemas
class DailySalesItem(BaseModel):
    date: date
    total_sales: int
    total_quantity: int
    total_revenue: Decimal = Field(..., decimal_places=2)


class ProductSalesItem(BaseModel):
    product_id: str
    product_name: str
    product_code: str
    total_quantity: int
    total_revenue: Decimal = Field(..., decimal_places=2)


class SalesReport(BaseModel):
    period_start: date
    period_end: date
    total_sales: int
    total_quantity: int
    total_revenue: Decimal = Field(..., decimal_places=2)
    by_day: list[DailySalesItem]
    by_product: list[ProductSalesItem]


class InventoryItem(BaseModel):
    product_id: str
    product_name: str
    product_code: str
    main_category: str
    sub_category: str
    stock_quantity: int
    price: Decimal = Field(..., decimal_places=2)
    stock_value: Decimal = Field(..., decimal_places=2)
    is_low_stock: bool


class CategoryInventoryItem(BaseModel):
    main_category_id: str
    main_category: str
    product_count: int
    total_stock: int
    stock_value: Decimal = Field(..., decimal_places=2)


class InventoryReport(BaseModel):
    total_products: int
    total_stock: int
    total_value: Decimal = Field(..., decimal_places=2)
    low_stock_count: int
    items: list[InventoryItem]
    by_main_category: list[CategoryInventoryItem]


class LowStockItem(BaseModel):
    product_id: str
    product_name: str
    product_code: str
    stock_quantity: int
    low_stock_threshold: int
    shortfall: int


class LowStockReport(BaseModel):
    items: list[LowStockItem]
    total: int


class ReconciliationItem(BaseModel):
    product_id: str
    product_name: str
    stock_quantity: int
    ledger_quantity: int
    difference: int


class ReconciliationReport(BaseModel):
    consistent: bool
    checked: int
    items: list[ReconciliationItem]


def _period_bounds(start_date: date, end_date: date) -> tuple[datetime, datetime]:
    """UTC half-open interval covering both dates entirely."""
    start = datetime.combine(start_date, datetime.min.time(), tzinfo=timezone.utc)
    end = datetime.combine(end_date + timedelta(days=1), datetime.min.time(), tzinfo=timezone.utc)
    return start, end


def _utc_day(column, dialect_name: str):
    """Calendar day of a timestamp, taken in UTC whatever the session time zone."""
    if dialect_name == "postgresql":
        column = func.timezone("UTC", column)
    return func.date(column, type_=Date)


@router.get("/sales", response_model=SalesReport)
async def get_sales_report(
    start_date: date | None = Query(None, description="Start date (YYYY-MM-DD), defaults to 30 days ago"),
    end_date: date | None = Query(None, description="End date (YYYY-MM-DD), defaults to today"),
    limit: int = Query(20, ge=1, le=100, description="Number of products in the breakdown"),
    current_user: CurrentUser = Depends(require_permission(Permission.VIEW_REPORTS)),
    db: AsyncSession = Depends(get_db),
):
    """Sales totals for a period with per-day and per-product breakdowns."""
    end_date = end_date or datetime.now(timezone.utc).date()
    start_date = start_date or end_date - timedelta(days=30)
    if end_date < start_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="end_date must be >= start_date",
        )
    period_start, period_end = _period_bounds(start_date, end_date)
    in_period = (Sale.created_at >= period_start, Sale.created_at < period_end)

    sale_day = _utc_day(Sale.created_at, db.get_bind().dialect.name)
    daily = (
        await db.execute(
            select(
                sale_day.label("day"),
                func.count(Sale.id).label("total_sales"),
                func.sum(Sale.quantity_sold).label("total_quantity"),
                func.sum(Sale.total_amount).label("total_revenue"),
            )
            .where(*in_period)
            .group_by(sale_day)
            .order_by(sale_day)
        )
    ).all()

    top_products = (
        await db.execute(
            select(
                Product.id.label("product_id"),
                Product.name.label("product_name"),
                Product.product_code,
                func.sum(Sale.quantity_sold).label("total_quantity"),
                func.sum(Sale.total_amount).label("total_revenue"),
            )
            .join(Product, Sale.product_id == Product.id)
            .where(*in_period)
            .group_by(Product.id, Product.name, Product.product_code)
            .order_by(desc(func.sum(Sale.total_amount)))
            .limit(limit)
        )
    ).all()

    by_day = [
        DailySalesItem(
            date=row.day,
            total_sales=row.total_sales,
            total_quantity=row.total_quantity or 0,
            total_revenue=row.total_revenue or ZERO,
        )
        for row in daily
    ]

    return SalesReport(
        period_start=start_date,
        period_end=end_date,
        total_sales=sum(item.total_sales for item in by_day),
        total_quantity=sum(item.total_quantity for item in by_day),
        total_revenue=sum((item.total_revenue for item in by_day), ZERO),
        by_day=by_day,
        by_product=[
            ProductSalesItem(
                product_id=str(row.product_id),
                product_name=row.product_name,
                product_code=row.product_code,
                total_quantity=row.total_quantity or 0,
                total_revenue=row.total_revenue or ZERO,
            )
            for row in top_products
        ],
    )


@router.get("/inventory", response_model=InventoryReport)
async def get_inventory_report(
    current_user: CurrentUser = Depends(require_permission(Permission.VIEW_REPORTS)),
    db: AsyncSession = Depends(get_db),
):
    """Stock on hand and its value per product and per main category."""
    rows = (
        await db.execute(
            select(
                Product,
                SubCategory.name.label("sub_category"),
                MainCategory.id.label("main_category_id"),
                MainCategory.name.label("main_category"),
            )
            .join(SubCategory, Product.sub_category_id == SubCategory.id)
            .join(MainCategory, SubCategory.main_category_id == MainCategory.id)
            .order_by(MainCategory.name, SubCategory.name, Product.name)
        )
    ).all()

    items: list[InventoryItem] = []
    categories: dict[str, CategoryInventoryItem] = {}
    for product, sub_name, main_id, main_name in rows:
        value = product.price * product.stock_quantity
        items.append(
            InventoryItem(
                product_id=str(product.id),
                product_name=product.name,
                product_code=product.product_code,
                main_category=main_name,
                sub_category=sub_name,
                stock_quantity=product.stock_quantity,
                price=product.price,
                stock_value=value,
                is_low_stock=product.is_low_stock,
            )
        )
        bucket = categories.setdefault(
            str(main_id),
            CategoryInventoryItem(
                main_category_id=str(main_id),
                main_category=main_name,
                product_count=0,
                total_stock=0,
                stock_value=ZERO,
            ),
        )
        bucket.product_count += 1
        bucket.total_stock += product.stock_quantity
        bucket.stock_value += value

    return InventoryReport(
        total_products=len(items),
        total_stock=sum(item.stock_quantity for item in items),
        total_value=sum((item.stock_value for item in items), ZERO),
        low_stock_count=sum(1 for item in items if item.is_low_stock),
        items=items,
        by_main_category=list(categories.values()),
    )


@router.get("/low-stock", response_model=LowStockReport)
async def get_low_stock_report(
    current_user: CurrentUser = Depends(require_permission(Permission.VIEW_REPORTS)),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Product)
        .where(Product.stock_quantity <= Product.low_stock_threshold)
        .order_by(Product.stock_quantity.asc(), Product.name)
    )
    items = [
        LowStockItem(
            product_id=str(p.id),
            product_name=p.name,
            product_code=p.product_code,
            stock_quantity=p.stock_quantity,
            low_stock_threshold=p.low_stock_threshold,
            shortfall=p.low_stock_threshold - p.stock_quantity,
        )
        for p in result.scalars().all()
    ]
    return LowStockReport(items=items, total=len(items))


@router.get("/stock-reconciliation", response_model=ReconciliationReport)
async def get_stock_reconciliation(
    current_user: CurrentUser = Depends(require_permission(Permission.VIEW_REPORTS)),
    db: AsyncSession = Depends(get_db),
):
    """Compare stored stock with a replay of the purchase, sale and movement history."""
    purchased, sold, moved = stock.ledger_quantity_subqueries()
    ledger = (purchased - sold + moved).label("ledger_quantity")
    rows = (
        await db.execute(
            select(Product.id, Product.name, Product.stock_quantity, ledger).order_by(Product.name)
        )
    ).all()

    drifted = [
        ReconciliationItem(
            product_id=str(row.id),
            product_name=row.name,
            stock_quantity=row.stock_quantity,
            ledger_quantity=int(row.ledger_quantity),
            difference=row.stock_quantity - int(row.ledger_quantity),
        )
        for row in rows
        if row.stock_quantity != int(row.ledger_quantity)
    ]
    return ReconciliationReport(consistent=not drifted, checked=len(rows), items=drifted)
