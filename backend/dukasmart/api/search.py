"""Global search across products, categories and sales."""

from typing import Literal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dukasmart.api.products import escape_like
from dukasmart.core.deps import get_current_user
from dukasmart.db.base import get_db
from dukasmart.models.category import MainCategory, SubCategory
from dukasmart.models.product import Product
from dukasmart.models.sale import Sale
from dukasmart.schemas.auth import CurrentUser

router = APIRouter(prefix="/search", tags=["search"])

ResultType = Literal["product", "category", "sale"]


class SearchResult(BaseModel):
    id: str
    type: ResultType
    title: str
    description: str
    url: str


async def _search_products(db: AsyncSession, like: str, limit: int) -> list[SearchResult]:
    result = await db.execute(
        select(Product)
        .where(Product.name.ilike(like, escape="\\") | Product.product_code.ilike(like, escape="\\"))
        .order_by(Product.name)
        .limit(limit)
    )
    return [
        SearchResult(
            id=str(p.id),
            type="product",
            title=p.name,
            description=f"Code {p.product_code} · {p.stock_quantity} in stock · {p.price:,.2f}",
            url=f"/products?id={p.id}",
        )
        for p in result.scalars().all()
    ]


async def _search_categories(db: AsyncSession, like: str, limit: int) -> list[SearchResult]:
    mains = await db.execute(
        select(MainCategory).where(MainCategory.name.ilike(like, escape="\\")).order_by(MainCategory.name).limit(limit)
    )
    subs = await db.execute(
        select(SubCategory, MainCategory.name)
        .join(MainCategory, SubCategory.main_category_id == MainCategory.id)
        .where(SubCategory.name.ilike(like, escape="\\"))
        .order_by(SubCategory.name)
        .limit(limit)
    )
    results = [
        SearchResult(
            id=str(c.id),
            type="category",
            title=c.name,
            description="Main category",
            url=f"/categories?main={c.id}",
        )
        for c in mains.scalars().all()
    ]
    results.extend(
        SearchResult(
            id=str(c.id),
            type="category",
            title=c.name,
            description=f"Sub category of {main_name}",
            url=f"/categories?sub={c.id}",
        )
        for c, main_name in subs.all()
    )
    return results[:limit]


async def _search_sales(db: AsyncSession, like: str, limit: int) -> list[SearchResult]:
    result = await db.execute(
        select(Sale, Product.name)
        .join(Product, Sale.product_id == Product.id)
        .where(Product.name.ilike(like, escape="\\") | Product.product_code.ilike(like, escape="\\"))
        .order_by(Sale.created_at.desc())
        .limit(limit)
    )
    return [
        SearchResult(
            id=str(s.id),
            type="sale",
            title=f"Sale of {product_name}",
            description=f"{s.quantity_sold} x {s.sale_price:,.2f} = {s.total_amount:,.2f} on {s.created_at:%Y-%m-%d}",
            url=f"/sales?id={s.id}",
        )
        for s, product_name in result.all()
    ]


@router.get("", response_model=list[SearchResult])
async def search(
    q: str = Query(..., min_length=1, max_length=100),
    type: Literal["all", "product", "category", "sale"] = "all",
    limit: int = Query(10, ge=1, le=50, description="Max results per type"),
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Case-insensitive substring search. Results are grouped by type."""
    like = f"%{escape_like(q.strip())}%"
    results: list[SearchResult] = []
    if type in ("all", "product"):
        results.extend(await _search_products(db, like, limit))
    if type in ("all", "category"):
        results.extend(await _search_categories(db, like, limit))
    if type in ("all", "sale"):
        results.extend(await _search_sales(db, like, limit))
    return results
