"""Supplier listing. Suppliers are created implicitly from purchases."""

from datetime import datetime
from decimal import Decimal

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dukasmart.core.deps import get_current_user
from dukasmart.db.base import get_db
from dukasmart.models.purchase import Purchase, Supplier
from dukasmart.schemas.auth import CurrentUser

router = APIRouter(prefix="/suppliers", tags=["suppliers"])


class SupplierResponse(BaseModel):
    id: str
    name: str
    purchase_count: int
    total_cost: Decimal
    last_purchase_at: datetime | None
    created_at: datetime


@router.get("", response_model=list[SupplierResponse])
async def list_suppliers(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Suppliers with how much has been bought from each."""
    result = await db.execute(
        select(
            Supplier,
            func.count(Purchase.id).label("purchase_count"),
            func.coalesce(func.sum(Purchase.total_cost), 0).label("total_cost"),
            func.max(Purchase.created_at).label("last_purchase_at"),
        )
        .outerjoin(Purchase, Purchase.supplier_id == Supplier.id)
        .group_by(Supplier.id)
        .order_by(Supplier.name)
    )
    return [
        SupplierResponse(
            id=str(supplier.id),
            name=supplier.name,
            purchase_count=count,
            total_cost=Decimal(str(total)),
            last_purchase_at=last,
            created_at=supplier.created_at,
        )
        for supplier, count, total, last in result.all()
    ]
