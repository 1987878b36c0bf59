"""Purchase (stock intake) & Supplier models."""

import uuid
from decimal import Decimal

from sqlalchemy import ForeignKey, Integer, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dukasmart.db.base import Base
from dukasmart.models.mixins import TimestampMixin, UUIDPrimaryKeyMixin


class Supplier(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "suppliers"

    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)

    purchases = relationship("Purchase", back_populates="supplier")

    def __repr__(self) -> str:
        return f"<Supplier {self.name}>"


class Purchase(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """One intake at one unit cost. Never averaged with earlier intakes."""

    __tablename__ = "purchases"

    quantity_received: Mapped[int] = mapped_column(Integer, nullable=False)
    cost_per_unit: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    total_cost: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    supplier_name: Mapped[str | None] = mapped_column(String(255))

    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    purchased_by: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False, index=True
    )
    supplier_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("suppliers.id", ondelete="SET NULL"), index=True
    )

    product = relationship("Product", back_populates="purchases")
    purchaser = relationship("User")
    supplier = relationship("Supplier", back_populates="purchases")

    def __repr__(self) -> str:
        return f"<Purchase product={self.product_id} qty={self.quantity_received} total={self.total_cost}>"
