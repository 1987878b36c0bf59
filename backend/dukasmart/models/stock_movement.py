"""Manual stock adjustment records."""

import enum
import uuid

from sqlalchemy import Boolean, Enum, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dukasmart.db.base import Base
from dukasmart.models.mixins import TimestampMixin, UUIDPrimaryKeyMixin, enum_values


class MovementType(str, enum.Enum):
    IN = "in"
    OUT = "out"


OPENING_STOCK_REASON = "Opening stock"


class StockMovement(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "stock_movements"

    movement_type: Mapped[MovementType] = mapped_column(
        Enum(MovementType, name="movement_type", values_callable=enum_values), nullable=False
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str | None] = mapped_column(String(255))
    # Set only for the movement booked when a product is created
    is_opening: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    performed_by: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False, index=True
    )

    product = relationship("Product", back_populates="stock_movements")
    performer = relationship("User")

    @property
    def signed_quantity(self) -> int:
        return self.quantity if self.movement_type == MovementType.IN else -self.quantity

    def __repr__(self) -> str:
        return f"<StockMovement {self.movement_type.value} product={self.product_id} qty={self.quantity}>"
