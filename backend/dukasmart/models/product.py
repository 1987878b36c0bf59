"""Product model."""

import uuid
from decimal import Decimal

from sqlalchemy import CheckConstraint, ForeignKey, Integer, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dukasmart.db.base import Base
from dukasmart.models.mixins import TimestampMixin, UUIDPrimaryKeyMixin


class Product(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("stock_quantity >= 0", name="ck_products_stock_non_negative"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    product_code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    image_url: Mapped[str | None] = mapped_column(String(500))
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    # Only ever changed by services.stock
    stock_quantity: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    low_stock_threshold: Mapped[int] = mapped_column(Integer, default=5, nullable=False)

    sub_category_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("sub_categories.id", ondelete="RESTRICT"), nullable=False, index=True
    )

    sub_category = relationship("SubCategory", back_populates="products")
    purchases = relationship("Purchase", back_populates="product")
    sales = relationship("Sale", back_populates="product")
    stock_movements = relationship("StockMovement", back_populates="product")

    @property
    def is_low_stock(self) -> bool:
        return self.stock_quantity <= self.low_stock_threshold

    def __repr__(self) -> str:
        return f"<Product {self.product_code}: {self.name}>"
