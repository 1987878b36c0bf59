"""Two-level category taxonomy: main category -> sub category -> product."""

import uuid

from sqlalchemy import ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dukasmart.db.base import Base
from dukasmart.models.mixins import TimestampMixin, UUIDPrimaryKeyMixin


class MainCategory(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "main_categories"

    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)

    sub_categories = relationship(
        "SubCategory", back_populates="main_category", order_by="SubCategory.name"
    )

    def __repr__(self) -> str:
        return f"<MainCategory {self.name}>"


class SubCategory(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "sub_categories"
    __table_args__ = (
        UniqueConstraint("main_category_id", "name", name="uq_sub_category_main_name"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    main_category_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("main_categories.id", ondelete="RESTRICT"), nullable=False, index=True
    )

    main_category = relationship("MainCategory", back_populates="sub_categories")
    products = relationship("Product", back_populates="sub_category")

    def __repr__(self) -> str:
        return f"<SubCategory {self.name}>"
