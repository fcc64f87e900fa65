"""
Product Categories - hierarchical, admin managed
Scoping key for facet computation and for category-specific attribute values
"""
from __future__ import annotations

from sqlalchemy import String, Integer, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime
from catalog.database import Base
from catalog.core.datetime_utils import utc_now


class ProductCategory(Base):
    """
    Product categories managed by admin
    level = parent.level + 1, path = parent.path + "/" + slug (root: level 0, path = slug)
    """
    __tablename__ = "product_categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    slug: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    image: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Hierarchy
    parent_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("product_categories.id"), nullable=True, index=True
    )
    level: Mapped[int] = mapped_column(Integer, default=0, nullable=False, index=True)
    path: Mapped[str] = mapped_column(String(1000), nullable=False, index=True)

    # Display order
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Active/Inactive
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    def __repr__(self):
        return f"<ProductCategory(id={self.id}, name={self.name}, path={self.path})>"
