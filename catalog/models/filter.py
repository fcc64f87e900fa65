"""
Legacy (v1) generic filter registry

A FilterGroup belongs to a category; a Filter belongs to a group or is global.
Products carry (filter, value) pairs in product_attribute_values.
"""
from __future__ import annotations

from sqlalchemy import String, Integer, Boolean, DateTime, ForeignKey, Enum, JSON
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime
import enum
from catalog.database import Base
from catalog.core.datetime_utils import utc_now


class FilterType(str, enum.Enum):
    SELECT = "select"
    MULTI_SELECT = "multi-select"


class FilterGroup(Base):
    __tablename__ = "filter_groups"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(120), unique=True, nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    category_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("product_categories.id"), nullable=False, index=True
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, nullable=False)

    def __repr__(self):
        return f"<FilterGroup(id={self.id}, slug={self.slug})>"


class Filter(Base):
    __tablename__ = "filters"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    type: Mapped[FilterType] = mapped_column(
        Enum(FilterType, values_callable=lambda e: [m.value for m in e]),
        default=FilterType.SELECT,
        nullable=False,
    )
    options: Mapped[list | None] = mapped_column(JSON, nullable=True)  # [{label, value}]
    filter_group_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("filter_groups.id"), nullable=False, index=True
    )
    # Global filters apply to all categories
    is_global: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, nullable=False)

    def __repr__(self):
        return f"<Filter(id={self.id}, slug={self.slug}, type={self.type})>"


class ProductAttributeValue(Base):
    __tablename__ = "product_attribute_values"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    product_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True
    )
    filter_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    value: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    display_value: Mapped[str | None] = mapped_column(String(255), nullable=True)
