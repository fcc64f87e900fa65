"""
Attribute dimensions - one table per dimension (brand, color, size, ...)

Style, ShoeHeight, Fit and CollarType values may be scoped to a set of
categories; an empty scope means the value applies to every category.
"""
from __future__ import annotations

from sqlalchemy import String, Integer, Boolean, DateTime, Float, ForeignKey, Table, Column, Enum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime
import enum
from catalog.database import Base
from catalog.core.datetime_utils import utc_now
from catalog.models.category import ProductCategory


class SizeCategory(str, enum.Enum):
    CLOTHING = "clothing"
    SHOES = "shoes"
    ACCESSORIES = "accessories"
    GENERIC = "generic"


def _scope_table(prefix: str, target: str) -> Table:
    return Table(
        f"{prefix}_categories",
        Base.metadata,
        Column(f"{prefix}_id", Integer, ForeignKey(f"{target}.id", ondelete="CASCADE"), primary_key=True),
        Column("category_id", Integer, ForeignKey("product_categories.id", ondelete="CASCADE"), primary_key=True),
    )


style_categories = _scope_table("style", "styles")
shoe_height_categories = _scope_table("shoe_height", "shoe_heights")
fit_categories = _scope_table("fit", "fits")
collar_type_categories = _scope_table("collar_type", "collar_types")

SCOPE_TABLES = (style_categories, shoe_height_categories, fit_categories, collar_type_categories)


class AttributeMixin:
    """Columns shared by every attribute dimension"""

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    # Unique among active values of a dimension; enforced by AttributeService
    slug: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    @property
    def applicable_category_ids(self) -> list[int]:
        categories = getattr(self, "applicable_categories", None) or []
        return sorted(category.id for category in categories)

    def __repr__(self):
        return f"<{type(self).__name__}(id={self.id}, slug={self.slug}, active={self.is_active})>"


class Brand(AttributeMixin, Base):
    __tablename__ = "brands"

    logo: Mapped[str | None] = mapped_column(String(500), nullable=True)
    website: Mapped[str | None] = mapped_column(String(500), nullable=True)
    country_origin: Mapped[str | None] = mapped_column(String(100), nullable=True)


class Color(AttributeMixin, Base):
    __tablename__ = "colors"

    hex_code: Mapped[str] = mapped_column(String(9), nullable=False)
    rgb_code: Mapped[str | None] = mapped_column(String(32), nullable=True)


class Size(AttributeMixin, Base):
    __tablename__ = "sizes"

    size_category: Mapped[SizeCategory] = mapped_column(
        Enum(SizeCategory, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        index=True,
    )
    numeric_value: Mapped[float | None] = mapped_column(Float, nullable=True)


class Material(AttributeMixin, Base):
    __tablename__ = "materials"


class Gender(AttributeMixin, Base):
    __tablename__ = "genders"


class Season(AttributeMixin, Base):
    __tablename__ = "seasons"


class Style(AttributeMixin, Base):
    __tablename__ = "styles"

    applicable_categories: Mapped[list[ProductCategory]] = relationship(
        ProductCategory, secondary=style_categories, lazy="selectin"
    )


class Pattern(AttributeMixin, Base):
    __tablename__ = "patterns"

    pattern_image: Mapped[str | None] = mapped_column(String(500), nullable=True)


class ShoeHeight(AttributeMixin, Base):
    __tablename__ = "shoe_heights"

    applicable_categories: Mapped[list[ProductCategory]] = relationship(
        ProductCategory, secondary=shoe_height_categories, lazy="selectin"
    )


class Fit(AttributeMixin, Base):
    __tablename__ = "fits"

    applicable_categories: Mapped[list[ProductCategory]] = relationship(
        ProductCategory, secondary=fit_categories, lazy="selectin"
    )


class Occasion(AttributeMixin, Base):
    __tablename__ = "occasions"


class CollarType(AttributeMixin, Base):
    __tablename__ = "collar_types"

    applicable_categories: Mapped[list[ProductCategory]] = relationship(
        ProductCategory, secondary=collar_type_categories, lazy="selectin"
    )
