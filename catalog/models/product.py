from __future__ import annotations

from sqlalchemy import String, Integer, Numeric, Float, DateTime, ForeignKey, Enum, JSON, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import TYPE_CHECKING
from datetime import datetime
import enum
from catalog.database import Base
from catalog.core.datetime_utils import utc_now

if TYPE_CHECKING:
    from catalog.models.filter import ProductAttributeValue


def _enum_column(enum_cls):
    return Enum(enum_cls, values_callable=lambda e: [m.value for m in e])


class ProductStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class ProductVisibility(str, enum.Enum):
    PUBLIC = "public"
    PRIVATE = "private"
    HIDDEN = "hidden"


class StockStatus(str, enum.Enum):
    IN_STOCK = "in_stock"
    OUT_OF_STOCK = "out_of_stock"
    BACKORDER = "backorder"


class ProductType(str, enum.Enum):
    SIMPLE = "simple"
    VARIABLE = "variable"
    GROUPED = "grouped"
    VIRTUAL = "virtual"
    DOWNLOADABLE = "downloadable"


class Product(Base):
    """
    Catalog product.

    Attribute references (category_id, brand_id, ..., material/occasion links)
    are weak: plain ids without foreign keys. They are validated on write and
    may dangle after an attribute value is deleted.
    """
    __tablename__ = "products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    slug: Mapped[str] = mapped_column(String(280), unique=True, nullable=False, index=True)
    sku: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    short_description: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Scoping
    category_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    brand_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    color_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    size_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    gender_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    season_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    style_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    pattern_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    shoe_height_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    fit_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    collar_type_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)

    product_type: Mapped[ProductType] = mapped_column(
        _enum_column(ProductType), default=ProductType.SIMPLE, nullable=False, index=True
    )

    # Pricing
    base_price: Mapped[float] = mapped_column(Numeric(10, 2), nullable=False, index=True)
    sale_price: Mapped[float | None] = mapped_column(Numeric(10, 2), nullable=True, index=True)
    currency: Mapped[str] = mapped_column(String(8), default="USD", nullable=False)

    # Inventory
    stock_quantity: Mapped[int] = mapped_column(Integer, default=0, nullable=False, index=True)
    stock_status: Mapped[StockStatus] = mapped_column(
        _enum_column(StockStatus), default=StockStatus.IN_STOCK, nullable=False, index=True
    )

    images: Mapped[list | None] = mapped_column(JSON, nullable=True)  # [{url, alt, isPrimary}]

    # Status and visibility
    status: Mapped[ProductStatus] = mapped_column(
        _enum_column(ProductStatus), default=ProductStatus.DRAFT, nullable=False, index=True
    )
    visibility: Mapped[ProductVisibility] = mapped_column(
        _enum_column(ProductVisibility), default=ProductVisibility.PUBLIC, nullable=False, index=True
    )

    # Analytics
    views: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    sales_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False, index=True)
    rating_average: Mapped[float] = mapped_column(Float, default=0.0, nullable=False, index=True)
    rating_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    # Set-valued references and legacy attributes, always loaded with the product
    material_links: Mapped[list["ProductMaterial"]] = relationship(
        "ProductMaterial", cascade="all, delete-orphan", lazy="selectin"
    )
    occasion_links: Mapped[list["ProductOccasion"]] = relationship(
        "ProductOccasion", cascade="all, delete-orphan", lazy="selectin"
    )
    tag_links: Mapped[list["ProductTag"]] = relationship(
        "ProductTag", cascade="all, delete-orphan", lazy="selectin"
    )
    attribute_values: Mapped[list["ProductAttributeValue"]] = relationship(
        "ProductAttributeValue", cascade="all, delete-orphan", lazy="selectin"
    )

    def __init__(self, **kwargs):
        # New products start with loaded, empty collections so async code never lazy-loads them
        self.material_links = []
        self.occasion_links = []
        self.tag_links = []
        self.attribute_values = []
        super().__init__(**kwargs)

    @property
    def material_ids(self) -> list[int]:
        return [link.material_id for link in self.material_links]

    @material_ids.setter
    def material_ids(self, ids):
        existing = {link.material_id: link for link in self.material_links}
        self.material_links = [
            existing.get(i) or ProductMaterial(material_id=i) for i in dict.fromkeys(ids or [])
        ]

    @property
    def occasion_ids(self) -> list[int]:
        return [link.occasion_id for link in self.occasion_links]

    @occasion_ids.setter
    def occasion_ids(self, ids):
        existing = {link.occasion_id: link for link in self.occasion_links}
        self.occasion_links = [
            existing.get(i) or ProductOccasion(occasion_id=i) for i in dict.fromkeys(ids or [])
        ]

    @property
    def tags(self) -> list[str]:
        return [link.tag for link in self.tag_links]

    @tags.setter
    def tags(self, values):
        existing = {link.tag: link for link in self.tag_links}
        self.tag_links = [existing.get(t) or ProductTag(tag=t) for t in dict.fromkeys(values or [])]

    def __repr__(self):
        return f"<Product(id={self.id}, sku={self.sku}, category_id={self.category_id})>"


class ProductMaterial(Base):
    __tablename__ = "product_materials"

    product_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("products.id", ondelete="CASCADE"), primary_key=True
    )
    material_id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)


class ProductOccasion(Base):
    __tablename__ = "product_occasions"

    product_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("products.id", ondelete="CASCADE"), primary_key=True
    )
    occasion_id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)


class ProductTag(Base):
    __tablename__ = "product_tags"

    product_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("products.id", ondelete="CASCADE"), primary_key=True
    )
    tag: Mapped[str] = mapped_column(String(50), primary_key=True, index=True)
