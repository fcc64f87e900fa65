from pydantic import Field, field_validator, model_validator
from datetime import datetime
from typing import Optional, List

from catalog.models.product import ProductStatus, ProductType, ProductVisibility, StockStatus
from catalog.schemas.common import CamelModel


class Pricing(CamelModel):
    base_price: float = Field(..., ge=0, le=1000000)
    sale_price: Optional[float] = Field(None, ge=0, le=1000000)
    currency: str = Field("USD", min_length=3, max_length=8)


class PricingUpdate(CamelModel):
    base_price: Optional[float] = Field(None, ge=0, le=1000000)
    sale_price: Optional[float] = Field(None, ge=0, le=1000000)
    currency: Optional[str] = Field(None, min_length=3, max_length=8)


class Inventory(CamelModel):
    stock_quantity: int = Field(0, ge=0)
    stock_status: StockStatus = StockStatus.IN_STOCK


class InventoryUpdate(CamelModel):
    stock_quantity: Optional[int] = Field(None, ge=0)
    stock_status: Optional[StockStatus] = None


class ProductImage(CamelModel):
    url: str = Field(..., min_length=1)
    alt: Optional[str] = None
    is_primary: bool = False


class AttributeValueIn(CamelModel):
    """Legacy (v1) attribute assignment"""

    filter_id: int
    value: str = Field(..., min_length=1, max_length=255)
    display_value: Optional[str] = Field(None, max_length=255)


class ProductReferences(CamelModel):
    category_id: Optional[int] = None
    brand_id: Optional[int] = None
    color_id: Optional[int] = None
    size_id: Optional[int] = None
    gender_id: Optional[int] = None
    season_id: Optional[int] = None
    style_id: Optional[int] = None
    pattern_id: Optional[int] = None
    shoe_height_id: Optional[int] = None
    fit_id: Optional[int] = None
    collar_type_id: Optional[int] = None
    material_ids: Optional[List[int]] = None
    occasion_ids: Optional[List[int]] = None


class ProductCreate(ProductReferences):
    name: str = Field(..., min_length=1, max_length=255)
    sku: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    short_description: Optional[str] = Field(None, max_length=500)
    category_id: int
    product_type: ProductType = ProductType.SIMPLE
    pricing: Pricing
    inventory: Inventory = Field(default_factory=Inventory)
    images: Optional[List[ProductImage]] = Field(None, max_length=10)
    tags: Optional[List[str]] = None
    status: ProductStatus = ProductStatus.DRAFT
    visibility: ProductVisibility = ProductVisibility.PUBLIC
    attributes: Optional[List[AttributeValueIn]] = None

    @field_validator("sku")
    @classmethod
    def _strip_sku(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("SKU cannot be blank")
        return v

    @model_validator(mode="after")
    def _sale_below_base(self):
        if self.pricing.sale_price is not None and self.pricing.sale_price > self.pricing.base_price:
            raise ValueError("Sale price cannot exceed base price")
        return self


class ProductUpdate(ProductReferences):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    sku: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    short_description: Optional[str] = Field(None, max_length=500)
    product_type: Optional[ProductType] = None
    pricing: Optional[PricingUpdate] = None
    inventory: Optional[InventoryUpdate] = None
    images: Optional[List[ProductImage]] = Field(None, max_length=10)
    tags: Optional[List[str]] = None
    status: Optional[ProductStatus] = None
    visibility: Optional[ProductVisibility] = None
    attributes: Optional[List[AttributeValueIn]] = None


class AttributeValueOut(CamelModel):
    filter_id: int
    value: str
    display_value: Optional[str] = None


class ProductResponse(ProductReferences):
    id: int
    name: str
    slug: str
    sku: str
    description: Optional[str] = None
    short_description: Optional[str] = None
    category_id: int
    material_ids: List[int] = []
    occasion_ids: List[int] = []
    product_type: ProductType
    pricing: Pricing
    inventory: Inventory
    images: Optional[List[dict]] = None
    tags: List[str] = []
    status: ProductStatus
    visibility: ProductVisibility
    attributes: List[AttributeValueOut] = []
    views: int
    sales_count: int
    rating_average: float
    rating_count: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_product(cls, product) -> "ProductResponse":
        return cls(
            id=product.id,
            name=product.name,
            slug=product.slug,
            sku=product.sku,
            description=product.description,
            short_description=product.short_description,
            category_id=product.category_id,
            brand_id=product.brand_id,
            color_id=product.color_id,
            size_id=product.size_id,
            gender_id=product.gender_id,
            season_id=product.season_id,
            style_id=product.style_id,
            pattern_id=product.pattern_id,
            shoe_height_id=product.shoe_height_id,
            fit_id=product.fit_id,
            collar_type_id=product.collar_type_id,
            material_ids=product.material_ids,
            occasion_ids=product.occasion_ids,
            product_type=product.product_type,
            pricing=Pricing(
                base_price=product.base_price,
                sale_price=product.sale_price,
                currency=product.currency,
            ),
            inventory=Inventory(
                stock_quantity=product.stock_quantity,
                stock_status=product.stock_status,
            ),
            images=product.images,
            tags=product.tags,
            status=product.status,
            visibility=product.visibility,
            attributes=[AttributeValueOut.model_validate(a) for a in product.attribute_values],
            views=product.views,
            sales_count=product.sales_count,
            rating_average=product.rating_average,
            rating_count=product.rating_count,
            created_at=product.created_at,
            updated_at=product.updated_at,
        )
