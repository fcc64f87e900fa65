"""
Attribute value schemas

One create/update/response shape serves every dimension. Dimension-specific
fields (hexCode, sizeCategory, logo, ...) are accepted everywhere and kept only
where the dimension's table has them.
"""
from pydantic import Field, field_validator
from typing import Any, Optional, List
from datetime import datetime

from catalog.models.attributes import SizeCategory
from catalog.schemas.common import CamelModel


class AttributeCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    is_active: bool = True
    sort_order: int = 0

    # Brand
    logo: Optional[str] = None
    website: Optional[str] = None
    country_origin: Optional[str] = None
    # Color
    hex_code: Optional[str] = Field(None, max_length=9)
    rgb_code: Optional[str] = None
    # Size
    size_category: Optional[SizeCategory] = None
    numeric_value: Optional[float] = None
    # Pattern
    pattern_image: Optional[str] = None
    # Style, ShoeHeight, Fit, CollarType
    applicable_categories: Optional[List[int]] = None


class AttributeUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    is_active: Optional[bool] = None
    sort_order: Optional[int] = None

    logo: Optional[str] = None
    website: Optional[str] = None
    country_origin: Optional[str] = None
    hex_code: Optional[str] = Field(None, max_length=9)
    rgb_code: Optional[str] = None
    size_category: Optional[SizeCategory] = None
    numeric_value: Optional[float] = None
    pattern_image: Optional[str] = None
    applicable_categories: Optional[List[int]] = None


class AttributeResponse(CamelModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    is_active: bool
    sort_order: int
    created_at: datetime
    updated_at: datetime

    logo: Optional[str] = None
    website: Optional[str] = None
    country_origin: Optional[str] = None
    hex_code: Optional[str] = None
    rgb_code: Optional[str] = None
    size_category: Optional[SizeCategory] = None
    numeric_value: Optional[float] = None
    pattern_image: Optional[str] = None
    applicable_categories: Optional[List[int]] = None

    @field_validator("applicable_categories", mode="before")
    @classmethod
    def _category_ids(cls, value: Any):
        if value is None:
            return None
        return sorted(getattr(category, "id", category) for category in value)


def attribute_to_dict(value) -> dict:
    """Serialize an attribute row; fields its table does not have are left out"""
    return AttributeResponse.model_validate(value).to_json_dict(exclude_unset=True)
