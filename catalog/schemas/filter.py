"""Legacy (v1) filter registry schemas"""
from pydantic import Field
from typing import Optional, List
from datetime import datetime

from catalog.models.filter import FilterType
from catalog.schemas.common import CamelModel


class FilterOption(CamelModel):
    label: str = Field(..., min_length=1)
    value: str = Field(..., min_length=1)


class FilterGroupCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    category_id: int
    is_active: bool = True
    sort_order: int = 0


class FilterGroupUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    category_id: Optional[int] = None
    is_active: Optional[bool] = None
    sort_order: Optional[int] = None


class FilterGroupResponse(CamelModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    category_id: int
    is_active: bool
    sort_order: int
    created_at: datetime


class FilterCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: FilterType = FilterType.SELECT
    options: List[FilterOption] = []
    filter_group_id: int
    is_global: bool = False
    is_active: bool = True
    sort_order: int = 0


class FilterUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    type: Optional[FilterType] = None
    options: Optional[List[FilterOption]] = None
    filter_group_id: Optional[int] = None
    is_global: Optional[bool] = None
    is_active: Optional[bool] = None
    sort_order: Optional[int] = None


class FilterResponse(CamelModel):
    id: int
    name: str
    slug: str
    type: FilterType
    options: Optional[List[FilterOption]] = None
    filter_group_id: int
    is_global: bool
    is_active: bool
    sort_order: int
    created_at: datetime
