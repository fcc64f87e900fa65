from catalog.schemas.common import CamelModel
from catalog.schemas.attribute import (
    AttributeCreate,
    AttributeUpdate,
    AttributeResponse,
)
from catalog.schemas.category import (
    CategoryCreate,
    CategoryUpdate,
    CategoryResponse,
)
from catalog.schemas.product import (
    ProductCreate,
    ProductUpdate,
    ProductResponse,
)
from catalog.schemas.filter import (
    FilterGroupCreate,
    FilterGroupUpdate,
    FilterGroupResponse,
    FilterCreate,
    FilterUpdate,
    FilterResponse,
)

__all__ = [
    "CamelModel",
    "AttributeCreate",
    "AttributeUpdate",
    "AttributeResponse",
    "CategoryCreate",
    "CategoryUpdate",
    "CategoryResponse",
    "ProductCreate",
    "ProductUpdate",
    "ProductResponse",
    "FilterGroupCreate",
    "FilterGroupUpdate",
    "FilterGroupResponse",
    "FilterCreate",
    "FilterUpdate",
    "FilterResponse",
]
