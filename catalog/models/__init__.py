from catalog.models.user import User
from catalog.models.category import ProductCategory
from catalog.models.attributes import (
    Brand,
    Color,
    Size,
    Material,
    Gender,
    Season,
    Style,
    Pattern,
    ShoeHeight,
    Fit,
    Occasion,
    CollarType,
)
from catalog.models.product import Product, ProductMaterial, ProductOccasion, ProductTag
from catalog.models.filter import Filter, FilterGroup, ProductAttributeValue

__all__ = [
    "User",
    "ProductCategory",
    "Brand",
    "Color",
    "Size",
    "Material",
    "Gender",
    "Season",
    "Style",
    "Pattern",
    "ShoeHeight",
    "Fit",
    "Occasion",
    "CollarType",
    "Product",
    "ProductMaterial",
    "ProductOccasion",
    "ProductTag",
    "Filter",
    "FilterGroup",
    "ProductAttributeValue",
]
