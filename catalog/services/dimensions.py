"""
Attribute dimensions

Every dimension is an enum member bound to its table, the Product field that
references it and its scoping rule. Adding a dimension means adding a member
and its DimensionSpec entry; nothing dispatches on free-form strings.
"""
from dataclasses import dataclass
from typing import Tuple, Type
import enum

from catalog.core.exceptions import NotFoundError
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


class Dimension(str, enum.Enum):
    BRANDS = "brands"
    COLORS = "colors"
    SIZES = "sizes"
    MATERIALS = "materials"
    GENDERS = "genders"
    SEASONS = "seasons"
    STYLES = "styles"
    PATTERNS = "patterns"
    SHOE_HEIGHTS = "shoeHeights"
    FITS = "fits"
    OCCASIONS = "occasions"
    COLLAR_TYPES = "collarTypes"


@dataclass(frozen=True)
class DimensionSpec:
    model: Type
    label: str
    # Product attribute holding the reference
    product_field: str
    # Listing query parameter
    param: str
    # URL segment under /api/v2/attributes
    path: str
    is_array: bool = False
    scoped: bool = False
    required_fields: Tuple[str, ...] = ()


DIMENSIONS = {
    Dimension.BRANDS: DimensionSpec(Brand, "Brand", "brand_id", "brandId", "brands"),
    Dimension.COLORS: DimensionSpec(
        Color, "Color", "color_id", "colorId", "colors", required_fields=("hex_code",)
    ),
    Dimension.SIZES: DimensionSpec(
        Size, "Size", "size_id", "sizeId", "sizes", required_fields=("size_category",)
    ),
    Dimension.MATERIALS: DimensionSpec(
        Material, "Material", "material_ids", "materialIds", "materials", is_array=True
    ),
    Dimension.GENDERS: DimensionSpec(Gender, "Gender", "gender_id", "genderId", "genders"),
    Dimension.SEASONS: DimensionSpec(Season, "Season", "season_id", "seasonId", "seasons"),
    Dimension.STYLES: DimensionSpec(Style, "Style", "style_id", "styleId", "styles", scoped=True),
    Dimension.PATTERNS: DimensionSpec(Pattern, "Pattern", "pattern_id", "patternId", "patterns"),
    Dimension.SHOE_HEIGHTS: DimensionSpec(
        ShoeHeight, "ShoeHeight", "shoe_height_id", "shoeHeightId", "shoe-heights", scoped=True
    ),
    Dimension.FITS: DimensionSpec(Fit, "Fit", "fit_id", "fitId", "fits", scoped=True),
    Dimension.OCCASIONS: DimensionSpec(
        Occasion, "Occasion", "occasion_ids", "occasionIds", "occasions", is_array=True
    ),
    Dimension.COLLAR_TYPES: DimensionSpec(
        CollarType, "CollarType", "collar_type_id", "collarTypeId", "collar-types", scoped=True
    ),
}

# Facet order in listing responses
FACET_DIMENSIONS: Tuple[Dimension, ...] = tuple(Dimension)

# Dimensions offered when editing a product of a given category
CATEGORY_ATTRIBUTE_DIMENSIONS: Tuple[Dimension, ...] = tuple(
    d for d in Dimension if d is not Dimension.BRANDS
)

_BY_PATH = {spec.path: dimension for dimension, spec in DIMENSIONS.items()}


def spec_for(dimension: Dimension) -> DimensionSpec:
    return DIMENSIONS[dimension]


def parse_dimension(segment: str) -> Dimension:
    """Resolve a URL segment ("collar-types" or "collarTypes") to a Dimension"""
    if segment in _BY_PATH:
        return _BY_PATH[segment]
    try:
        return Dimension(segment)
    except ValueError:
        raise NotFoundError(f"Unknown attribute dimension '{segment}'")
