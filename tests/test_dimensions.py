"""
Tests for the dimension table
"""
import pytest

from catalog.core.exceptions import NotFoundError
from catalog.models.product import Product
from catalog.services.dimensions import (
    CATEGORY_ATTRIBUTE_DIMENSIONS,
    DIMENSIONS,
    FACET_DIMENSIONS,
    Dimension,
    parse_dimension,
)


class TestDimensions:

    def test_every_dimension_is_described(self):
        assert set(DIMENSIONS) == set(Dimension)

    def test_product_fields_exist(self):
        for spec in DIMENSIONS.values():
            assert hasattr(Product, spec.product_field), spec.product_field

    def test_scoped_dimensions(self):
        scoped = {d for d, spec in DIMENSIONS.items() if spec.scoped}
        assert scoped == {
            Dimension.STYLES,
            Dimension.SHOE_HEIGHTS,
            Dimension.FITS,
            Dimension.COLLAR_TYPES,
        }
        for dimension in scoped:
            assert hasattr(DIMENSIONS[dimension].model, "applicable_categories")

    def test_array_dimensions(self):
        arrays = {d for d, spec in DIMENSIONS.items() if spec.is_array}
        assert arrays == {Dimension.MATERIALS, Dimension.OCCASIONS}

    def test_facet_order_is_fixed(self):
        assert [d.value for d in FACET_DIMENSIONS] == [
            "brands", "colors", "sizes", "materials", "genders", "seasons",
            "styles", "patterns", "shoeHeights", "fits", "occasions", "collarTypes",
        ]

    def test_category_attributes_exclude_brands(self):
        assert Dimension.BRANDS not in CATEGORY_ATTRIBUTE_DIMENSIONS
        assert len(CATEGORY_ATTRIBUTE_DIMENSIONS) == len(Dimension) - 1

    @pytest.mark.parametrize(
        "segment, expected",
        [
            ("colors", Dimension.COLORS),
            ("shoe-heights", Dimension.SHOE_HEIGHTS),
            ("shoeHeights", Dimension.SHOE_HEIGHTS),
            ("collar-types", Dimension.COLLAR_TYPES),
        ],
    )
    def test_parse_dimension(self, segment, expected):
        assert parse_dimension(segment) is expected

    def test_parse_unknown_dimension(self):
        with pytest.raises(NotFoundError):
            parse_dimension("flavours")
