"""
Listing predicates applied to a fixed product set
"""
import pytest

from catalog.models.product import ProductStatus, ProductVisibility, StockStatus
from catalog.services.filter_query_builder import FilterQueryBuilder
from catalog.services.product_service import product_service


async def names(db, defaults, params):
    query = FilterQueryBuilder(defaults).build(params)
    products, total = await product_service.list(db, query)
    assert total == len(products) or total > query.limit
    return sorted(p.name for p in products)


class TestPredicateCorrectness:

    @pytest.fixture
    async def products(self, catalog, make_product):
        await make_product(name="Red Jacket", base_price=80, brand_id=catalog.acme.id, color_id=catalog.red.id)
        await make_product(
            name="Blue Jacket", base_price=120, brand_id=catalog.globex.id, color_id=catalog.blue.id
        )
        await make_product(
            name="Rain Coat",
            base_price=150,
            brand_id=catalog.acme.id,
            description="A jacket for wet days",
        )
        await make_product(
            name="Trail Boot", base_price=90, category_id=catalog.shoes.id, sku="JACKET-LIKE-BOOT"
        )
        await make_product(name="Draft Jacket", base_price=100, status=ProductStatus.DRAFT)
        await make_product(name="Hidden Jacket", base_price=100, visibility=ProductVisibility.HIDDEN)

    async def test_search_and_min_price(self, db, defaults, products):
        assert await names(db, defaults, {"search": "jacket", "minPrice": "100"}) == [
            "Blue Jacket",
            "Rain Coat",
        ]

    async def test_search_is_or_across_text_fields(self, db, defaults, products):
        assert await names(db, defaults, {"search": "JACKET"}) == [
            "Blue Jacket",
            "Rain Coat",
            "Red Jacket",
            "Trail Boot",
        ]

    async def test_search_treats_wildcards_literally(self, db, defaults, products):
        assert await names(db, defaults, {"search": "%"}) == []

    async def test_parameters_combine_conjunctively(self, db, defaults, catalog, products):
        params = {
            "categoryId": str(catalog.jackets.id),
            "brandId": str(catalog.acme.id),
            "maxPrice": "100",
        }
        assert await names(db, defaults, params) == ["Red Jacket"]

    async def test_price_range_is_inclusive(self, db, defaults, products):
        assert await names(db, defaults, {"minPrice": "80", "maxPrice": "120"}) == [
            "Blue Jacket",
            "Red Jacket",
            "Trail Boot",
        ]

    async def test_default_scope_hides_drafts_and_hidden(self, db, defaults, products):
        listed = await names(db, defaults, {})
        assert "Draft Jacket" not in listed
        assert "Hidden Jacket" not in listed
        assert await names(db, defaults, {"status": "draft"}) == ["Draft Jacket"]

    async def test_unknown_reference_matches_nothing(self, db, defaults, products):
        assert await names(db, defaults, {"brandId": "9999"}) == []


class TestArrayDimensions:

    @pytest.fixture
    async def product(self, catalog, make_product):
        return await make_product(name="Blend Shirt", material_ids=[catalog.cotton.id, catalog.wool.id])

    @pytest.mark.parametrize(
        "materials",
        [["cotton"], ["wool"], ["cotton", "silk"]],
    )
    async def test_intersecting_sets_match(self, db, defaults, catalog, product, materials):
        params = {"materialIds": [str(getattr(catalog, m).id) for m in materials]}
        assert await names(db, defaults, params) == ["Blend Shirt"]

    async def test_disjoint_set_excluded(self, db, defaults, catalog, product):
        params = {"materialIds": [str(catalog.silk.id), str(catalog.linen.id)]}
        assert await names(db, defaults, params) == []

    async def test_tags_contain_any(self, db, defaults, make_product):
        await make_product(name="Tagged", tags=["summer", "sale"])
        await make_product(name="Other", tags=["winter"])
        assert await names(db, defaults, {"tags": ["sale", "new"]}) == ["Tagged"]


class TestSorting:

    async def test_price_sort(self, db, defaults, make_product):
        await make_product(name="B", base_price=30)
        await make_product(name="A", base_price=10)
        await make_product(name="C", base_price=20)

        query = FilterQueryBuilder(defaults).build({"sort": "price-desc"})
        products, _ = await product_service.list(db, query)
        assert [p.name for p in products] == ["B", "C", "A"]

        query = FilterQueryBuilder(defaults).build({"sort": "name-asc"})
        products, _ = await product_service.list(db, query)
        assert [p.name for p in products] == ["A", "B", "C"]

    async def test_stock_status_filter(self, db, defaults, make_product):
        await make_product(name="Gone", stock_status=StockStatus.OUT_OF_STOCK)
        await make_product(name="Here")
        assert await names(db, defaults, {"stockStatus": "out_of_stock"}) == ["Gone"]
