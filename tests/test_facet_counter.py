"""
Tests for facet computation
"""
import asyncio

import pytest

from catalog.services.attribute_service import AttributeService
from catalog.services.dimensions import Dimension
from catalog.services.facet_counter import FacetCounter
from catalog.services.filter_query_builder import FilterDefaults, FilterQueryBuilder


def summary(facets, dimension):
    return [(entry["name"], entry["count"]) for entry in facets.filters[dimension]]


@pytest.fixture
async def colored_jackets(catalog, make_product):
    """Category with 6 Red and 4 Blue products; two Red ones are Formal"""
    for i in range(6):
        await make_product(
            color_id=catalog.red.id,
            style_id=catalog.formal.id if i < 2 else catalog.casual.id,
            base_price=40 + i * 10,
            material_ids=[catalog.cotton.id],
        )
    for _ in range(4):
        await make_product(color_id=catalog.blue.id, base_price=200, brand_id=catalog.acme.id)
    # Outside the category
    await make_product(color_id=catalog.green.id, category_id=catalog.shoes.id)


async def facets_for(session_factory, defaults, params):
    query = FilterQueryBuilder(defaults).build(params)
    return await FacetCounter(session_factory, defaults).count_facets(query.predicate, query.category_id)


class TestFacetCounts:

    async def test_category_scoped_color_counts(self, session_factory, defaults, catalog, colored_jackets):
        facets = await facets_for(session_factory, defaults, {"categoryId": str(catalog.jackets.id)})
        assert facets.partial is False
        assert summary(facets, "colors") == [("Red", 6), ("Blue", 4)]

    async def test_scoped_value_excluded_outside_its_category(
        self, session_factory, defaults, catalog, colored_jackets
    ):
        facets = await facets_for(session_factory, defaults, {"categoryId": str(catalog.jackets.id)})
        # Casual applies to shoes only, even though jackets reference it
        assert summary(facets, "styles") == [("Formal", 2)]

    async def test_scoped_value_counted_in_its_category(self, session_factory, defaults, catalog, make_product):
        await make_product(category_id=catalog.shoes.id, style_id=catalog.casual.id)
        facets = await facets_for(session_factory, defaults, {"categoryId": str(catalog.shoes.id)})
        assert summary(facets, "styles") == [("Casual", 1)]

    async def test_zero_counts_are_dropped(self, session_factory, defaults, catalog, colored_jackets):
        facets = await facets_for(session_factory, defaults, {"categoryId": str(catalog.jackets.id)})
        for values in facets.filters.values():
            assert all(entry["count"] > 0 for entry in values)
        assert "Green" not in [name for name, _ in summary(facets, "colors")]
        assert facets.filters["genders"] == []

    async def test_inactive_values_never_appear(self, session_factory, defaults, catalog, make_product):
        await make_product(color_id=catalog.black.id)
        await make_product(color_id=catalog.red.id)
        facets = await facets_for(session_factory, defaults, {"categoryId": str(catalog.jackets.id)})
        assert summary(facets, "colors") == [("Red", 1)]

    async def test_counts_reflect_other_constraints(self, session_factory, defaults, catalog, colored_jackets):
        facets = await facets_for(
            session_factory, defaults, {"categoryId": str(catalog.jackets.id), "maxPrice": "60"}
        )
        # Red products priced 40, 50 and 60
        assert summary(facets, "colors") == [("Red", 3)]
        assert summary(facets, "materials") == [("Cotton", 3)]
        assert facets.filters["brands"] == []

    async def test_selected_brand_keeps_sibling_brands(
        self, session_factory, defaults, catalog, colored_jackets, make_product
    ):
        for _ in range(2):
            await make_product(brand_id=catalog.globex.id)
        facets = await facets_for(
            session_factory,
            defaults,
            {"categoryId": str(catalog.jackets.id), "brandId": str(catalog.acme.id)},
        )
        assert summary(facets, "brands") == [("Acme", 4), ("Globex", 2)]
        # Other dimensions still honour the brand selection
        assert summary(facets, "colors") == [("Blue", 4)]

    async def test_selected_material_keeps_sibling_materials(
        self, session_factory, defaults, catalog, colored_jackets, make_product
    ):
        await make_product(color_id=catalog.red.id, material_ids=[catalog.wool.id])
        facets = await facets_for(
            session_factory,
            defaults,
            {"categoryId": str(catalog.jackets.id), "materialIds": str(catalog.wool.id)},
        )
        assert summary(facets, "materials") == [("Cotton", 6), ("Wool", 1)]
        assert summary(facets, "colors") == [("Red", 1)]

    async def test_array_dimension_counts(self, session_factory, defaults, catalog, colored_jackets):
        facets = await facets_for(session_factory, defaults, {"categoryId": str(catalog.jackets.id)})
        assert summary(facets, "materials") == [("Cotton", 6)]
        assert summary(facets, "brands") == [("Acme", 4)]

    async def test_facet_entries_carry_value_fields(self, session_factory, defaults, catalog, colored_jackets):
        facets = await facets_for(session_factory, defaults, {"categoryId": str(catalog.jackets.id)})
        red = facets.filters["colors"][0]
        assert red["id"] == catalog.red.id
        assert red["slug"] == "red"
        assert red["hexCode"] == "#FF0000"

    async def test_every_dimension_present(self, session_factory, defaults, catalog, colored_jackets):
        facets = await facets_for(session_factory, defaults, {"categoryId": str(catalog.jackets.id)})
        assert list(facets.filters) == [d.value for d in Dimension]

    async def test_no_category_means_no_facets(self, session_factory, defaults, colored_jackets):
        facets = await facets_for(session_factory, defaults, {})
        assert facets.filters == {}
        assert facets.partial is False


class TestFacetLimits:

    async def test_timeout_returns_partial_facets(
        self, session_factory, catalog, colored_jackets, monkeypatch, caplog
    ):
        original = AttributeService.list_for_category

        async def slow_colors(db, dimension, category_id):
            if dimension is Dimension.COLORS:
                await asyncio.sleep(30)
            return await original(db, dimension, category_id)

        monkeypatch.setattr(AttributeService, "list_for_category", staticmethod(slow_colors))

        defaults = FilterDefaults(facet_timeout_seconds=2.0)
        with caplog.at_level("WARNING", logger="catalog.services.facet_counter"):
            facets = await facets_for(session_factory, defaults, {"categoryId": str(catalog.jackets.id)})

        assert facets.partial is True
        assert facets.filters["colors"] == []
        assert summary(facets, "brands") == [("Acme", 4)]
        assert "timed out" in caplog.text

    async def test_single_slot_concurrency_completes(self, session_factory, catalog, colored_jackets):
        defaults = FilterDefaults(facet_max_concurrency=1)
        facets = await facets_for(session_factory, defaults, {"categoryId": str(catalog.jackets.id)})
        assert facets.partial is False
        assert summary(facets, "colors") == [("Red", 6), ("Blue", 4)]


class TestFilterStatistics:

    async def test_price_range(self, session_factory, defaults, catalog, colored_jackets):
        query = FilterQueryBuilder(defaults).build({"categoryId": str(catalog.jackets.id)})
        price_range = await FacetCounter(session_factory, defaults).price_range(query.predicate)
        assert price_range["minPrice"] == 40
        assert price_range["maxPrice"] == 200
        # (40+50+60+70+80+90 + 4*200) / 10
        assert price_range["avgPrice"] == 119.0

    async def test_price_range_empty(self, session_factory, defaults):
        query = FilterQueryBuilder(defaults).build({"categoryId": "12345"})
        assert await FacetCounter(session_factory, defaults).price_range(query.predicate) is None

    async def test_rating_distribution(self, session_factory, defaults, make_product):
        await make_product(rating_average=4.5, rating_count=3)
        await make_product(rating_average=4.2, rating_count=3)
        await make_product(rating_average=2.5, rating_count=1)
        await make_product()
        query = FilterQueryBuilder(defaults).build({})
        distribution = await FacetCounter(session_factory, defaults).rating_distribution(query.predicate)
        assert distribution == [{"range": "2-3", "count": 1}, {"range": "4-5", "count": 2}]
