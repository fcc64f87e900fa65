"""
Tests for the filter query builder
"""
from datetime import datetime

import pytest

from catalog.core.predicates import AllOf, AnyOf, AttributeMatch, Between, Equals, TextSearch
from catalog.models.product import ProductStatus, ProductVisibility, StockStatus
from catalog.services.filter_query_builder import (
    DEFAULT_SORT,
    SEARCH_FIELDS,
    SORT_OPTIONS,
    FilterDefaults,
    FilterQueryBuilder,
    normalize_params,
)


@pytest.fixture
def builder():
    return FilterQueryBuilder(FilterDefaults(page_size=20, max_page_size=100))


def clauses(query):
    return query.predicate.clauses


class TestNormalizeParams:

    def test_bracket_keys_fold_into_plain_keys(self):
        params = normalize_params([("materialIds[]", "1"), ("materialIds[]", "2"), ("materialIds", "3")])
        assert params == {"materialIds": ["1", "2", "3"]}

    def test_mapping_with_scalars_and_lists(self):
        params = normalize_params({"brandId": 4, "tags": ["a", "b"]})
        assert params == {"brandId": ["4"], "tags": ["a", "b"]}


class TestDefaults:

    def test_status_and_visibility_default(self, builder):
        query = builder.build({})
        assert clauses(query)[:2] == (
            Equals("status", ProductStatus.PUBLISHED),
            Equals("visibility", ProductVisibility.PUBLIC),
        )
        assert query.page == 1
        assert query.limit == 20
        assert query.skip == 0
        assert query.sort_key == DEFAULT_SORT
        assert query.category_id is None
        assert query.ignored == []

    def test_empty_status_cannot_weaken_default(self, builder):
        query = builder.build({"status": "", "visibility": ""})
        assert Equals("status", ProductStatus.PUBLISHED) in clauses(query)
        assert Equals("visibility", ProductVisibility.PUBLIC) in clauses(query)
        assert query.ignored == []

    def test_explicit_status(self, builder):
        query = builder.build({"status": "draft", "visibility": "hidden"})
        assert Equals("status", ProductStatus.DRAFT) in clauses(query)
        assert Equals("visibility", ProductVisibility.HIDDEN) in clauses(query)

    def test_unknown_status_falls_back_and_is_reported(self, builder):
        query = builder.build({"status": "everything"})
        assert Equals("status", ProductStatus.PUBLISHED) in clauses(query)
        assert query.warnings[0]["parameter"] == "status"

    def test_defaults_are_explicit_configuration(self):
        builder = FilterQueryBuilder(FilterDefaults(status=ProductStatus.DRAFT, page_size=5))
        query = builder.build({})
        assert Equals("status", ProductStatus.DRAFT) in clauses(query)
        assert query.limit == 5


class TestReferenceParameters:

    def test_scalar_references(self, builder):
        query = builder.build({"categoryId": "3", "brandId": "7", "colorId": "2", "collarTypeId": "9"})
        assert Equals("category_id", 3) in clauses(query)
        assert Equals("brand_id", 7) in clauses(query)
        assert Equals("color_id", 2) in clauses(query)
        assert Equals("collar_type_id", 9) in clauses(query)
        assert query.category_id == 3

    def test_array_references_accept_single_values(self, builder):
        query = builder.build({"materialIds": "4"})
        assert AnyOf("material_ids", (4,)) in clauses(query)

    def test_array_references_accept_lists_and_dedupe(self, builder):
        query = builder.build(normalize_params([
            ("occasionIds[]", "1"), ("occasionIds[]", "2"), ("occasionIds[]", "1"),
        ]))
        assert AnyOf("occasion_ids", (1, 2)) in clauses(query)

    def test_invalid_id_is_dropped_and_reported(self, builder):
        query = builder.build({"brandId": "abc", "materialIds": ["1", "x"]})
        assert not any(getattr(c, "field", None) == "brand_id" for c in clauses(query))
        assert AnyOf("material_ids", (1,)) in clauses(query)
        assert {w["parameter"] for w in query.warnings} == {"brandId", "materialIds"}


class TestRanges:

    def test_price_range_inclusive(self, builder):
        query = builder.build({"minPrice": "10", "maxPrice": "99.5"})
        assert Between("base_price", gte=10.0, lte=99.5) in clauses(query)

    def test_open_range(self, builder):
        query = builder.build({"minPrice": "100"})
        assert Between("base_price", gte=100.0, lte=None) in clauses(query)

    def test_malformed_bound_drops_only_itself(self, builder):
        query = builder.build({"minPrice": "cheap", "maxPrice": "50"})
        assert Between("base_price", gte=None, lte=50.0) in clauses(query)
        assert query.warnings == [
            {"parameter": "minPrice", "value": "cheap", "reason": "not a number"}
        ]

    def test_non_finite_numbers_are_rejected(self, builder):
        query = builder.build({"maxPrice": "inf"})
        assert not any(getattr(c, "field", None) == "base_price" for c in clauses(query))
        assert query.warnings[0]["parameter"] == "maxPrice"

    def test_other_ranges(self, builder):
        query = builder.build({
            "minSalePrice": "5", "maxStock": "10", "minRating": "4", "minSales": "1",
        })
        assert Between("sale_price", gte=5.0, lte=None) in clauses(query)
        assert Between("stock_quantity", gte=None, lte=10) in clauses(query)
        assert Between("rating_average", gte=4.0) in clauses(query)
        assert Between("sales_count", gte=1) in clauses(query)

    def test_created_window(self, builder):
        query = builder.build({"createdAfter": "2024-01-01", "createdBefore": "not-a-date"})
        assert Between("created_at", gte=datetime(2024, 1, 1), lte=None) in clauses(query)
        assert query.warnings[0]["parameter"] == "createdBefore"


class TestOtherParameters:

    def test_stock_status(self, builder):
        query = builder.build({"stockStatus": "out_of_stock"})
        assert Equals("stock_status", StockStatus.OUT_OF_STOCK) in clauses(query)

    def test_search_spans_text_fields(self, builder):
        query = builder.build({"search": "  Jacket "})
        assert TextSearch(SEARCH_FIELDS, "Jacket") in clauses(query)
        assert set(SEARCH_FIELDS) == {"name", "description", "short_description", "sku"}

    def test_blank_search_is_no_constraint(self, builder):
        query = builder.build({"search": "   "})
        assert not any(isinstance(c, TextSearch) for c in clauses(query))

    def test_tags(self, builder):
        query = builder.build({"tags": ["summer", " ", "sale", "summer"]})
        assert AnyOf("tags", ("summer", "sale")) in clauses(query)


class TestLegacyAttributeClauses:

    def test_only_active_filter_ids_become_clauses(self, builder):
        params = normalize_params([("3", "red"), ("3", "blue"), ("5", "xl"), ("8", "ignored")])
        query = builder.build(params, attribute_filter_ids=[3, 5])
        matches = [c for c in clauses(query) if isinstance(c, AttributeMatch)]
        assert matches == [AttributeMatch(3, ("red", "blue")), AttributeMatch(5, ("xl",))]

    def test_numeric_keys_ignored_without_registry(self, builder):
        query = builder.build({"3": "red"})
        assert not any(isinstance(c, AttributeMatch) for c in clauses(query))

    def test_non_ascii_digit_keys_are_ignored(self, builder):
        query = builder.build({"²": "x", "٣": "y", "1": "z"}, attribute_filter_ids=[1, 2, 3])
        matches = [c for c in clauses(query) if isinstance(c, AttributeMatch)]
        assert matches == [AttributeMatch(1, ("z",))]


class TestSortAndPagination:

    @pytest.mark.parametrize("key", sorted(SORT_OPTIONS))
    def test_known_sort_keys(self, builder, key):
        query = builder.build({"sort": key})
        assert query.sort_key == key
        assert query.sort == SORT_OPTIONS[key]

    def test_relevance_sort(self, builder):
        query = builder.build({"sort": "relevance"})
        assert query.warnings == []
        assert query.sort == (("rating_average", True), ("sales_count", True), ("views", True))

    def test_unknown_sort_falls_back(self, builder):
        query = builder.build({"sort": "cheapest-first"})
        assert query.sort_key == "newest"
        assert query.warnings[0]["parameter"] == "sort"

    def test_page_and_limit(self, builder):
        query = builder.build({"page": "3", "limit": "15"})
        assert (query.page, query.limit, query.skip) == (3, 15, 30)

    def test_limit_clamped(self, builder):
        assert builder.build({"limit": "1000"}).limit == 100
        assert builder.build({"limit": "0"}).limit == 1
        assert builder.build({"page": "-2"}).page == 1

    def test_malformed_page_uses_default(self, builder):
        query = builder.build({"page": "two"})
        assert query.page == 1
        assert query.warnings[0]["parameter"] == "page"

    def test_predicate_is_a_conjunction(self, builder):
        query = builder.build({"categoryId": "1"})
        assert isinstance(query.predicate, AllOf)


class TestWithoutField:

    def test_drops_only_clauses_on_the_field(self, builder):
        query = builder.build({"brandId": "4", "materialIds": ["1", "2"], "minPrice": "10"})
        remaining = query.predicate.without_field("brand_id").without_field("material_ids")
        assert Equals("brand_id", 4) not in remaining.clauses
        assert AnyOf("material_ids", (1, 2)) not in remaining.clauses
        assert Between("base_price", gte=10.0) in remaining.clauses
        assert Equals("status", ProductStatus.PUBLISHED) in remaining.clauses
