"""
Tests for pagination maths
"""
from catalog.core.pagination import compute_skip, compute_total_pages


class TestPagination:

    def test_total_pages_rounds_up(self):
        assert compute_total_pages(45, 20) == 3
        assert compute_total_pages(40, 20) == 2
        assert compute_total_pages(1, 20) == 1

    def test_empty_result_has_no_pages(self):
        assert compute_total_pages(0, 20) == 0

    def test_skip(self):
        assert compute_skip(1, 20) == 0
        assert compute_skip(3, 20) == 40

    def test_guards_against_nonsense_input(self):
        assert compute_skip(0, 20) == 0
        assert compute_total_pages(10, 0) == 10


async def test_listing_pages(db, defaults, session_factory, make_product):
    """45 matching products: page 1 has 20, pages == 3, page 4 is empty"""
    from catalog.services.product_service import product_service

    for _ in range(45):
        await make_product()

    body, _ = await product_service.listing(
        db, session_factory, defaults, {"limit": "20"}, with_facets=False
    )
    assert body["total"] == 45
    assert body["pages"] == 3
    assert len(body["products"]) == 20

    body, _ = await product_service.listing(
        db, session_factory, defaults, {"limit": "20", "page": "3"}, with_facets=False
    )
    assert len(body["products"]) == 5

    body, _ = await product_service.listing(
        db, session_factory, defaults, {"limit": "20", "page": "4"}, with_facets=False
    )
    assert body["products"] == []
    assert body["total"] == 45
    assert body["pages"] == 3
    assert body["page"] == 4
