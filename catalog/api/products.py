"""
Products API (v2)

Listing parameters are read straight from the query string and handed to the
filter query builder, so repeated keys (materialIds=1&materialIds=2) and
`key[]` forms both work.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from typing import Dict, List

from catalog.config import settings
from catalog.database import get_db, get_session_factory
from catalog.api.deps import get_current_admin, get_filter_defaults, get_query_params
from catalog.models.user import User
from catalog.schemas.product import ProductCreate, ProductUpdate
from catalog.services.filter_query_builder import FilterDefaults, FilterQueryBuilder
from catalog.services.product_service import product_service

router = APIRouter()


def _product_payload(data: dict, images) -> dict:
    """Store images with camelCase keys, as clients send them"""
    if images is not None:
        data["images"] = [image.to_json_dict() for image in images]
    return data


@router.get("/")
async def list_products(
    params: Dict[str, List[str]] = Depends(get_query_params),
    defaults: FilterDefaults = Depends(get_filter_defaults),
    session_factory: async_sessionmaker = Depends(get_session_factory),
    db: AsyncSession = Depends(get_db)
):
    """
    Filtered, sorted, paginated product listing.
    With categoryId the response also carries per-value facet counts in `filters`.
    """
    body, _ = await product_service.listing(db, session_factory, defaults, params)
    return body


@router.get("/search")
async def search_products(
    params: Dict[str, List[str]] = Depends(get_query_params),
    defaults: FilterDefaults = Depends(get_filter_defaults),
    session_factory: async_sessionmaker = Depends(get_session_factory),
    db: AsyncSession = Depends(get_db)
):
    """Listing plus category suggestions for the search term"""
    body, _ = await product_service.listing(db, session_factory, defaults, params, with_facets=False)
    term = next((v for v in params.get("search", []) if v.strip()), "")
    body["suggestions"] = await product_service.search_suggestions(
        db, term, defaults, limit=settings.SUGGESTIONS_LIMIT
    )
    return body


async def _highlight_response(db: AsyncSession, products) -> dict:
    return {"success": True, "products": await product_service.serialize(db, products)}


def _limit(params: Dict[str, List[str]], defaults: FilterDefaults) -> int:
    query = FilterQueryBuilder(defaults).build({"limit": params.get("limit", [str(settings.HIGHLIGHT_LIMIT)])})
    return query.limit


@router.get("/trending")
async def trending_products(
    params: Dict[str, List[str]] = Depends(get_query_params),
    defaults: FilterDefaults = Depends(get_filter_defaults),
    db: AsyncSession = Depends(get_db)
):
    """Products that sold at least once, by sales then views"""
    products = await product_service.trending(db, defaults, _limit(params, defaults))
    return await _highlight_response(db, products)


@router.get("/new")
async def new_products(
    params: Dict[str, List[str]] = Depends(get_query_params),
    defaults: FilterDefaults = Depends(get_filter_defaults),
    db: AsyncSession = Depends(get_db)
):
    products = await product_service.new_arrivals(
        db, defaults, settings.NEW_PRODUCTS_DAYS, _limit(params, defaults)
    )
    return await _highlight_response(db, products)


@router.get("/sale")
async def sale_products(
    params: Dict[str, List[str]] = Depends(get_query_params),
    defaults: FilterDefaults = Depends(get_filter_defaults),
    db: AsyncSession = Depends(get_db)
):
    products = await product_service.on_sale(db, defaults, _limit(params, defaults))
    return await _highlight_response(db, products)


@router.get("/best-selling")
async def best_selling_products(
    params: Dict[str, List[str]] = Depends(get_query_params),
    defaults: FilterDefaults = Depends(get_filter_defaults),
    db: AsyncSession = Depends(get_db)
):
    products = await product_service.best_selling(db, defaults, _limit(params, defaults))
    return await _highlight_response(db, products)


@router.get("/top-rated")
async def top_rated_products(
    params: Dict[str, List[str]] = Depends(get_query_params),
    defaults: FilterDefaults = Depends(get_filter_defaults),
    db: AsyncSession = Depends(get_db)
):
    """Products with at least 5 ratings, best average first"""
    products = await product_service.top_rated(db, defaults, _limit(params, defaults))
    return await _highlight_response(db, products)


@router.get("/filters/{category_id}")
async def get_filter_options(
    category_id: int,
    params: Dict[str, List[str]] = Depends(get_query_params),
    defaults: FilterDefaults = Depends(get_filter_defaults),
    session_factory: async_sessionmaker = Depends(get_session_factory),
    db: AsyncSession = Depends(get_db)
):
    """Facets, price range and rating distribution for a category"""
    return await product_service.filter_options(db, session_factory, defaults, category_id, params)


@router.get("/slug/{slug}")
async def get_product_by_slug(
    slug: str,
    defaults: FilterDefaults = Depends(get_filter_defaults),
    db: AsyncSession = Depends(get_db)
):
    """Storefront product page: published, public products only"""
    product = await product_service.get_by_slug(db, slug, defaults)
    await product_service.increment_views(db, product)
    related = await product_service.related(db, product, defaults, settings.RELATED_PRODUCTS_LIMIT)
    serialized = await product_service.serialize(db, [product, *related])
    return {"success": True, "product": serialized[0], "relatedProducts": serialized[1:]}


@router.get("/{product_id}")
async def get_product(
    product_id: int,
    defaults: FilterDefaults = Depends(get_filter_defaults),
    db: AsyncSession = Depends(get_db)
):
    product = await product_service.get_by_id(db, product_id)
    await product_service.increment_views(db, product)
    related = await product_service.related(db, product, defaults, settings.RELATED_PRODUCTS_LIMIT)
    serialized = await product_service.serialize(db, [product, *related])
    return {"success": True, "product": serialized[0], "relatedProducts": serialized[1:]}


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_product(
    product_data: ProductCreate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Create product (Admin only); references are validated against the registry"""
    data = _product_payload(product_data.model_dump(), product_data.images)
    product = await product_service.create(db, data)
    serialized = await product_service.serialize(db, [product])
    return {"success": True, "product": serialized[0]}


@router.put("/{product_id}")
async def update_product(
    product_id: int,
    product_data: ProductUpdate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Partial update (Admin only)"""
    data = _product_payload(product_data.model_dump(exclude_unset=True), product_data.images)
    product = await product_service.update(db, product_id, data)
    serialized = await product_service.serialize(db, [product])
    return {"success": True, "product": serialized[0]}


@router.delete("/{product_id}")
async def delete_product(
    product_id: int,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    await product_service.delete(db, product_id)
    return {"success": True, "message": "Product deleted successfully"}
