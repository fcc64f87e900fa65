"""
Products API (v3) - category-slug entry point to the v2 listing
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from typing import Dict, List

from catalog.database import get_db, get_session_factory
from catalog.api.deps import get_filter_defaults, get_query_params
from catalog.services.filter_query_builder import FilterDefaults
from catalog.services.product_service import product_service

router = APIRouter()


@router.get("/category/{slug}")
async def get_products_by_category_slug(
    slug: str,
    params: Dict[str, List[str]] = Depends(get_query_params),
    defaults: FilterDefaults = Depends(get_filter_defaults),
    session_factory: async_sessionmaker = Depends(get_session_factory),
    db: AsyncSession = Depends(get_db)
):
    """Listing for the category with this slug, facets included"""
    return await product_service.by_category_slug(db, session_factory, defaults, slug, params)
