"""
Legacy filters API (v1): filter groups, filters and the attribute-id listing
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from typing import Dict, List, Optional

from catalog.database import get_db, get_session_factory
from catalog.api.deps import get_current_admin, get_filter_defaults, get_query_params
from catalog.models.user import User
from catalog.schemas.category import CategoryResponse
from catalog.schemas.filter import (
    FilterCreate,
    FilterGroupCreate,
    FilterGroupResponse,
    FilterGroupUpdate,
    FilterResponse,
    FilterUpdate,
)
from catalog.services.category_service import category_service
from catalog.services.filter_query_builder import FilterDefaults
from catalog.services.legacy_filter_service import legacy_filter_service
from catalog.services.product_service import product_service

group_router = APIRouter()
filter_router = APIRouter()
product_router = APIRouter()


def _group(group) -> dict:
    return FilterGroupResponse.model_validate(group).to_json_dict()


def _filter(item) -> dict:
    return FilterResponse.model_validate(item).to_json_dict()


# Filter groups

@group_router.get("/")
async def get_filter_groups(
    category_id: Optional[int] = None,
    db: AsyncSession = Depends(get_db)
):
    groups = await legacy_filter_service.list_groups(db, category_id=category_id)
    return {"success": True, "filterGroups": [_group(g) for g in groups]}


@group_router.get("/all")
async def get_all_filter_groups(
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Including inactive groups (Admin only)"""
    groups = await legacy_filter_service.list_groups(db, is_active=None)
    return {"success": True, "filterGroups": [_group(g) for g in groups]}


@group_router.get("/slug/{slug}")
async def get_filter_group_by_slug(slug: str, db: AsyncSession = Depends(get_db)):
    group = await legacy_filter_service.get_group_by_slug(db, slug)
    filters = await legacy_filter_service.filters_by_group(db, group.id)
    return {"success": True, "filterGroup": _group(group), "filters": [_filter(f) for f in filters]}


@group_router.get("/{group_id}")
async def get_filter_group(group_id: int, db: AsyncSession = Depends(get_db)):
    group = await legacy_filter_service.get_group(db, group_id)
    return {"success": True, "filterGroup": _group(group)}


@group_router.post("/", status_code=status.HTTP_201_CREATED)
async def create_filter_group(
    group_data: FilterGroupCreate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    group = await legacy_filter_service.create_group(db, group_data.model_dump())
    return {"success": True, "filterGroup": _group(group)}


@group_router.put("/{group_id}")
async def update_filter_group(
    group_id: int,
    group_data: FilterGroupUpdate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    group = await legacy_filter_service.update_group(db, group_id, group_data.model_dump(exclude_unset=True))
    return {"success": True, "filterGroup": _group(group)}


@group_router.patch("/{group_id}/toggle")
async def toggle_filter_group(
    group_id: int,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    group = await legacy_filter_service.toggle_group(db, group_id)
    state = "activated" if group.is_active else "deactivated"
    return {"success": True, "filterGroup": _group(group), "message": f"Filter group {state}"}


@group_router.delete("/{group_id}")
async def delete_filter_group(
    group_id: int,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    await legacy_filter_service.delete_group(db, group_id)
    return {"success": True, "message": "Filter group deleted"}


# Filters

@filter_router.get("/")
async def get_filters(db: AsyncSession = Depends(get_db)):
    filters = await legacy_filter_service.list_filters(db)
    return {"success": True, "filters": [_filter(f) for f in filters]}


@filter_router.get("/all")
async def get_all_filters(
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Including inactive filters (Admin only)"""
    filters = await legacy_filter_service.list_filters(db, is_active=None)
    return {"success": True, "filters": [_filter(f) for f in filters]}


@filter_router.get("/global")
async def get_global_filters(db: AsyncSession = Depends(get_db)):
    filters = await legacy_filter_service.global_filters(db)
    return {"success": True, "filters": [_filter(f) for f in filters]}


@filter_router.get("/group/{group_id}")
async def get_filters_by_group(group_id: int, db: AsyncSession = Depends(get_db)):
    filters = await legacy_filter_service.filters_by_group(db, group_id)
    return {"success": True, "filters": [_filter(f) for f in filters]}


@filter_router.get("/category/{category_id}")
async def get_filters_by_category(category_id: int, db: AsyncSession = Depends(get_db)):
    """Filters of the category's groups plus global filters"""
    category = await category_service.get_by_id(db, category_id)
    filters = await legacy_filter_service.filters_for_category(db, category.id)
    return {
        "success": True,
        "filters": [_filter(f) for f in filters],
        "category": CategoryResponse.model_validate(category).to_json_dict(),
    }


@filter_router.get("/slug/{slug}")
async def get_filter_by_slug(slug: str, db: AsyncSession = Depends(get_db)):
    item = await legacy_filter_service.get_filter_by_slug(db, slug)
    return {"success": True, "filter": _filter(item)}


@filter_router.get("/{filter_id}")
async def get_filter(filter_id: int, db: AsyncSession = Depends(get_db)):
    item = await legacy_filter_service.get_filter(db, filter_id)
    return {"success": True, "filter": _filter(item)}


@filter_router.post("/", status_code=status.HTTP_201_CREATED)
async def create_filter(
    filter_data: FilterCreate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    item = await legacy_filter_service.create_filter(db, filter_data.model_dump())
    return {"success": True, "filter": _filter(item)}


@filter_router.put("/{filter_id}")
async def update_filter(
    filter_id: int,
    filter_data: FilterUpdate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    item = await legacy_filter_service.update_filter(db, filter_id, filter_data.model_dump(exclude_unset=True))
    return {"success": True, "filter": _filter(item)}


@filter_router.patch("/{filter_id}/toggle")
async def toggle_filter(
    filter_id: int,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    item = await legacy_filter_service.toggle_filter(db, filter_id)
    state = "activated" if item.is_active else "deactivated"
    return {"success": True, "filter": _filter(item), "message": f"Filter {state}"}


@filter_router.delete("/{filter_id}")
async def delete_filter(
    filter_id: int,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Refused while products carry values for the filter"""
    await legacy_filter_service.delete_filter(db, filter_id)
    return {"success": True, "message": "Filter deleted"}


# Legacy product listing

@product_router.get("/")
async def list_products_by_attributes(
    params: Dict[str, List[str]] = Depends(get_query_params),
    defaults: FilterDefaults = Depends(get_filter_defaults),
    session_factory: async_sessionmaker = Depends(get_session_factory),
    db: AsyncSession = Depends(get_db)
):
    """
    Listing where every query key that is the id of an active filter selects
    products carrying one of the given values for that filter.
    """
    filter_ids = await legacy_filter_service.active_filter_ids(db)
    body, _ = await product_service.listing(
        db, session_factory, defaults, params, attribute_filter_ids=filter_ids, with_facets=False
    )
    return body
