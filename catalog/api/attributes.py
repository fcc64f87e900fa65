"""
Attributes API (v2) - one router for every dimension

Public reads; admin writes. `{dimension}` is the URL segment of a dimension,
e.g. colors, sizes, shoe-heights, collar-types.
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from catalog.config import settings
from catalog.database import get_db
from catalog.api.deps import get_current_admin
from catalog.core.pagination import compute_total_pages
from catalog.models.user import User
from catalog.schemas.attribute import AttributeCreate, AttributeUpdate, attribute_to_dict
from catalog.services.attribute_service import attribute_service
from catalog.services.dimensions import Dimension, parse_dimension, spec_for

router = APIRouter()


def _singular(dimension: Dimension) -> str:
    label = spec_for(dimension).label
    return label[0].lower() + label[1:]


@router.get("/category/{category_id}")
@router.get("/category/{category_id}/all", include_in_schema=False)
async def get_attributes_for_category(
    category_id: int,
    db: AsyncSession = Depends(get_db)
):
    """All non-brand dimensions with the active values applicable to a category"""
    attributes = await attribute_service.attributes_for_category(db, category_id)
    return {
        "success": True,
        **{dimension.value: [attribute_to_dict(v) for v in values] for dimension, values in attributes.items()},
    }


@router.post("/initialize")
async def initialize_attributes(
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Seed categories and attribute values from the bundled data (Admin only)"""
    results = await attribute_service.initialize(db)
    return {"success": True, "message": "Attributes initialized", "results": results}


@router.get("/{dimension}")
async def list_attributes(
    dimension: str,
    is_active: Optional[bool] = Query(True, alias="isActive"),
    category: Optional[int] = Query(None, alias="categoryId"),
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.ATTRIBUTE_PAGE_SIZE, ge=1, le=500),
    db: AsyncSession = Depends(get_db)
):
    """List values of a dimension ordered by sortOrder, then name"""
    dim = parse_dimension(dimension)
    values, total = await attribute_service.list(
        db, dim, is_active=is_active, category_id=category, search=search, page=page, limit=limit
    )
    return {
        "success": True,
        dim.value: [attribute_to_dict(v) for v in values],
        "total": total,
        "page": page,
        "pages": compute_total_pages(total, limit),
    }


@router.get("/{dimension}/slug/{slug}")
async def get_attribute_by_slug(
    dimension: str,
    slug: str,
    db: AsyncSession = Depends(get_db)
):
    dim = parse_dimension(dimension)
    value = await attribute_service.get_by_slug(db, dim, slug)
    return {"success": True, _singular(dim): attribute_to_dict(value)}


@router.get("/{dimension}/category/{category_id}")
async def list_attributes_for_category(
    dimension: str,
    category_id: int,
    db: AsyncSession = Depends(get_db)
):
    """Active values of one dimension applicable to a category"""
    dim = parse_dimension(dimension)
    values = await attribute_service.list_for_category(db, dim, category_id)
    return {"success": True, dim.value: [attribute_to_dict(v) for v in values]}


@router.get("/{dimension}/{attribute_id}")
async def get_attribute(
    dimension: str,
    attribute_id: int,
    db: AsyncSession = Depends(get_db)
):
    dim = parse_dimension(dimension)
    value = await attribute_service.get_by_id(db, dim, attribute_id)
    return {"success": True, _singular(dim): attribute_to_dict(value)}


@router.post("/{dimension}", status_code=status.HTTP_201_CREATED)
async def create_attribute(
    dimension: str,
    attribute_data: AttributeCreate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Create attribute value (Admin only); slug is derived from name"""
    dim = parse_dimension(dimension)
    value = await attribute_service.create(db, dim, attribute_data.model_dump(exclude_unset=True))
    return {"success": True, _singular(dim): attribute_to_dict(value)}


@router.put("/{dimension}/{attribute_id}")
async def update_attribute(
    dimension: str,
    attribute_id: int,
    attribute_data: AttributeUpdate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Partial update (Admin only); a new name regenerates the slug"""
    dim = parse_dimension(dimension)
    value = await attribute_service.update(
        db, dim, attribute_id, attribute_data.model_dump(exclude_unset=True)
    )
    return {"success": True, _singular(dim): attribute_to_dict(value)}


@router.delete("/{dimension}/{attribute_id}")
async def delete_attribute(
    dimension: str,
    attribute_id: int,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Hard delete (Admin only); products keep dangling references"""
    dim = parse_dimension(dimension)
    await attribute_service.delete(db, dim, attribute_id)
    return {"success": True, "message": f"{spec_for(dim).label} deleted successfully"}
