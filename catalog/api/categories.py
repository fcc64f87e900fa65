"""
Categories API (v3) - Admin manages the category tree, storefront reads it
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from catalog.database import get_db
from catalog.api.deps import get_current_admin
from catalog.core.pagination import compute_total_pages
from catalog.models.user import User
from catalog.schemas.category import CategoryCreate, CategoryUpdate, CategoryResponse
from catalog.services.category_service import category_service

router = APIRouter()


def _category(category) -> dict:
    return CategoryResponse.model_validate(category).to_json_dict()


@router.get("/")
async def get_categories(
    parent_id: Optional[int] = Query(None, alias="parentId"),
    level: Optional[int] = Query(None, ge=0),
    is_active: Optional[bool] = Query(True, alias="isActive"),
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    db: AsyncSession = Depends(get_db)
):
    """Get categories (public endpoint)"""
    categories, total = await category_service.list(
        db, parent_id=parent_id, level=level, is_active=is_active, search=search, page=page, limit=limit
    )
    return {
        "success": True,
        "categories": [_category(c) for c in categories],
        "total": total,
        "page": page,
        "pages": compute_total_pages(total, limit),
    }


@router.get("/tree")
async def get_category_tree(
    is_active: Optional[bool] = Query(True, alias="isActive"),
    db: AsyncSession = Depends(get_db)
):
    """Nested category tree ordered by sortOrder, then name"""
    return {"success": True, "categories": await category_service.tree(db, is_active=is_active)}


@router.get("/slug/{slug}")
async def get_category_by_slug(
    slug: str,
    db: AsyncSession = Depends(get_db)
):
    category = await category_service.get_by_slug(db, slug)
    return {"success": True, "category": _category(category)}


@router.get("/{category_id}")
async def get_category(
    category_id: int,
    db: AsyncSession = Depends(get_db)
):
    """Get single category"""
    category = await category_service.get_by_id(db, category_id)
    return {"success": True, "category": _category(category)}


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_category(
    category_data: CategoryCreate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Create new category (Admin only)
    level and path are computed from the parent
    """
    category = await category_service.create(db, category_data.model_dump())
    return {"success": True, "category": _category(category)}


@router.put("/{category_id}")
async def update_category(
    category_id: int,
    category_data: CategoryUpdate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Update category (Admin only)
    Renaming or re-parenting recomputes path for the whole subtree
    """
    category = await category_service.update(db, category_id, category_data.model_dump(exclude_unset=True))
    return {"success": True, "category": _category(category)}


@router.delete("/{category_id}")
async def delete_category(
    category_id: int,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Delete category (Admin only)

    NOTE: Refused while the category has subcategories. Products keep their categoryId.
    """
    await category_service.delete(db, category_id)
    return {"success": True, "message": "Category deleted successfully"}
