"""Category hierarchy: CRUD, level/path maintenance and tree building"""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, delete
from typing import List, Optional, Tuple
import logging

from catalog.core.exceptions import NotFoundError, ValidationError
from catalog.core.slug import slugify
from catalog.models.attributes import SCOPE_TABLES
from catalog.models.category import ProductCategory
from catalog.models.filter import FilterGroup
from catalog.schemas.category import CategoryResponse

logger = logging.getLogger(__name__)

_WRITABLE_FIELDS = ("name", "description", "image", "parent_id", "sort_order", "is_active")


class CategoryService:
    """Admin-managed category tree"""

    @staticmethod
    async def list(
        db: AsyncSession,
        parent_id: Optional[int] = None,
        level: Optional[int] = None,
        is_active: Optional[bool] = True,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 50,
    ) -> Tuple[List[ProductCategory], int]:
        query = select(ProductCategory)
        if is_active is not None:
            query = query.where(ProductCategory.is_active == is_active)
        if parent_id is not None:
            query = query.where(ProductCategory.parent_id == parent_id)
        if level is not None:
            query = query.where(ProductCategory.level == level)
        if search:
            query = query.where(
                ProductCategory.name.icontains(search, autoescape=True)
                | ProductCategory.description.icontains(search, autoescape=True)
            )

        total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0

        query = query.order_by(ProductCategory.sort_order, ProductCategory.name)
        query = query.offset((page - 1) * limit).limit(limit)
        result = await db.execute(query)
        return list(result.scalars().all()), total

    @staticmethod
    async def get_by_id(db: AsyncSession, category_id: int) -> ProductCategory:
        category = await db.get(ProductCategory, category_id)
        if not category:
            raise NotFoundError("Category not found")
        return category

    @staticmethod
    async def get_by_slug(db: AsyncSession, slug: str) -> ProductCategory:
        result = await db.execute(
            select(ProductCategory).where(
                ProductCategory.slug == slug, ProductCategory.is_active.is_(True)
            )
        )
        category = result.scalar_one_or_none()
        if not category:
            raise NotFoundError("Category not found")
        return category

    @staticmethod
    async def exists(db: AsyncSession, category_id: int) -> bool:
        result = await db.execute(select(ProductCategory.id).where(ProductCategory.id == category_id))
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def _ensure_unique_slug(db: AsyncSession, slug: str, exclude_id: Optional[int] = None):
        query = select(ProductCategory.id).where(ProductCategory.slug == slug)
        if exclude_id is not None:
            query = query.where(ProductCategory.id != exclude_id)
        if (await db.execute(query)).first():
            raise ValidationError(f"Category with slug '{slug}' already exists")

    @staticmethod
    async def _place(db: AsyncSession, category: ProductCategory, parent_id: Optional[int]):
        """Set parent_id, level and path from the parent (root when parent_id is None)"""
        if parent_id is None:
            category.parent_id = None
            category.level = 0
            category.path = category.slug
            return

        parent = await db.get(ProductCategory, parent_id)
        if not parent:
            raise ValidationError("Parent category not found")
        if category.id is not None:
            if parent.id == category.id:
                raise ValidationError("Category cannot be its own parent")
            if category.path and (parent.path + "/").startswith(category.path + "/"):
                raise ValidationError("Category cannot be moved under its own descendant")

        category.parent_id = parent.id
        category.level = parent.level + 1
        category.path = f"{parent.path}/{category.slug}"

    @staticmethod
    async def create(db: AsyncSession, data: dict) -> ProductCategory:
        name = (data.get("name") or "").strip()
        if not name:
            raise ValidationError("Name is required")
        slug = slugify(name)
        if not slug:
            raise ValidationError("Name must contain letters or digits")
        await CategoryService._ensure_unique_slug(db, slug)

        category = ProductCategory(
            name=name,
            slug=slug,
            description=data.get("description"),
            image=data.get("image"),
            sort_order=data.get("sort_order") or 0,
            is_active=data.get("is_active", True),
        )
        await CategoryService._place(db, category, data.get("parent_id"))

        db.add(category)
        await db.commit()
        await db.refresh(category)
        logger.info(f"Category created: {category.path} (id={category.id})")
        return category

    @staticmethod
    async def update(db: AsyncSession, category_id: int, data: dict) -> ProductCategory:
        category = await CategoryService.get_by_id(db, category_id)
        old_path, old_level = category.path, category.level

        data = {k: v for k, v in data.items() if k in _WRITABLE_FIELDS}
        relocate = False

        if data.get("name") is not None:
            name = data.pop("name").strip()
            if not name:
                raise ValidationError("Name is required")
            slug = slugify(name)
            if not slug:
                raise ValidationError("Name must contain letters or digits")
            await CategoryService._ensure_unique_slug(db, slug, exclude_id=category.id)
            category.name = name
            relocate = relocate or slug != category.slug
            category.slug = slug

        parent_id = category.parent_id
        if "parent_id" in data:
            parent_id = data.pop("parent_id")
            relocate = relocate or parent_id != category.parent_id

        for field, value in data.items():
            if value is None and field in ("sort_order", "is_active"):
                continue
            setattr(category, field, value)

        if relocate:
            await CategoryService._place(db, category, parent_id)
            await CategoryService._move_descendants(db, old_path, old_level, category)

        await db.commit()
        await db.refresh(category)
        logger.info(f"Category updated: {category.path} (id={category.id})")
        return category

    @staticmethod
    async def _move_descendants(db: AsyncSession, old_path: str, old_level: int, category: ProductCategory):
        prefix = old_path + "/"
        result = await db.execute(
            select(ProductCategory).where(ProductCategory.path.startswith(prefix, autoescape=True))
        )
        level_delta = category.level - old_level
        for child in result.scalars().all():
            child.path = category.path + "/" + child.path[len(prefix):]
            child.level = child.level + level_delta

    @staticmethod
    async def delete(db: AsyncSession, category_id: int) -> None:
        """Refuses while children or legacy filter groups exist; products keep their categoryId"""
        category = await CategoryService.get_by_id(db, category_id)

        children = (
            await db.execute(
                select(func.count(ProductCategory.id)).where(ProductCategory.parent_id == category_id)
            )
        ).scalar() or 0
        if children:
            raise ValidationError(f"Cannot delete category. It has {children} subcategory(ies).")

        groups = (
            await db.execute(select(func.count(FilterGroup.id)).where(FilterGroup.category_id == category_id))
        ).scalar() or 0
        if groups:
            raise ValidationError(f"Cannot delete category. It is used by {groups} filter group(s).")

        for table in SCOPE_TABLES:
            await db.execute(delete(table).where(table.c.category_id == category_id))
        await db.delete(category)
        await db.commit()
        logger.info(f"Category deleted: {category.path} (id={category_id})")

    @staticmethod
    async def tree(db: AsyncSession, is_active: Optional[bool] = True) -> List[dict]:
        query = select(ProductCategory).order_by(
            ProductCategory.level, ProductCategory.sort_order, ProductCategory.name
        )
        if is_active is not None:
            query = query.where(ProductCategory.is_active == is_active)
        categories = (await db.execute(query)).scalars().all()

        nodes = {}
        roots = []
        for category in categories:
            node = CategoryResponse.model_validate(category).to_json_dict()
            node["children"] = []
            nodes[category.id] = node
            parent = nodes.get(category.parent_id)
            if parent is not None:
                parent["children"].append(node)
            else:
                # Parent missing or filtered out: show as a root
                roots.append(node)
        return roots


category_service = CategoryService()
