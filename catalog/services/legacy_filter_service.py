"""
Legacy (v1) filter registry

Filter groups hang off categories; filters hang off groups or are global.
Active filter ids double as listing parameter names on GET /api/v1/products.
"""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from typing import List, Optional
import logging

from catalog.core.exceptions import NotFoundError, ValidationError
from catalog.core.slug import slugify
from catalog.models.filter import Filter, FilterGroup, ProductAttributeValue
from catalog.services.category_service import category_service

logger = logging.getLogger(__name__)

_GROUP_FIELDS = ("description", "category_id", "is_active", "sort_order")
_FILTER_FIELDS = ("type", "options", "filter_group_id", "is_global", "is_active", "sort_order")


def _slug_for(name: Optional[str]) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Name is required")
    slug = slugify(name)
    if not slug:
        raise ValidationError("Name must contain letters or digits")
    return slug


class LegacyFilterService:

    # Filter groups

    @staticmethod
    async def list_groups(
        db: AsyncSession, category_id: Optional[int] = None, is_active: Optional[bool] = True
    ) -> List[FilterGroup]:
        query = select(FilterGroup)
        if is_active is not None:
            query = query.where(FilterGroup.is_active == is_active)
        if category_id is not None:
            query = query.where(FilterGroup.category_id == category_id)
        result = await db.execute(query.order_by(FilterGroup.sort_order, FilterGroup.name))
        return list(result.scalars().all())

    @staticmethod
    async def get_group(db: AsyncSession, group_id: int) -> FilterGroup:
        group = await db.get(FilterGroup, group_id)
        if not group:
            raise NotFoundError("Filter group not found")
        return group

    @staticmethod
    async def get_group_by_slug(db: AsyncSession, slug: str) -> FilterGroup:
        result = await db.execute(
            select(FilterGroup).where(FilterGroup.slug == slug, FilterGroup.is_active.is_(True))
        )
        group = result.scalar_one_or_none()
        if not group:
            raise NotFoundError("Filter group not found")
        return group

    @staticmethod
    async def _ensure_group_slug_free(db: AsyncSession, slug: str, exclude_id: Optional[int] = None):
        query = select(FilterGroup.id).where(FilterGroup.slug == slug)
        if exclude_id is not None:
            query = query.where(FilterGroup.id != exclude_id)
        if (await db.execute(query)).first():
            raise ValidationError(f"Filter group with slug '{slug}' already exists")

    @staticmethod
    async def create_group(db: AsyncSession, data: dict) -> FilterGroup:
        slug = _slug_for(data.get("name"))
        await LegacyFilterService._ensure_group_slug_free(db, slug)
        if not await category_service.exists(db, data.get("category_id")):
            raise ValidationError(f"Unknown category id: {data.get('category_id')}")

        group = FilterGroup(name=data["name"].strip(), slug=slug)
        for field in _GROUP_FIELDS:
            if data.get(field) is not None:
                setattr(group, field, data[field])
        db.add(group)
        await db.commit()
        await db.refresh(group)
        logger.info(f"Filter group created: {group.slug} (id={group.id})")
        return group

    @staticmethod
    async def update_group(db: AsyncSession, group_id: int, data: dict) -> FilterGroup:
        group = await LegacyFilterService.get_group(db, group_id)
        if data.get("name") is not None:
            slug = _slug_for(data["name"])
            await LegacyFilterService._ensure_group_slug_free(db, slug, exclude_id=group.id)
            group.name = data["name"].strip()
            group.slug = slug
        if data.get("category_id") is not None and not await category_service.exists(db, data["category_id"]):
            raise ValidationError(f"Unknown category id: {data['category_id']}")
        for field in _GROUP_FIELDS:
            if data.get(field) is not None or (field == "description" and field in data):
                setattr(group, field, data[field])
        await db.commit()
        await db.refresh(group)
        logger.info(f"Filter group updated: {group.slug} (id={group.id})")
        return group

    @staticmethod
    async def delete_group(db: AsyncSession, group_id: int) -> None:
        group = await LegacyFilterService.get_group(db, group_id)
        filters = (
            await db.execute(select(func.count(Filter.id)).where(Filter.filter_group_id == group_id))
        ).scalar() or 0
        if filters:
            raise ValidationError(f"Cannot delete filter group. It has {filters} filter(s).")
        await db.delete(group)
        await db.commit()
        logger.info(f"Filter group deleted: id={group_id}")

    @staticmethod
    async def toggle_group(db: AsyncSession, group_id: int) -> FilterGroup:
        group = await LegacyFilterService.get_group(db, group_id)
        group.is_active = not group.is_active
        await db.commit()
        await db.refresh(group)
        return group

    # Filters

    @staticmethod
    async def list_filters(db: AsyncSession, is_active: Optional[bool] = True) -> List[Filter]:
        query = select(Filter)
        if is_active is not None:
            query = query.where(Filter.is_active == is_active)
            query = query.order_by(Filter.sort_order, Filter.name)
        else:
            query = query.order_by(Filter.is_active.desc(), Filter.sort_order, Filter.name)
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def get_filter(db: AsyncSession, filter_id: int) -> Filter:
        item = await db.get(Filter, filter_id)
        if not item:
            raise NotFoundError("Filter not found")
        return item

    @staticmethod
    async def get_filter_by_slug(db: AsyncSession, slug: str) -> Filter:
        result = await db.execute(
            select(Filter).where(Filter.slug == slug, Filter.is_active.is_(True)).order_by(Filter.id)
        )
        item = result.scalars().first()
        if not item:
            raise NotFoundError("Filter not found")
        return item

    @staticmethod
    async def filters_by_group(db: AsyncSession, group_id: int) -> List[Filter]:
        result = await db.execute(
            select(Filter)
            .where(Filter.filter_group_id == group_id, Filter.is_active.is_(True))
            .order_by(Filter.sort_order, Filter.name)
        )
        return list(result.scalars().all())

    @staticmethod
    async def global_filters(db: AsyncSession) -> List[Filter]:
        result = await db.execute(
            select(Filter)
            .where(Filter.is_global.is_(True), Filter.is_active.is_(True))
            .order_by(Filter.sort_order, Filter.name)
        )
        return list(result.scalars().all())

    @staticmethod
    async def filters_for_category(db: AsyncSession, category_id: int) -> List[Filter]:
        """Active filters of the category's active groups plus active global filters"""
        group_ids = select(FilterGroup.id).where(
            FilterGroup.category_id == category_id, FilterGroup.is_active.is_(True)
        )
        result = await db.execute(
            select(Filter)
            .where(
                or_(Filter.filter_group_id.in_(group_ids), Filter.is_global.is_(True)),
                Filter.is_active.is_(True),
            )
            .order_by(Filter.sort_order, Filter.name)
        )
        return list(result.scalars().all())

    @staticmethod
    async def active_filter_ids(db: AsyncSession) -> List[int]:
        result = await db.execute(select(Filter.id).where(Filter.is_active.is_(True)))
        return list(result.scalars().all())

    @staticmethod
    async def create_filter(db: AsyncSession, data: dict) -> Filter:
        slug = _slug_for(data.get("name"))
        await LegacyFilterService.get_group(db, data.get("filter_group_id"))

        item = Filter(name=data["name"].strip(), slug=slug)
        for field in _FILTER_FIELDS:
            if data.get(field) is not None:
                setattr(item, field, data[field])
        db.add(item)
        await db.commit()
        await db.refresh(item)
        logger.info(f"Filter created: {item.slug} (id={item.id})")
        return item

    @staticmethod
    async def update_filter(db: AsyncSession, filter_id: int, data: dict) -> Filter:
        item = await LegacyFilterService.get_filter(db, filter_id)
        if data.get("name") is not None:
            item.slug = _slug_for(data["name"])
            item.name = data["name"].strip()
        if data.get("filter_group_id") is not None:
            await LegacyFilterService.get_group(db, data["filter_group_id"])
        for field in _FILTER_FIELDS:
            if data.get(field) is not None:
                setattr(item, field, data[field])
        await db.commit()
        await db.refresh(item)
        logger.info(f"Filter updated: {item.slug} (id={item.id})")
        return item

    @staticmethod
    async def delete_filter(db: AsyncSession, filter_id: int) -> None:
        """Refuses while any product carries a value for the filter"""
        item = await LegacyFilterService.get_filter(db, filter_id)
        used = (
            await db.execute(
                select(func.count(func.distinct(ProductAttributeValue.product_id))).where(
                    ProductAttributeValue.filter_id == filter_id
                )
            )
        ).scalar() or 0
        if used:
            raise ValidationError(f"Cannot delete filter. It is used in {used} product(s).")
        await db.delete(item)
        await db.commit()
        logger.info(f"Filter deleted: id={filter_id}")

    @staticmethod
    async def toggle_filter(db: AsyncSession, filter_id: int) -> Filter:
        item = await LegacyFilterService.get_filter(db, filter_id)
        item.is_active = not item.is_active
        await db.commit()
        await db.refresh(item)
        return item


legacy_filter_service = LegacyFilterService()
