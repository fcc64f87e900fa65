"""
Attribute Registry

CRUD over the per-dimension attribute tables plus the category-applicability
rule: a scoped value applies to a category when its scope is empty or contains
that category. Unscoped dimensions apply everywhere.
"""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from sqlalchemy.sql import ColumnElement
from pydantic.alias_generators import to_camel
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple
import json
import logging

from catalog.core.exceptions import CatalogError, NotFoundError, ValidationError
from catalog.core.slug import slugify
from catalog.models.category import ProductCategory
from catalog.services.category_service import category_service
from catalog.services.dimensions import (
    CATEGORY_ATTRIBUTE_DIMENSIONS,
    DIMENSIONS,
    Dimension,
    spec_for,
)

logger = logging.getLogger(__name__)

INITIAL_ATTRIBUTES_FILE = Path(__file__).resolve().parent.parent / "data" / "initial_attributes.json"

_PROTECTED_FIELDS = {"id", "slug", "created_at", "updated_at", "applicable_categories"}


def applicability_clause(dimension: Dimension, category_id: int) -> Optional[ColumnElement]:
    """WHERE clause for values applicable to a category; None for unscoped dimensions"""
    spec = spec_for(dimension)
    if not spec.scoped:
        return None
    scope = spec.model.applicable_categories
    return or_(~scope.any(), scope.any(ProductCategory.id == category_id))


class AttributeService:
    """Attribute values of every dimension, dispatched through DIMENSIONS"""

    @staticmethod
    async def list(
        db: AsyncSession,
        dimension: Dimension,
        is_active: Optional[bool] = True,
        category_id: Optional[int] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 50,
    ) -> Tuple[list, int]:
        model = spec_for(dimension).model
        query = select(model)
        if is_active is not None:
            query = query.where(model.is_active == is_active)
        if category_id is not None:
            clause = applicability_clause(dimension, category_id)
            if clause is not None:
                query = query.where(clause)
        if search:
            query = query.where(
                or_(
                    model.name.icontains(search, autoescape=True),
                    model.description.icontains(search, autoescape=True),
                )
            )

        total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0

        query = query.order_by(model.sort_order, model.name).offset((page - 1) * limit).limit(limit)
        result = await db.execute(query)
        return list(result.scalars().all()), total

    @staticmethod
    async def list_for_category(db: AsyncSession, dimension: Dimension, category_id: int) -> list:
        """Active values applicable to a category, in presentation order"""
        model = spec_for(dimension).model
        query = select(model).where(model.is_active.is_(True))
        clause = applicability_clause(dimension, category_id)
        if clause is not None:
            query = query.where(clause)
        result = await db.execute(query.order_by(model.sort_order, model.name))
        return list(result.scalars().all())

    @staticmethod
    async def attributes_for_category(db: AsyncSession, category_id: int) -> Dict[Dimension, list]:
        if not await category_service.exists(db, category_id):
            raise NotFoundError("Category not found")
        return {
            dimension: await AttributeService.list_for_category(db, dimension, category_id)
            for dimension in CATEGORY_ATTRIBUTE_DIMENSIONS
        }

    @staticmethod
    async def get_by_id(db: AsyncSession, dimension: Dimension, attribute_id: int):
        spec = spec_for(dimension)
        value = await db.get(spec.model, attribute_id)
        if not value:
            raise NotFoundError(f"{spec.label} not found")
        return value

    @staticmethod
    async def get_by_slug(db: AsyncSession, dimension: Dimension, slug: str):
        spec = spec_for(dimension)
        result = await db.execute(
            select(spec.model)
            .where(spec.model.slug == slug, spec.model.is_active.is_(True))
            .order_by(spec.model.id)
        )
        value = result.scalars().first()
        if not value:
            raise NotFoundError(f"{spec.label} not found")
        return value

    @staticmethod
    async def ensure_exists(
        db: AsyncSession,
        dimension: Dimension,
        ids: Iterable[int],
        category_id: Optional[int] = None,
    ) -> None:
        """
        Validate references written onto a product.
        With category_id, scoped values must also apply to that category.
        """
        ids = list(dict.fromkeys(ids))
        if not ids:
            return
        spec = spec_for(dimension)
        result = await db.execute(select(spec.model.id).where(spec.model.id.in_(ids)))
        found = set(result.scalars().all())
        missing = [i for i in ids if i not in found]
        if missing:
            raise ValidationError(f"Unknown {spec.label} id(s): {', '.join(map(str, missing))}")

        if category_id is not None and spec.scoped:
            result = await db.execute(
                select(spec.model.id).where(
                    spec.model.id.in_(ids), applicability_clause(dimension, category_id)
                )
            )
            applicable = set(result.scalars().all())
            outside = [i for i in ids if i not in applicable]
            if outside:
                raise ValidationError(
                    f"{spec.label} id(s) {', '.join(map(str, outside))} do not apply to category {category_id}"
                )

    @staticmethod
    async def _ensure_unique_slug(db: AsyncSession, dimension: Dimension, slug: str, exclude_id=None):
        spec = spec_for(dimension)
        query = select(spec.model.id).where(spec.model.slug == slug, spec.model.is_active.is_(True))
        if exclude_id is not None:
            query = query.where(spec.model.id != exclude_id)
        if (await db.execute(query)).first():
            raise ValidationError(f"{spec.label} with slug '{slug}' already exists")

    @staticmethod
    async def _load_scope(db: AsyncSession, dimension: Dimension, category_ids) -> Optional[List[ProductCategory]]:
        spec = spec_for(dimension)
        if category_ids is None:
            return None
        if not spec.scoped:
            if category_ids:
                raise ValidationError(f"{spec.label} values cannot be scoped to categories")
            return None
        ids = list(dict.fromkeys(category_ids))
        if not ids:
            return []
        result = await db.execute(select(ProductCategory).where(ProductCategory.id.in_(ids)))
        categories = list(result.scalars().all())
        missing = sorted(set(ids) - {c.id for c in categories})
        if missing:
            raise ValidationError(f"Unknown category id(s): {', '.join(map(str, missing))}")
        return categories

    @staticmethod
    def _apply_fields(value, data: dict) -> None:
        model = type(value)
        for field, field_value in data.items():
            if field in _PROTECTED_FIELDS or not hasattr(model, field):
                continue
            setattr(value, field, field_value)

    @staticmethod
    async def create(db: AsyncSession, dimension: Dimension, data: dict):
        spec = spec_for(dimension)
        name = (data.get("name") or "").strip()
        if not name:
            raise ValidationError("Name is required")
        for field in spec.required_fields:
            if data.get(field) in (None, ""):
                raise ValidationError(f"{to_camel(field)} is required for {spec.label}")

        slug = slugify(name)
        if not slug:
            raise ValidationError("Name must contain letters or digits")
        if data.get("is_active", True):
            await AttributeService._ensure_unique_slug(db, dimension, slug)

        scope = await AttributeService._load_scope(db, dimension, data.get("applicable_categories"))

        value = spec.model(name=name, slug=slug)
        AttributeService._apply_fields(value, {k: v for k, v in data.items() if k != "name"})
        if scope is not None:
            value.applicable_categories = scope

        db.add(value)
        await db.commit()
        await db.refresh(value)
        logger.info(f"{spec.label} created: {value.slug} (id={value.id})")
        return value

    @staticmethod
    async def update(db: AsyncSession, dimension: Dimension, attribute_id: int, data: dict):
        """Partial update; a new name regenerates the slug"""
        spec = spec_for(dimension)
        value = await AttributeService.get_by_id(db, dimension, attribute_id)

        for field in spec.required_fields:
            if field in data and data[field] in (None, ""):
                raise ValidationError(f"{to_camel(field)} cannot be empty for {spec.label}")

        slug = value.slug
        if data.get("name") is not None:
            name = data["name"].strip()
            if not name:
                raise ValidationError("Name is required")
            slug = slugify(name)
            if not slug:
                raise ValidationError("Name must contain letters or digits")
            data = {**data, "name": name}

        becomes_active = data.get("is_active")
        if becomes_active is None:
            becomes_active = value.is_active
        if becomes_active:
            await AttributeService._ensure_unique_slug(db, dimension, slug, exclude_id=value.id)

        scope = await AttributeService._load_scope(db, dimension, data.get("applicable_categories"))

        AttributeService._apply_fields(
            value, {k: v for k, v in data.items() if v is not None or k in ("description",)}
        )
        value.slug = slug
        if scope is not None:
            value.applicable_categories = scope

        await db.commit()
        await db.refresh(value)
        logger.info(f"{spec.label} updated: {value.slug} (id={value.id})")
        return value

    @staticmethod
    async def delete(db: AsyncSession, dimension: Dimension, attribute_id: int) -> None:
        """Hard delete; products referencing the value keep a dangling id"""
        spec = spec_for(dimension)
        value = await AttributeService.get_by_id(db, dimension, attribute_id)
        await db.delete(value)
        await db.commit()
        logger.info(f"{spec.label} deleted: id={attribute_id}")

    @staticmethod
    def load_initial_data(path: Path = INITIAL_ATTRIBUTES_FILE) -> dict:
        with open(path, encoding="utf-8") as f:
            return json.load(f)

    @staticmethod
    async def initialize(db: AsyncSession, data: Optional[dict] = None) -> Dict[str, dict]:
        """
        Idempotent bulk seed. Entries whose slug already exists in their
        dimension are skipped; invalid entries are reported, not raised.
        Scoped entries name their categories by slug in `applicableCategories`.
        """
        if data is None:
            data = AttributeService.load_initial_data()

        results: Dict[str, dict] = {"categories": {"created": 0, "skipped": 0, "errors": []}}
        for dimension in DIMENSIONS:
            results[dimension.value] = {"created": 0, "skipped": 0, "errors": []}

        for item in data.get("categories", []):
            report = results["categories"]
            slug = item.get("slug") or slugify(item.get("name") or "")
            existing = await db.execute(select(ProductCategory.id).where(ProductCategory.slug == slug))
            if existing.first():
                report["skipped"] += 1
                continue
            try:
                parent_id = None
                if item.get("parent"):
                    parent_id = (await category_service.get_by_slug(db, item["parent"])).id
                await category_service.create(
                    db,
                    {
                        "name": item.get("name"),
                        "description": item.get("description"),
                        "sort_order": item.get("sortOrder", 0),
                        "parent_id": parent_id,
                    },
                )
                report["created"] += 1
            except CatalogError as e:
                report["errors"].append({"item": item.get("name") or slug, "error": e.message})

        for dimension, spec in DIMENSIONS.items():
            report = results[dimension.value]
            for item in data.get(dimension.value, []):
                slug = slugify(item.get("name") or "")
                existing = await db.execute(select(spec.model.id).where(spec.model.slug == slug))
                if existing.first():
                    report["skipped"] += 1
                    continue
                try:
                    payload = {_snake(k): v for k, v in item.items() if k != "applicableCategories"}
                    if spec.scoped and item.get("applicableCategories"):
                        payload["applicable_categories"] = [
                            (await category_service.get_by_slug(db, category_slug)).id
                            for category_slug in item["applicableCategories"]
                        ]
                    await AttributeService.create(db, dimension, payload)
                    report["created"] += 1
                except CatalogError as e:
                    report["errors"].append({"item": item.get("name") or slug, "error": e.message})

        created = sum(r["created"] for r in results.values())
        skipped = sum(r["skipped"] for r in results.values())
        logger.info(f"Attribute initialization finished: created={created}, skipped={skipped}")
        return results


def _snake(key: str) -> str:
    return "".join("_" + c.lower() if c.isupper() else c for c in key)


attribute_service = AttributeService()
