"""
Resolve a product's weak attribute references for responses.

References are plain ids without foreign keys, so a value may have been
deleted since the product was written. Such an id resolves to an explicit
"unknown" marker instead of failing the request.
"""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from pydantic.alias_generators import to_camel
from typing import Dict, Iterable, List
import logging

from catalog.models.category import ProductCategory
from catalog.models.product import Product
from catalog.schemas.attribute import attribute_to_dict
from catalog.schemas.category import CategoryResponse
from catalog.services.dimensions import DIMENSIONS, Dimension

logger = logging.getLogger(__name__)


def unknown_reference(ref_id: int) -> dict:
    return {"id": ref_id, "name": None, "unknown": True}


def _reference_key(dimension: Dimension) -> str:
    spec = DIMENSIONS[dimension]
    if spec.is_array:
        return dimension.value
    return to_camel(spec.product_field[: -len("_id")])


class ReferenceResolver:
    """Batch lookups: one query per dimension for the whole product page"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _load(self, model, ids: Iterable[int]) -> Dict[int, object]:
        ids = {i for i in ids if i is not None}
        if not ids:
            return {}
        result = await self.db.execute(select(model).where(model.id.in_(ids)))
        return {row.id: row for row in result.scalars().all()}

    def _lookup(self, found: Dict[int, object], ref_id, to_dict, label: str, product_id: int):
        if ref_id is None:
            return None
        row = found.get(ref_id)
        if row is None:
            logger.warning(f"Product {product_id} references missing {label} {ref_id}")
            return unknown_reference(ref_id)
        return to_dict(row)

    async def resolve(self, products: List[Product]) -> Dict[int, dict]:
        """product id -> {category, brand, ..., materials, occasions}"""
        categories = await self._load(ProductCategory, (p.category_id for p in products))

        loaded = {}
        for dimension, spec in DIMENSIONS.items():
            if spec.is_array:
                ids = (i for p in products for i in getattr(p, spec.product_field))
            else:
                ids = (getattr(p, spec.product_field) for p in products)
            loaded[dimension] = await self._load(spec.model, ids)

        def category_to_dict(category):
            return CategoryResponse.model_validate(category).to_json_dict()

        resolved = {}
        for product in products:
            refs = {
                "category": self._lookup(
                    categories, product.category_id, category_to_dict, "Category", product.id
                )
            }
            for dimension, spec in DIMENSIONS.items():
                key = _reference_key(dimension)
                if spec.is_array:
                    refs[key] = [
                        self._lookup(loaded[dimension], ref_id, attribute_to_dict, spec.label, product.id)
                        for ref_id in getattr(product, spec.product_field)
                    ]
                else:
                    refs[key] = self._lookup(
                        loaded[dimension],
                        getattr(product, spec.product_field),
                        attribute_to_dict,
                        spec.label,
                        product.id,
                    )
            resolved[product.id] = refs
        return resolved
