"""
Facet Counter

For a base predicate scoped to a category, counts for every applicable active
attribute value how many products match `base AND dimension == value`, one
count query per value. Constraints the base already places on the counted
dimension are dropped first, so selecting one value keeps its siblings listed.
Values with a zero count are dropped; order stays sortOrder then name.

Count queries fan out concurrently, gated by a semaphore, each in its own
session. Dimensions still running when the timeout expires are cancelled and
returned empty, and the result is flagged partial.
"""
from dataclasses import dataclass, field
from sqlalchemy import select, func, case
from sqlalchemy.ext.asyncio import async_sessionmaker
from typing import Dict, List, Optional
import asyncio
import logging

from catalog.core.predicates import AllOf, AnyOf, Equals
from catalog.models.product import Product
from catalog.schemas.attribute import attribute_to_dict
from catalog.services.attribute_service import attribute_service
from catalog.services.dimensions import FACET_DIMENSIONS, Dimension, spec_for
from catalog.services.filter_query_builder import FilterDefaults
from catalog.services.query_compiler import compile_predicate

logger = logging.getLogger(__name__)


@dataclass
class FacetResult:
    filters: Dict[str, List[dict]] = field(default_factory=dict)
    partial: bool = False


class FacetCounter:
    def __init__(self, session_factory: async_sessionmaker, defaults: FilterDefaults):
        self.session_factory = session_factory
        self.defaults = defaults

    async def count_facets(self, base: AllOf, category_id: Optional[int]) -> FacetResult:
        if category_id is None:
            return FacetResult()

        semaphore = asyncio.Semaphore(self.defaults.facet_max_concurrency)
        tasks = {
            asyncio.create_task(self._dimension_facets(dimension, base, category_id, semaphore)): dimension
            for dimension in FACET_DIMENSIONS
        }
        done, pending = await asyncio.wait(tasks, timeout=self.defaults.facet_timeout_seconds)

        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            logger.warning(
                f"Facet computation for category {category_id} timed out after "
                f"{self.defaults.facet_timeout_seconds}s; incomplete: "
                f"{sorted(tasks[t].value for t in pending)}"
            )

        result = FacetResult(partial=bool(pending))
        for task, dimension in tasks.items():
            # Storage errors in finished dimensions propagate
            result.filters[dimension.value] = task.result() if task in done else []
        return result

    async def _dimension_facets(
        self,
        dimension: Dimension,
        base: AllOf,
        category_id: int,
        semaphore: asyncio.Semaphore,
    ) -> List[dict]:
        async with semaphore:
            async with self.session_factory() as db:
                candidates = await attribute_service.list_for_category(db, dimension, category_id)
        if not candidates:
            return []

        spec = spec_for(dimension)
        # A selection on this dimension must not hide its sibling values
        others = base.without_field(spec.product_field)
        counts = await asyncio.gather(
            *(self._count(others.and_(self._value_clause(spec, value.id)), semaphore) for value in candidates)
        )
        return [
            {**attribute_to_dict(value), "count": count}
            for value, count in zip(candidates, counts)
            if count > 0
        ]

    @staticmethod
    def _value_clause(spec, value_id: int):
        if spec.is_array:
            return AnyOf(spec.product_field, (value_id,))
        return Equals(spec.product_field, value_id)

    async def _count(self, predicate: AllOf, semaphore: asyncio.Semaphore) -> int:
        async with semaphore:
            async with self.session_factory() as db:
                result = await db.execute(
                    select(func.count(Product.id)).where(compile_predicate(predicate))
                )
                return result.scalar() or 0

    async def price_range(self, base: AllOf) -> Optional[dict]:
        """min/max/avg basePrice over the base predicate; None when nothing matches"""
        async with self.session_factory() as db:
            result = await db.execute(
                select(
                    func.count(Product.id),
                    func.min(Product.base_price),
                    func.max(Product.base_price),
                    func.avg(Product.base_price),
                ).where(compile_predicate(base))
            )
            total, min_price, max_price, avg_price = result.one()
        if not total:
            return None
        return {
            "minPrice": float(min_price),
            "maxPrice": float(max_price),
            "avgPrice": round(float(avg_price), 2),
        }

    async def rating_distribution(self, base: AllOf) -> List[dict]:
        """Rated products bucketed by average rating"""
        bucket = case(
            (Product.rating_average < 2, "1-2"),
            (Product.rating_average < 3, "2-3"),
            (Product.rating_average < 4, "3-4"),
            (Product.rating_average < 5, "4-5"),
            else_="5",
        ).label("rating_bucket")
        async with self.session_factory() as db:
            result = await db.execute(
                select(bucket, func.count(Product.id))
                .where(compile_predicate(base), Product.rating_average > 0)
                .group_by(bucket)
                .order_by(bucket)
            )
            return [{"range": label, "count": count} for label, count in result.all()]
