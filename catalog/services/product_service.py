from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy import select, func, update
from sqlalchemy.orm.attributes import set_committed_value
from typing import Collection, List, Optional, Tuple
import logging

from catalog.core.datetime_utils import days_ago
from catalog.core.exceptions import NotFoundError, ValidationError
from catalog.core.pagination import compute_total_pages
from catalog.core.predicates import AllOf, Between, Equals, TextSearch
from catalog.core.slug import slugify
from catalog.models.category import ProductCategory
from catalog.models.filter import Filter, ProductAttributeValue
from catalog.models.product import Product
from catalog.schemas.product import ProductResponse
from catalog.services.attribute_service import attribute_service
from catalog.services.category_service import category_service
from catalog.services.dimensions import DIMENSIONS
from catalog.services.facet_counter import FacetCounter
from catalog.services.filter_query_builder import FilterDefaults, FilterQueryBuilder, ProductQuery, SEARCH_FIELDS
from catalog.services.query_compiler import compile_predicate, compile_sort
from catalog.services.reference_resolver import ReferenceResolver

logger = logging.getLogger(__name__)

_SCALAR_FIELDS = (
    "name",
    "sku",
    "description",
    "short_description",
    "category_id",
    "product_type",
    "images",
    "status",
    "visibility",
)


def storefront_clause(defaults: FilterDefaults) -> AllOf:
    """Products visible to the storefront: default status and visibility"""
    return AllOf((Equals("status", defaults.status), Equals("visibility", defaults.visibility)))


class ProductService:
    """Catalog products: writes with reference validation, listings and highlights"""

    @staticmethod
    async def get_by_id(db: AsyncSession, product_id: int) -> Product:
        product = await db.get(Product, product_id)
        if not product:
            raise NotFoundError("Product not found")
        return product

    @staticmethod
    async def _validate_references(db: AsyncSession, product: Product) -> None:
        if not await category_service.exists(db, product.category_id):
            raise ValidationError(f"Unknown category id: {product.category_id}")
        for dimension, spec in DIMENSIONS.items():
            value = getattr(product, spec.product_field)
            ids = value if spec.is_array else ([value] if value is not None else [])
            await attribute_service.ensure_exists(db, dimension, ids, category_id=product.category_id)

        filter_ids = {a.filter_id for a in product.attribute_values}
        if filter_ids:
            result = await db.execute(select(Filter.id).where(Filter.id.in_(filter_ids)))
            missing = sorted(filter_ids - set(result.scalars().all()))
            if missing:
                raise ValidationError(f"Unknown filter id(s): {', '.join(map(str, missing))}")

    @staticmethod
    async def _unique_slug(db: AsyncSession, name: str, sku: str, exclude_id: Optional[int] = None) -> str:
        """Slug from name; on collision the SKU is appended"""
        base = slugify(name)
        if not base:
            raise ValidationError("Name must contain letters or digits")
        for candidate in (base, f"{base}-{slugify(sku)}"):
            query = select(Product.id).where(Product.slug == candidate)
            if exclude_id is not None:
                query = query.where(Product.id != exclude_id)
            if not (await db.execute(query)).first():
                return candidate
        raise ValidationError(f"Product with slug '{base}' already exists")

    @staticmethod
    async def _ensure_unique_sku(db: AsyncSession, sku: str, exclude_id: Optional[int] = None) -> None:
        query = select(Product.id).where(Product.sku == sku)
        if exclude_id is not None:
            query = query.where(Product.id != exclude_id)
        if (await db.execute(query)).first():
            raise ValidationError(f"Product with SKU '{sku}' already exists")

    @staticmethod
    def _apply(product: Product, data: dict) -> None:
        for field in _SCALAR_FIELDS:
            if field in data and (data[field] is not None or field in ("description", "short_description")):
                setattr(product, field, data[field])

        for spec in DIMENSIONS.values():
            if spec.product_field in data:
                setattr(product, spec.product_field, data[spec.product_field] or ([] if spec.is_array else None))

        pricing = data.get("pricing") or {}
        for field in ("base_price", "sale_price", "currency"):
            if field in pricing and (pricing[field] is not None or field == "sale_price"):
                setattr(product, field, pricing[field])

        inventory = data.get("inventory") or {}
        for field in ("stock_quantity", "stock_status"):
            if inventory.get(field) is not None:
                setattr(product, field, inventory[field])

        if data.get("tags") is not None:
            product.tags = [t.strip() for t in data["tags"] if t and t.strip()]

        if data.get("attributes") is not None:
            product.attribute_values = [
                ProductAttributeValue(
                    filter_id=a["filter_id"], value=a["value"], display_value=a.get("display_value")
                )
                for a in data["attributes"]
            ]

    @staticmethod
    async def create(db: AsyncSession, data: dict) -> Product:
        sku = data["sku"].strip()
        await ProductService._ensure_unique_sku(db, sku)

        product = Product()
        ProductService._apply(product, {**data, "sku": sku})
        product.slug = await ProductService._unique_slug(db, product.name, sku)
        if product.sale_price is not None and product.sale_price > product.base_price:
            raise ValidationError("Sale price cannot exceed base price")

        await ProductService._validate_references(db, product)

        db.add(product)
        await db.commit()
        logger.info(f"Product created: {product.sku} (id={product.id}, category={product.category_id})")
        return await ProductService.get_by_id(db, product.id)

    @staticmethod
    async def update(db: AsyncSession, product_id: int, data: dict) -> Product:
        """Partial update; a new name regenerates the slug"""
        product = await ProductService.get_by_id(db, product_id)

        if data.get("sku") is not None:
            data = {**data, "sku": data["sku"].strip()}
            await ProductService._ensure_unique_sku(db, data["sku"], exclude_id=product.id)
        if "category_id" in data and data["category_id"] is None:
            raise ValidationError("categoryId cannot be empty")

        # Validation queries below must not flush a half-applied product
        with db.no_autoflush:
            ProductService._apply(product, data)
            if data.get("name") is not None:
                product.slug = await ProductService._unique_slug(
                    db, product.name, product.sku, exclude_id=product.id
                )
            if product.sale_price is not None and product.sale_price > product.base_price:
                raise ValidationError("Sale price cannot exceed base price")
            await ProductService._validate_references(db, product)

        await db.commit()
        logger.info(f"Product updated: {product.sku} (id={product.id})")
        return await ProductService.get_by_id(db, product.id)

    @staticmethod
    async def delete(db: AsyncSession, product_id: int) -> None:
        product = await ProductService.get_by_id(db, product_id)
        await db.delete(product)
        await db.commit()
        logger.info(f"Product deleted: id={product_id}")

    @staticmethod
    async def list(db: AsyncSession, query: ProductQuery) -> Tuple[List[Product], int]:
        where = compile_predicate(query.predicate)
        total = (await db.execute(select(func.count(Product.id)).where(where))).scalar() or 0

        result = await db.execute(
            select(Product)
            .where(where)
            .order_by(*compile_sort(query.sort))
            .offset(query.skip)
            .limit(query.limit)
        )
        return list(result.scalars().all()), total

    @staticmethod
    async def serialize(db: AsyncSession, products: List[Product]) -> List[dict]:
        """Product payloads with resolved references"""
        references = await ReferenceResolver(db).resolve(products)
        return [
            {**ProductResponse.from_product(product).to_json_dict(), **references[product.id]}
            for product in products
        ]

    @staticmethod
    async def listing(
        db: AsyncSession,
        session_factory: async_sessionmaker,
        defaults: FilterDefaults,
        params,
        attribute_filter_ids: Optional[Collection[int]] = None,
        with_facets: bool = True,
    ) -> Tuple[dict, ProductQuery]:
        """
        Listing response: products, total, page, pages; `filters` when a
        category is given; `warnings` for parameters that were ignored.
        """
        query = FilterQueryBuilder(defaults).build(params, attribute_filter_ids=attribute_filter_ids)
        products, total = await ProductService.list(db, query)

        body = {
            "success": True,
            "products": await ProductService.serialize(db, products),
            "total": total,
            "page": query.page,
            "pages": compute_total_pages(total, query.limit),
        }
        if with_facets and query.category_id is not None:
            facets = await FacetCounter(session_factory, defaults).count_facets(
                query.predicate, query.category_id
            )
            body["filters"] = facets.filters
            if facets.partial:
                body["facetsPartial"] = True
        if query.ignored:
            body["warnings"] = query.warnings
        return body, query

    @staticmethod
    async def search_suggestions(
        db: AsyncSession, term: str, defaults: FilterDefaults, limit: int = 5
    ) -> List[dict]:
        """Categories ranked by how many visible products match the term"""
        term = (term or "").strip()
        if not term:
            return []
        predicate = storefront_clause(defaults).and_(TextSearch(SEARCH_FIELDS, term))
        matches = func.count(Product.id).label("matches")
        result = await db.execute(
            select(ProductCategory.id, ProductCategory.name, ProductCategory.slug, matches)
            .select_from(Product)
            .join(ProductCategory, ProductCategory.id == Product.category_id)
            .where(compile_predicate(predicate))
            .group_by(ProductCategory.id, ProductCategory.name, ProductCategory.slug)
            .order_by(matches.desc(), ProductCategory.name)
            .limit(limit)
        )
        return [
            {"id": row.id, "name": row.name, "slug": row.slug, "count": row.matches}
            for row in result.all()
        ]

    @staticmethod
    async def increment_views(db: AsyncSession, product: Product) -> None:
        """Bump views without touching updated_at"""
        await db.execute(
            update(Product)
            .where(Product.id == product.id)
            .values(views=Product.views + 1, updated_at=Product.updated_at)
            .execution_options(synchronize_session=False)
        )
        await db.commit()
        set_committed_value(product, "views", product.views + 1)

    @staticmethod
    async def related(db: AsyncSession, product: Product, defaults: FilterDefaults, limit: int) -> List[Product]:
        predicate = storefront_clause(defaults).and_(Equals("category_id", product.category_id))
        result = await db.execute(
            select(Product)
            .where(compile_predicate(predicate), Product.id != product.id)
            .order_by(Product.sales_count.desc(), Product.rating_average.desc(), Product.id)
            .limit(limit)
        )
        return list(result.scalars().all())

    @staticmethod
    async def get_by_slug(db: AsyncSession, slug: str, defaults: FilterDefaults) -> Product:
        """Storefront lookup: only published, public products"""
        predicate = storefront_clause(defaults).and_(Equals("slug", slug))
        result = await db.execute(select(Product).where(compile_predicate(predicate)))
        product = result.scalar_one_or_none()
        if not product:
            raise NotFoundError("Product not found")
        return product

    @staticmethod
    async def _highlight(
        db: AsyncSession, defaults: FilterDefaults, extra: AllOf, order_by, limit: int, *where
    ) -> List[Product]:
        result = await db.execute(
            select(Product)
            .where(compile_predicate(storefront_clause(defaults).and_(*extra.clauses)), *where)
            .order_by(*order_by, Product.id)
            .limit(limit)
        )
        return list(result.scalars().all())

    @staticmethod
    async def trending(db: AsyncSession, defaults: FilterDefaults, limit: int) -> List[Product]:
        return await ProductService._highlight(
            db,
            defaults,
            AllOf((Between("sales_count", gte=1),)),
            (Product.sales_count.desc(), Product.views.desc()),
            limit,
        )

    @staticmethod
    async def new_arrivals(db: AsyncSession, defaults: FilterDefaults, days: int, limit: int) -> List[Product]:
        return await ProductService._highlight(
            db,
            defaults,
            AllOf((Between("created_at", gte=days_ago(days)),)),
            (Product.created_at.desc(),),
            limit,
        )

    @staticmethod
    async def on_sale(db: AsyncSession, defaults: FilterDefaults, limit: int) -> List[Product]:
        """0 < salePrice < basePrice, biggest discount first"""
        return await ProductService._highlight(
            db,
            defaults,
            AllOf(),
            ((Product.base_price - Product.sale_price).desc(),),
            limit,
            Product.sale_price > 0,
            Product.sale_price < Product.base_price,
        )

    @staticmethod
    async def best_selling(db: AsyncSession, defaults: FilterDefaults, limit: int) -> List[Product]:
        return await ProductService._highlight(
            db, defaults, AllOf(), (Product.sales_count.desc(),), limit
        )

    @staticmethod
    async def top_rated(db: AsyncSession, defaults: FilterDefaults, limit: int) -> List[Product]:
        return await ProductService._highlight(
            db,
            defaults,
            AllOf((Between("rating_count", gte=5),)),
            (Product.rating_average.desc(), Product.rating_count.desc()),
            limit,
        )

    @staticmethod
    async def filter_options(
        db: AsyncSession,
        session_factory: async_sessionmaker,
        defaults: FilterDefaults,
        category_id: int,
        params,
    ) -> dict:
        """Facets, price range and rating distribution for a category, without products"""
        if not await category_service.exists(db, category_id):
            raise NotFoundError("Category not found")
        query = FilterQueryBuilder(defaults).build({**dict(params), "categoryId": str(category_id)})
        counter = FacetCounter(session_factory, defaults)
        facets = await counter.count_facets(query.predicate, category_id)

        filters = dict(facets.filters)
        price_range = await counter.price_range(query.predicate)
        if price_range is not None:
            filters["priceRange"] = price_range
        filters["ratingDistribution"] = await counter.rating_distribution(query.predicate)

        body = {"success": True, "filters": filters}
        if facets.partial:
            body["facetsPartial"] = True
        if query.ignored:
            body["warnings"] = query.warnings
        return body

    @staticmethod
    async def by_category_slug(
        db: AsyncSession,
        session_factory: async_sessionmaker,
        defaults: FilterDefaults,
        slug: str,
        params,
    ) -> dict:
        category = await category_service.get_by_slug(db, slug)
        body, _ = await ProductService.listing(
            db, session_factory, defaults, {**dict(params), "categoryId": str(category.id)}
        )
        body["category"] = {"id": category.id, "name": category.name, "slug": category.slug, "path": category.path}
        return body


product_service = ProductService()
