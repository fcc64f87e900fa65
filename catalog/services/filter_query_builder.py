"""
Filter Query Builder

Turns a flat map of listing parameters into a ProductQuery: a storage-agnostic
predicate plus normalized sort and pagination. Parsing is permissive: a value
that cannot be parsed drops only its own constraint and is reported back in
ProductQuery.ignored instead of failing the request.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Collection, Dict, List, Mapping, Optional, Tuple
import logging
import math

from catalog.core.pagination import compute_skip
from catalog.core.predicates import AllOf, AnyOf, AttributeMatch, Between, Equals, TextSearch
from catalog.models.product import ProductStatus, ProductType, ProductVisibility, StockStatus
from catalog.services.dimensions import DIMENSIONS

logger = logging.getLogger(__name__)

SEARCH_FIELDS = ("name", "description", "short_description", "sku")

DEFAULT_SORT = "newest"

# sort key -> ((product field, descending), ...)
SORT_OPTIONS: Dict[str, Tuple[Tuple[str, bool], ...]] = {
    "newest": (("created_at", True),),
    "oldest": (("created_at", False),),
    "name-asc": (("name", False),),
    "name-desc": (("name", True),),
    "price-asc": (("base_price", False),),
    "price-desc": (("base_price", True),),
    "rating": (("rating_average", True), ("rating_count", True)),
    "popular": (("sales_count", True), ("views", True)),
    "trending": (("sales_count", True), ("views", True), ("created_at", True)),
    "relevance": (("rating_average", True), ("sales_count", True), ("views", True)),
    # Field-style keys
    "-createdAt": (("created_at", True),),
    "createdAt": (("created_at", False),),
    "name": (("name", False),),
    "-name": (("name", True),),
    "basePrice": (("base_price", False),),
    "-basePrice": (("base_price", True),),
}

# (parameter, product field, parser) for inclusive ranges
_RANGES = (
    ("minPrice", "maxPrice", "base_price", float),
    ("minSalePrice", "maxSalePrice", "sale_price", float),
    ("minStock", "maxStock", "stock_quantity", int),
)

_LOWER_BOUNDS = (
    ("minRating", "rating_average", float),
    ("minSales", "sales_count", int),
    ("minViews", "views", int),
)


@dataclass(frozen=True)
class FilterDefaults:
    """Explicit listing defaults handed to the builder and the facet counter"""

    status: ProductStatus = ProductStatus.PUBLISHED
    visibility: ProductVisibility = ProductVisibility.PUBLIC
    page_size: int = 20
    max_page_size: int = 100
    facet_max_concurrency: int = 8
    facet_timeout_seconds: float = 5.0

    @classmethod
    def from_settings(cls, settings) -> "FilterDefaults":
        return cls(
            status=ProductStatus(settings.DEFAULT_PRODUCT_STATUS),
            visibility=ProductVisibility(settings.DEFAULT_PRODUCT_VISIBILITY),
            page_size=settings.DEFAULT_PAGE_SIZE,
            max_page_size=settings.MAX_PAGE_SIZE,
            facet_max_concurrency=settings.FACET_MAX_CONCURRENCY,
            facet_timeout_seconds=settings.FACET_TIMEOUT_SECONDS,
        )


@dataclass(frozen=True)
class IgnoredParameter:
    parameter: str
    value: Any
    reason: str

    def as_dict(self) -> dict:
        return {"parameter": self.parameter, "value": self.value, "reason": self.reason}


@dataclass
class ProductQuery:
    predicate: AllOf
    sort_key: str
    sort: Tuple[Tuple[str, bool], ...]
    page: int
    limit: int
    category_id: Optional[int] = None
    ignored: List[IgnoredParameter] = field(default_factory=list)

    @property
    def skip(self) -> int:
        return compute_skip(self.page, self.limit)

    @property
    def warnings(self) -> List[dict]:
        return [item.as_dict() for item in self.ignored]


def normalize_params(items) -> Dict[str, List[str]]:
    """
    Fold (key, value) pairs into key -> [values].
    `materialIds[]=1&materialIds[]=2` and repeated `materialIds` keys both collect.
    """
    if isinstance(items, Mapping):
        items = items.items()
    params: Dict[str, List[str]] = {}
    for key, value in items:
        if key.endswith("[]"):
            key = key[:-2]
        values = value if isinstance(value, (list, tuple)) else [value]
        params.setdefault(key, []).extend("" if v is None else str(v) for v in values)
    return params


class FilterQueryBuilder:
    """Build ProductQuery objects; one instance per request is fine"""

    def __init__(self, defaults: FilterDefaults):
        self.defaults = defaults

    def build(
        self,
        params: Mapping[str, Any],
        attribute_filter_ids: Optional[Collection[int]] = None,
    ) -> ProductQuery:
        params = normalize_params(params)
        ignored: List[IgnoredParameter] = []
        clauses: list = []

        # Status and visibility: an empty value falls back to the default
        clauses.append(
            Equals("status", self._enum(params, "status", ProductStatus, ignored) or self.defaults.status)
        )
        clauses.append(
            Equals(
                "visibility",
                self._enum(params, "visibility", ProductVisibility, ignored) or self.defaults.visibility,
            )
        )

        category_id = None
        for dimension_param, product_field in self._scalar_reference_params():
            value = self._int(params, dimension_param, ignored)
            if value is None:
                continue
            if dimension_param == "categoryId":
                category_id = value
            clauses.append(Equals(product_field, value))

        for spec in DIMENSIONS.values():
            if not spec.is_array:
                continue
            ids = self._int_list(params, spec.param, ignored)
            if ids:
                clauses.append(AnyOf(spec.product_field, tuple(ids)))

        for low_param, high_param, product_field, parser in _RANGES:
            low = self._number(params, low_param, parser, ignored)
            high = self._number(params, high_param, parser, ignored)
            if low is not None or high is not None:
                clauses.append(Between(product_field, gte=low, lte=high))

        for param, product_field, parser in _LOWER_BOUNDS:
            low = self._number(params, param, parser, ignored)
            if low is not None:
                clauses.append(Between(product_field, gte=low))

        created_after = self._datetime(params, "createdAfter", ignored)
        created_before = self._datetime(params, "createdBefore", ignored)
        if created_after is not None or created_before is not None:
            clauses.append(Between("created_at", gte=created_after, lte=created_before))

        stock_status = self._enum(params, "stockStatus", StockStatus, ignored)
        if stock_status is not None:
            clauses.append(Equals("stock_status", stock_status))

        product_type = self._enum(params, "productType", ProductType, ignored)
        if product_type is not None:
            clauses.append(Equals("product_type", product_type))

        search = self._first(params, "search")
        if search is not None and search.strip():
            clauses.append(TextSearch(SEARCH_FIELDS, search.strip()))

        tags = [t.strip() for t in self._all(params, "tags") if t.strip()]
        if tags:
            clauses.append(AnyOf("tags", tuple(dict.fromkeys(tags))))

        if attribute_filter_ids:
            clauses.extend(self._attribute_clauses(params, attribute_filter_ids))

        sort_key = self._first(params, "sort") or DEFAULT_SORT
        if sort_key not in SORT_OPTIONS:
            ignored.append(IgnoredParameter("sort", sort_key, f"unknown sort key, using '{DEFAULT_SORT}'"))
            sort_key = DEFAULT_SORT

        page = self._number(params, "page", int, ignored)
        limit = self._number(params, "limit", int, ignored)
        page = max(1, page) if page is not None else 1
        if limit is None:
            limit = self.defaults.page_size
        limit = min(max(1, limit), self.defaults.max_page_size)

        if ignored:
            logger.info(f"Listing parameters ignored: {[item.as_dict() for item in ignored]}")

        return ProductQuery(
            predicate=AllOf(tuple(clauses)),
            sort_key=sort_key,
            sort=SORT_OPTIONS[sort_key],
            page=page,
            limit=limit,
            category_id=category_id,
            ignored=ignored,
        )

    # Legacy v1 path: keys that are ids of active filters select attribute values
    @staticmethod
    def _attribute_clauses(params: Dict[str, List[str]], filter_ids: Collection[int]) -> list:
        active = set(filter_ids)
        clauses = []
        for key in sorted((k for k in params if k.isascii() and k.isdigit()), key=int):
            filter_id = int(key)
            if filter_id not in active:
                continue
            values = tuple(dict.fromkeys(v for v in params[key] if v != ""))
            if values:
                clauses.append(AttributeMatch(filter_id, values))
        return clauses

    @staticmethod
    def _scalar_reference_params() -> List[Tuple[str, str]]:
        refs = [("categoryId", "category_id")]
        refs.extend((spec.param, spec.product_field) for spec in DIMENSIONS.values() if not spec.is_array)
        return refs

    @staticmethod
    def _all(params: Dict[str, List[str]], key: str) -> List[str]:
        return params.get(key, [])

    @staticmethod
    def _first(params: Dict[str, List[str]], key: str) -> Optional[str]:
        for value in params.get(key, []):
            if value != "":
                return value
        return None

    def _number(self, params, key, parser, ignored: List[IgnoredParameter]):
        raw = self._first(params, key)
        if raw is None:
            return None
        try:
            value = parser(raw.strip())
        except ValueError:
            ignored.append(IgnoredParameter(key, raw, "not a number"))
            return None
        if isinstance(value, float) and not math.isfinite(value):
            ignored.append(IgnoredParameter(key, raw, "not a finite number"))
            return None
        return value

    def _int(self, params, key, ignored: List[IgnoredParameter]) -> Optional[int]:
        raw = self._first(params, key)
        if raw is None:
            return None
        try:
            return int(raw.strip())
        except ValueError:
            ignored.append(IgnoredParameter(key, raw, "not a valid id"))
            return None

    def _int_list(self, params, key, ignored: List[IgnoredParameter]) -> List[int]:
        ids = []
        for raw in self._all(params, key):
            if raw == "":
                continue
            try:
                ids.append(int(raw.strip()))
            except ValueError:
                ignored.append(IgnoredParameter(key, raw, "not a valid id"))
        return list(dict.fromkeys(ids))

    def _enum(self, params, key, enum_cls, ignored: List[IgnoredParameter]):
        raw = self._first(params, key)
        if raw is None:
            return None
        try:
            return enum_cls(raw.strip())
        except ValueError:
            allowed = ", ".join(m.value for m in enum_cls)
            ignored.append(IgnoredParameter(key, raw, f"expected one of: {allowed}"))
            return None

    def _datetime(self, params, key, ignored: List[IgnoredParameter]) -> Optional[datetime]:
        raw = self._first(params, key)
        if raw is None:
            return None
        try:
            return datetime.fromisoformat(raw.strip())
        except ValueError:
            ignored.append(IgnoredParameter(key, raw, "not an ISO-8601 date"))
            return None
