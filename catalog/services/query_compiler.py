"""Compile storage-agnostic predicates into SQLAlchemy expressions over Product"""
from sqlalchemy import and_, or_, true
from sqlalchemy.sql import ColumnElement
from typing import List, Sequence, Tuple

from catalog.core.predicates import AllOf, AnyOf, AttributeMatch, Between, Equals, TextSearch
from catalog.models.product import Product, ProductMaterial, ProductOccasion, ProductTag
from catalog.models.filter import ProductAttributeValue

# Set-valued Product fields: (relationship, element column)
_ARRAY_FIELDS = {
    "material_ids": (Product.material_links, ProductMaterial.material_id),
    "occasion_ids": (Product.occasion_links, ProductOccasion.occasion_id),
    "tags": (Product.tag_links, ProductTag.tag),
}


def _column(field: str):
    column = getattr(Product, field, None)
    if column is None or field in _ARRAY_FIELDS:
        raise ValueError(f"Unknown product field '{field}'")
    return column


def compile_predicate(predicate) -> ColumnElement:
    if predicate is None:
        return true()

    if isinstance(predicate, AllOf):
        if not predicate.clauses:
            return true()
        return and_(*(compile_predicate(clause) for clause in predicate.clauses))

    if isinstance(predicate, Equals):
        if predicate.field in _ARRAY_FIELDS:
            relation, element = _ARRAY_FIELDS[predicate.field]
            return relation.any(element == predicate.value)
        return _column(predicate.field) == predicate.value

    if isinstance(predicate, AnyOf):
        values = list(predicate.values)
        if predicate.field in _ARRAY_FIELDS:
            relation, element = _ARRAY_FIELDS[predicate.field]
            return relation.any(element.in_(values))
        return _column(predicate.field).in_(values)

    if isinstance(predicate, Between):
        column = _column(predicate.field)
        bounds = []
        if predicate.gte is not None:
            bounds.append(column >= predicate.gte)
        if predicate.lte is not None:
            bounds.append(column <= predicate.lte)
        return and_(*bounds) if bounds else true()

    if isinstance(predicate, TextSearch):
        return or_(
            *(_column(name).icontains(predicate.term, autoescape=True) for name in predicate.fields)
        )

    if isinstance(predicate, AttributeMatch):
        return Product.attribute_values.any(
            and_(
                ProductAttributeValue.filter_id == predicate.filter_id,
                ProductAttributeValue.value.in_(list(predicate.values)),
            )
        )

    raise TypeError(f"Unsupported predicate: {predicate!r}")


def compile_sort(sort: Sequence[Tuple[str, bool]]) -> List:
    """(field, descending) pairs to ORDER BY clauses; id breaks ties for stable pages"""
    clauses = []
    for field, descending in sort:
        column = _column(field)
        clauses.append(column.desc() if descending else column.asc())
    clauses.append(Product.id.asc())
    return clauses
