"""
Storage-agnostic product predicates

The filter query builder produces these; catalog.services.query_compiler turns
them into SQLAlchemy expressions. Field names are Product attribute names.
"""
from dataclasses import dataclass, field
from typing import Any, Optional, Tuple


@dataclass(frozen=True)
class Equals:
    field: str
    value: Any


@dataclass(frozen=True)
class AnyOf:
    """Field (scalar or set-valued) intersects `values`"""

    field: str
    values: Tuple[Any, ...]


@dataclass(frozen=True)
class Between:
    """Inclusive range; either bound may be open"""

    field: str
    gte: Optional[Any] = None
    lte: Optional[Any] = None


@dataclass(frozen=True)
class TextSearch:
    """Case-insensitive substring match, OR across `fields`"""

    fields: Tuple[str, ...]
    term: str


@dataclass(frozen=True)
class AttributeMatch:
    """Legacy attribute array contains {filter_id, value in values}"""

    filter_id: int
    values: Tuple[str, ...]


@dataclass(frozen=True)
class AllOf:
    clauses: Tuple[Any, ...] = field(default_factory=tuple)

    def and_(self, *clauses) -> "AllOf":
        return AllOf(self.clauses + tuple(clauses))

    def without_field(self, field_name: str) -> "AllOf":
        """Drop the top-level Equals/AnyOf/Between clauses on `field_name`"""
        return AllOf(tuple(
            clause for clause in self.clauses
            if not (isinstance(clause, (Equals, AnyOf, Between)) and clause.field == field_name)
        ))


Predicate = Any
