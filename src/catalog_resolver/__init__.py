"""
catalog-resolver - paginated cloud catalog resolution.

Fetch a remote catalog page by page, narrow it with a structured, name or
expression filter, optionally sort it and reduce it to exactly one item, the
first N items or all of them, with typed failures for "no match" and
"ambiguous match".
"""

__version__ = "0.1.0"

from catalog_resolver.application.resolver import CatalogResolver
from catalog_resolver.domain.catalog import CatalogItem, Page, PageRequest
from catalog_resolver.domain.exceptions import (
    AmbiguousError,
    CatalogResolutionError,
    FetchFailedError,
    InvalidFilterError,
    NotFoundError,
    PaginationCancelledError,
)
from catalog_resolver.domain.expression import FilterExpression, parse_expression
from catalog_resolver.domain.filters import (
    ALL,
    EXACTLY_ONE,
    AllOf,
    Cardinality,
    ExpressionFilter,
    MatchAll,
    NameMatchFilter,
    SortKind,
    SortSpec,
    StructuredFilter,
)
from catalog_resolver.domain.outcome import NotFoundPolicy, OutcomeKind, ResolutionOutcome
from catalog_resolver.infrastructure.pagination.pager import Pager

__all__: list[str] = [
    "ALL",
    "EXACTLY_ONE",
    "AllOf",
    "AmbiguousError",
    "Cardinality",
    "CatalogItem",
    "CatalogResolutionError",
    "CatalogResolver",
    "ExpressionFilter",
    "FetchFailedError",
    "FilterExpression",
    "InvalidFilterError",
    "MatchAll",
    "NameMatchFilter",
    "NotFoundError",
    "NotFoundPolicy",
    "OutcomeKind",
    "Page",
    "PageRequest",
    "Pager",
    "PaginationCancelledError",
    "ResolutionOutcome",
    "SortKind",
    "SortSpec",
    "StructuredFilter",
    "parse_expression",
]
