"""Filter, sort and cardinality models."""

import re
from abc import abstractmethod
from enum import Enum
from typing import Any, Callable, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from catalog_resolver.domain.catalog import CatalogItem
from catalog_resolver.domain.exceptions import InvalidFilterError, ValidationError
from catalog_resolver.domain.expression import parse_expression, values_equal
from catalog_resolver.domain.values import AttributeValue, ValueKind

Predicate = Callable[[CatalogItem], bool]

Scalar = Union[str, bool, int, float]


class FilterSpec(BaseModel):
    """Base class of every filter variant."""

    model_config = ConfigDict(frozen=True)

    @abstractmethod
    def predicate(self) -> Predicate:
        """
        Compile the filter into a predicate.

        Raises:
            InvalidFilterError: If the filter configuration is malformed
        """

    def describe(self) -> str:
        return repr(self)

    def matches_everything(self) -> bool:
        """True when the filter cannot reject any item."""
        return False


class MatchAll(FilterSpec):
    """Accepts every item."""

    def predicate(self) -> Predicate:
        return lambda item: True

    def describe(self) -> str:
        return "all items"

    def matches_everything(self) -> bool:
        return True


class StructuredFilter(FilterSpec):
    """
    Field path to expected value(s), all of which must match.

    A criterion given as a list accepts any of its values. Paths fan out over
    list attributes, so ``storageClasses.class`` matches when any storage
    class entry carries the expected class. Criteria set to None are ignored.
    """

    criteria: dict[str, Any] = Field(default_factory=dict)
    ignore_case: bool = False

    def predicate(self) -> Predicate:
        compiled: list[tuple[str, list[AttributeValue]]] = []
        for path, expected in self.criteria.items():
            if expected is None:
                continue
            accepted = expected if isinstance(expected, (list, tuple, set, frozenset)) else [expected]
            values = [AttributeValue.of(value) for value in accepted]
            if any(not value.is_scalar for value in values):
                raise InvalidFilterError("Structured filter values must be scalars", path)
            compiled.append((path, values))

        def matches(item: CatalogItem) -> bool:
            for path, accepted in compiled:
                found = item.lookup_all(path)
                if not any(self._equal(value, wanted) for value in found for wanted in accepted):
                    return False
            return True

        return matches

    def _equal(self, value: AttributeValue, wanted: AttributeValue) -> bool:
        if self.ignore_case and value.kind is ValueKind.STRING and wanted.kind is ValueKind.STRING:
            return value.value.casefold() == wanted.value.casefold()
        return values_equal(value, wanted)

    def describe(self) -> str:
        return ", ".join(f"{path}={value!r}" for path, value in self.criteria.items() if value is not None)

    def matches_everything(self) -> bool:
        return all(value is None for value in self.criteria.values())


class NameMatchFilter(FilterSpec):
    """Exact name or regular expression applied to the name field."""

    pattern: str
    regex: bool = False
    field: str = "name"

    def predicate(self) -> Predicate:
        if not self.regex:
            expected = self.pattern

            def exact(item: CatalogItem) -> bool:
                value = item.lookup(self.field)
                return value is not None and value.kind is ValueKind.STRING and value.value == expected

            return exact

        try:
            compiled = re.compile(self.pattern)
        except re.error as e:
            raise InvalidFilterError(f"Invalid regular expression ({e})", self.pattern, e.pos) from e

        def search(item: CatalogItem) -> bool:
            value = item.lookup(self.field)
            return value is not None and value.kind is ValueKind.STRING and compiled.search(value.value) is not None

        return search

    def describe(self) -> str:
        kind = "matching" if self.regex else "named"
        return f"{self.field} {kind} {self.pattern!r}"


class ExpressionFilter(FilterSpec):
    """Raw filter-language expression."""

    expression: str

    def predicate(self) -> Predicate:
        return parse_expression(self.expression.strip()).matches

    def describe(self) -> str:
        return self.expression.strip() or "all items"

    def matches_everything(self) -> bool:
        return not self.expression.strip()


class AllOf(FilterSpec):
    """Conjunction of several filters, evaluated in order."""

    filters: tuple[FilterSpec, ...] = ()

    def predicate(self) -> Predicate:
        predicates = [spec.predicate() for spec in self.filters]
        return lambda item: all(check(item) for check in predicates)

    def describe(self) -> str:
        return " and ".join(spec.describe() for spec in self.filters if not spec.matches_everything()) or "all items"

    def matches_everything(self) -> bool:
        return all(spec.matches_everything() for spec in self.filters)


class SortKind(str, Enum):
    """How sort field values are compared."""

    AUTO = "auto"
    VERSION = "version"
    RANK = "rank"


class SortSpec(BaseModel):
    """
    Sort the matching items by one field.

    RANK orders values by the rank ``ranking`` assigns them (lower first);
    values missing from the ranking come after every ranked value.
    """

    model_config = ConfigDict(frozen=True)

    field: str
    descending: bool = False
    kind: SortKind = SortKind.AUTO
    ranking: dict[str, int] = Field(default_factory=dict)

    @field_validator("field")
    @classmethod
    def _field_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("sort field must not be blank")
        return value.strip()

    @model_validator(mode="after")
    def _check_ranking(self) -> "SortSpec":
        if self.kind is SortKind.RANK and not self.ranking:
            raise ValueError("rank sorting requires a ranking")
        return self


class CardinalityMode(str, Enum):
    EXACTLY_ONE = "exactly_one"
    ALL = "all"
    FIRST_N = "first_n"


class Cardinality(BaseModel):
    """The result shape a caller requires."""

    model_config = ConfigDict(frozen=True)

    mode: CardinalityMode = CardinalityMode.EXACTLY_ONE
    limit: Optional[int] = None

    @model_validator(mode="after")
    def _check_limit(self) -> "Cardinality":
        if self.mode is CardinalityMode.FIRST_N and (self.limit is None or self.limit < 1):
            raise ValueError("first_n requires a limit of at least 1")
        return self

    @classmethod
    def exactly_one(cls) -> "Cardinality":
        return cls(mode=CardinalityMode.EXACTLY_ONE)

    @classmethod
    def all(cls) -> "Cardinality":
        return cls(mode=CardinalityMode.ALL)

    @classmethod
    def first(cls, limit: int = 1) -> "Cardinality":
        if limit < 1:
            raise ValidationError("first_n requires a limit of at least 1", details={"limit": limit})
        return cls(mode=CardinalityMode.FIRST_N, limit=limit)

    def __str__(self) -> str:
        if self.mode is CardinalityMode.FIRST_N:
            return f"first {self.limit}"
        return self.mode.value.replace("_", " ")


EXACTLY_ONE = Cardinality.exactly_one()
ALL = Cardinality.all()
