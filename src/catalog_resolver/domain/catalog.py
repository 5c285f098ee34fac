"""Catalog records and pages."""

from collections.abc import Iterator, Mapping, Sequence
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from catalog_resolver.domain.exceptions import ValidationError
from catalog_resolver.domain.values import AttributeValue, ValueKind

PATH_SEPARATOR = "."


def split_path(path: str) -> list[str]:
    return path.split(PATH_SEPARATOR)


class CatalogItem(BaseModel):
    """An immutable, schema-less catalog record."""

    model_config = ConfigDict(frozen=True)

    attributes: dict[str, AttributeValue] = Field(default_factory=dict)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "CatalogItem":
        return cls(attributes={str(k): AttributeValue.of(v) for k, v in raw.items()})

    @classmethod
    def coerce(cls, raw: Any) -> "CatalogItem":
        """Accept either a CatalogItem or a raw mapping."""
        if isinstance(raw, CatalogItem):
            return raw
        if not isinstance(raw, Mapping):
            raise ValidationError(
                f"Catalog item must be a mapping, got {type(raw).__name__}",
                details={"item": repr(raw)},
            )
        return cls.from_mapping(raw)

    def lookup(self, path: str) -> Optional[AttributeValue]:
        """
        Resolve a dotted field path by walking nested objects.

        Returns None when a segment is absent or a non-object value is
        traversed. A NULL leaf is treated as absent.
        """
        segments = split_path(path)
        current = self.attributes.get(segments[0])
        for segment in segments[1:]:
            if current is None:
                return None
            current = current.get(segment)
        if current is None or current.kind is ValueKind.NULL:
            return None
        return current

    def lookup_all(self, path: str) -> list[AttributeValue]:
        """Resolve a dotted path, fanning out over list values."""
        segments = split_path(path)
        frontier = [self.attributes[segments[0]]] if segments[0] in self.attributes else []
        for segment in segments[1:]:
            frontier = [child for node in _expand(frontier) if (child := node.get(segment)) is not None]
        return [value for value in _expand(frontier) if value.kind is not ValueKind.NULL]

    def identifier(self, fields: Sequence[str] = ("id", "name")) -> str:
        """First present identifying field rendered as text."""
        for field_path in fields:
            value = self.lookup(field_path)
            if value is not None and value.is_scalar:
                return value.text()
        return "<unnamed>"

    def to_dict(self) -> dict[str, Any]:
        return {key: value.as_python() for key, value in self.attributes.items()}

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and self.lookup(path) is not None


def _expand(values: list[AttributeValue]) -> Iterator[AttributeValue]:
    for value in values:
        if value.kind is ValueKind.LIST:
            yield from value.value
        else:
            yield value


class PageRequest(BaseModel):
    """Arguments handed to a page fetch callable."""

    model_config = ConfigDict(frozen=True)

    index: int
    size: int
    token: Optional[str] = None


class Page(BaseModel):
    """
    One page returned by a catalog endpoint.

    Exhaustion is signalled by whichever the endpoint supports: an explicit
    has_more flag, a continuation token or a total row count. When none is
    set the pager falls back to the short-page heuristic.
    """

    model_config = ConfigDict(frozen=True)

    items: list[CatalogItem] = Field(default_factory=list)
    has_more: Optional[bool] = None
    next_token: Optional[str] = None
    total_rows: Optional[int] = None

    @field_validator("items", mode="before")
    @classmethod
    def _coerce_items(cls, value: Any) -> list[CatalogItem]:
        if value is None:
            return []
        return [CatalogItem.coerce(item) for item in value]

    def __len__(self) -> int:
        return len(self.items)
