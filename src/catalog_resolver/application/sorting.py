"""Stable sorting of catalog items by runtime-typed fields."""

from collections.abc import Sequence
from typing import Optional, Union

from packaging.version import InvalidVersion, Version

from catalog_resolver.domain.catalog import CatalogItem
from catalog_resolver.domain.filters import SortKind, SortSpec
from catalog_resolver.domain.values import AttributeValue

# Numbers order before text when both appear in the same field.
_NUMERIC_RANK = 0
_TEXT_RANK = 1

SortOrder = Union[SortSpec, Sequence[SortSpec]]


def _auto_key(value: AttributeValue) -> tuple:
    if value.is_numeric:
        return (_NUMERIC_RANK, value.value)
    return (_TEXT_RANK, value.text())


def _version_key(value: AttributeValue) -> tuple:
    text = value.text().strip()
    try:
        return (_NUMERIC_RANK, Version(text))
    except InvalidVersion:
        return (_TEXT_RANK, text)


def _rank_key(value: AttributeValue, ranking: dict[str, int]) -> tuple:
    # unlisted values rank after every listed one
    text = value.text()
    if text in ranking:
        return (_NUMERIC_RANK, ranking[text])
    return (_TEXT_RANK, text)


def sort_key(value: AttributeValue, spec: SortSpec) -> tuple:
    """Ordering key for one field value."""
    if spec.kind is SortKind.VERSION:
        return _version_key(value)
    if spec.kind is SortKind.RANK:
        return _rank_key(value, spec.ranking)
    return _auto_key(value)


def _sort_by(items: list[CatalogItem], spec: SortSpec) -> list[CatalogItem]:
    present: list[tuple[tuple, CatalogItem]] = []
    missing: list[CatalogItem] = []
    for item in items:
        value = item.lookup(spec.field)
        if value is None or not value.is_scalar:
            missing.append(item)
        else:
            present.append((sort_key(value, spec), item))

    present.sort(key=lambda pair: pair[0], reverse=spec.descending)
    return [item for _, item in present] + missing


def sort_specs(sort_spec: Optional[SortOrder]) -> tuple[SortSpec, ...]:
    if sort_spec is None:
        return ()
    if isinstance(sort_spec, SortSpec):
        return (sort_spec,)
    return tuple(sort_spec)


def sort_items(items: list[CatalogItem], sort_spec: Optional[SortOrder]) -> list[CatalogItem]:
    """
    Sort items by one SortSpec, or by several in priority order, without
    touching the input list.

    Ties keep their catalog order in both directions and items lacking the
    primary field are appended last, also in catalog order.
    """
    ordered = list(items)
    # stable passes from the least to the most significant key
    for spec in reversed(sort_specs(sort_spec)):
        ordered = _sort_by(ordered, spec)
    return ordered
