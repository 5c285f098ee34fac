"""Adapters turning generated SDK list calls into page fetch callables."""

from collections.abc import Mapping
from typing import Any, Callable, Optional

from catalog_resolver.domain.catalog import Page, PageRequest
from catalog_resolver.domain.ports.catalog_port import PageFetcher


def _dig(payload: Any, path: str) -> Any:
    """Read a dotted key from a response mapping or SDK object."""
    current = payload
    for segment in path.split("."):
        if current is None:
            return None
        if isinstance(current, Mapping):
            current = current.get(segment)
        else:
            current = getattr(current, segment, None)
    return current


def _as_mapping(item: Any) -> Any:
    """SDK models expose to_dict(); plain mappings pass through."""
    to_dict = getattr(item, "to_dict", None)
    if callable(to_dict) and not isinstance(item, Mapping):
        return to_dict()
    return item


def build_index_fetcher(
    list_page: Callable[[int, int], Any],
    items_key: str,
    total_key: Optional[str] = None,
) -> PageFetcher:
    """
    Wrap a ``list_page(page, size)`` SDK call.

    Args:
        list_page: Call returning one response for a page index and size
        items_key: Dotted key of the item list in the response (e.g. "flavors")
        total_key: Dotted key of the total row count (e.g. "pagination.totalRows")

    A response without items is treated as an empty page.
    """

    def fetch(request: PageRequest) -> Page:
        response = list_page(request.index, request.size)
        items = _dig(response, items_key) or []
        total = _dig(response, total_key) if total_key else None
        return Page(
            items=[_as_mapping(item) for item in items],
            total_rows=int(total) if total is not None else None,
        )

    return fetch


def build_token_fetcher(
    list_page: Callable[[Optional[str], int], Any],
    items_key: str,
    token_key: str,
) -> PageFetcher:
    """
    Wrap a ``list_page(token, size)`` SDK call paginated by continuation token.

    The walk continues for as long as the response carries a token.
    """

    def fetch(request: PageRequest) -> Page:
        response = list_page(request.token, request.size)
        items = _dig(response, items_key) or []
        token = _dig(response, token_key) or None
        return Page(
            items=[_as_mapping(item) for item in items],
            next_token=token,
            has_more=token is not None,
        )

    return fetch
