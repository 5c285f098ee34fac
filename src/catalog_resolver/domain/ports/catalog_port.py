"""Domain port for paged catalog endpoints."""

from collections.abc import Mapping
from typing import Any, Protocol, Union

from catalog_resolver.domain.catalog import Page, PageRequest

PageResult = Union[Page, Mapping[str, Any]]


class PageFetcher(Protocol):
    """
    Fetch one page of a remote catalog.

    Implementations are bound by the caller to an endpoint, project and
    region. They may return a Page or a mapping with the same keys
    (``items``, ``has_more``, ``next_token``, ``total_rows``).
    """

    def __call__(self, request: PageRequest) -> PageResult: ...
