"""Exhaustive page-by-page retrieval of remote catalogs."""

import threading
from collections.abc import Mapping
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from catalog_resolver.domain.catalog import CatalogItem, Page, PageRequest
from catalog_resolver.domain.exceptions import (
    FetchFailedError,
    PaginationCancelledError,
    ValidationError,
)
from catalog_resolver.domain.ports.catalog_port import PageFetcher, PageResult
from catalog_resolver.infrastructure.logging.logger import get_logger

logger = get_logger(__name__)

DEFAULT_PAGE_SIZE = 25


class Pager:
    """
    Walk a paged catalog endpoint until exhaustion.

    The walk starts at ``first_page_index`` and requests increasing page
    indexes. It stops at the first empty page, when the page says there is
    nothing more (``has_more=False``, no ``next_token`` on a token-paged
    endpoint, ``total_rows`` reached) or, when the endpoint gives no signal
    at all, at the first page shorter than ``page_size``.

    A Pager holds configuration only, so one instance can serve concurrent
    walks.
    """

    def __init__(self, page_size: int = DEFAULT_PAGE_SIZE, first_page_index: int = 1, max_pages: int = 1000) -> None:
        if page_size < 1:
            raise ValidationError("page_size must be at least 1", details={"page_size": page_size})
        if first_page_index not in (0, 1):
            raise ValidationError("first_page_index must be 0 or 1", details={"first_page_index": first_page_index})
        if max_pages < 1:
            raise ValidationError("max_pages must be at least 1", details={"max_pages": max_pages})
        self.page_size = page_size
        self.first_page_index = first_page_index
        self.max_pages = max_pages

    def collect(self, fetch_page: PageFetcher, cancel_event: Optional[threading.Event] = None) -> list[CatalogItem]:
        """
        Retrieve every item of the catalog in page order.

        Args:
            fetch_page: Callable returning one page for a PageRequest
            cancel_event: Optional event checked before every page fetch

        Returns:
            All items, page order then in-page order

        Raises:
            FetchFailedError: If any page fetch fails; no partial result is returned
            PaginationCancelledError: If cancel_event is set between fetches
        """
        items: list[CatalogItem] = []
        index = self.first_page_index
        token: Optional[str] = None

        for fetched in range(self.max_pages):
            if cancel_event is not None and cancel_event.is_set():
                logger.info("Pagination cancelled before page %d (%d items collected)", index, len(items))
                raise PaginationCancelledError(index)

            page = self._fetch(fetch_page, PageRequest(index=index, size=self.page_size, token=token))
            items.extend(page.items)
            logger.debug(
                "Fetched catalog page %d: %d items (%d total)",
                index,
                len(page.items),
                len(items),
            )

            if not self._has_more(page, len(items)):
                logger.debug("Catalog exhausted after %d page(s), %d items", fetched + 1, len(items))
                return items

            token = page.next_token
            index += 1

        logger.error("Catalog did not signal exhaustion within %d pages", self.max_pages)
        raise FetchFailedError(
            index,
            message=f"Catalog did not signal exhaustion within {self.max_pages} pages",
        )

    def _fetch(self, fetch_page: PageFetcher, request: PageRequest) -> Page:
        try:
            result = fetch_page(request)
        except Exception as e:
            logger.error("Failed to fetch catalog page %d: %s", request.index, e)
            raise FetchFailedError(request.index, e) from e
        return self._to_page(result, request.index)

    @staticmethod
    def _to_page(result: PageResult, index: int) -> Page:
        if isinstance(result, Page):
            return result
        if result is None:
            return Page()
        if isinstance(result, Mapping):
            try:
                return Page.model_validate(dict(result))
            except (PydanticValidationError, ValidationError) as e:
                raise FetchFailedError(index, e, message=f"Catalog page {index} is malformed: {e}") from e
        try:
            return Page(items=list(result))
        except (TypeError, PydanticValidationError, ValidationError) as e:
            raise FetchFailedError(index, e, message=f"Catalog page {index} is malformed: {e}") from e

    def _has_more(self, page: Page, collected: int) -> bool:
        if not page.items:
            return False
        if page.has_more is not None:
            return page.has_more
        if page.total_rows is not None:
            return collected < page.total_rows
        if page.next_token is not None:
            return bool(page.next_token)
        return len(page.items) >= self.page_size

    def __repr__(self) -> str:
        return (
            f"Pager(page_size={self.page_size}, first_page_index={self.first_page_index}, "
            f"max_pages={self.max_pages})"
        )
