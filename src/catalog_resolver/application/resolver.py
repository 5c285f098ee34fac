"""
Catalog resolver.

Turns a materialized catalog plus a filter, an optional sort and a
cardinality into the result a data source needs. The pipeline is linear::

    fetch (Pager) -> filter -> sort -> reduce

and every stage may end the call with one of the typed failures from
``catalog_resolver.domain.exceptions``. Ambiguity is always reported, never
resolved by picking a match.
"""

import threading
from collections.abc import Sequence
from typing import Callable, Optional

from catalog_resolver.application.sorting import SortOrder, sort_items
from catalog_resolver.domain.catalog import CatalogItem
from catalog_resolver.domain.exceptions import AmbiguousError, CatalogResolutionError, FetchFailedError, NotFoundError
from catalog_resolver.domain.filters import EXACTLY_ONE, Cardinality, CardinalityMode, FilterSpec, MatchAll
from catalog_resolver.domain.outcome import NotFoundPolicy, ResolutionOutcome
from catalog_resolver.domain.ports.catalog_port import PageFetcher
from catalog_resolver.infrastructure.logging.logger import get_logger
from catalog_resolver.infrastructure.pagination.pager import Pager

logger = get_logger(__name__)

Expander = Callable[[list[CatalogItem]], Sequence[CatalogItem]]


def summarize(identifiers: Sequence[str], limit: int) -> str:
    """Render at most ``limit`` identifiers, noting how many were left out."""
    shown = ", ".join(identifiers[:limit])
    hidden = len(identifiers) - limit
    if hidden > 0:
        return f"{shown} and {hidden} more"
    return shown


class CatalogResolver:
    """Filter, sort and reduce catalog items to the caller's cardinality."""

    def __init__(
        self,
        pager: Optional[Pager] = None,
        identifier_fields: Sequence[str] = ("id", "name"),
        summary_limit: int = 10,
    ) -> None:
        """
        Initialize the resolver.

        Args:
            pager: Pager used by resolve_catalog, defaults to Pager()
            identifier_fields: Fields naming an item in failure messages
            summary_limit: Identifiers shown in a failure message
        """
        self.pager = pager or Pager()
        self.identifier_fields = tuple(identifier_fields)
        self.summary_limit = summary_limit

    def select(self, items: Sequence[CatalogItem], filter_spec: Optional[FilterSpec]) -> list[CatalogItem]:
        """Return the matching items in their catalog order."""
        matches = (filter_spec or MatchAll()).predicate()
        return [item for item in items if matches(item)]

    def sort(self, items: Sequence[CatalogItem], sort_spec: Optional[SortOrder]) -> list[CatalogItem]:
        return sort_items(list(items), sort_spec)

    def reduce(
        self,
        items: Sequence[CatalogItem],
        cardinality: Cardinality = EXACTLY_ONE,
        catalog: Optional[Sequence[CatalogItem]] = None,
        description: str = "",
        require_match: bool = False,
    ) -> list[CatalogItem]:
        """
        Reduce matches to the requested cardinality.

        Args:
            items: Filtered (and sorted) matches
            cardinality: Required result shape
            catalog: Unfiltered catalog, used to list what is available when nothing matched
            description: Filter description used in failure messages
            require_match: Treat an empty ALL or FIRST_N result as not found

        Raises:
            NotFoundError: No match under EXACTLY_ONE, or under any cardinality with require_match
            AmbiguousError: Several matches under EXACTLY_ONE
        """
        criteria = f" for {description}" if description else ""
        if not items and (require_match or cardinality.mode is CardinalityMode.EXACTLY_ONE):
            available = [item.identifier(self.identifier_fields) for item in catalog or ()]
            message = f"No catalog item matched{criteria}"
            if available:
                message = f"{message}; available: {summarize(available, self.summary_limit)}"
            raise NotFoundError(message, available[: self.summary_limit])

        if cardinality.mode is CardinalityMode.ALL:
            return list(items)
        if cardinality.mode is CardinalityMode.FIRST_N:
            return list(items[: cardinality.limit])

        if len(items) > 1:
            identifiers = [item.identifier(self.identifier_fields) for item in items]
            raise AmbiguousError(
                f"{len(items)} catalog items matched{criteria}, narrow the filter: "
                f"{summarize(identifiers, self.summary_limit)}",
                identifiers,
            )
        return [items[0]]

    def resolve(
        self,
        items: Sequence[CatalogItem],
        filter_spec: Optional[FilterSpec] = None,
        sort_spec: Optional[SortOrder] = None,
        cardinality: Cardinality = EXACTLY_ONE,
        require_match: bool = False,
    ) -> list[CatalogItem]:
        """Filter, sort and reduce an already materialized catalog."""
        filter_spec = filter_spec or MatchAll()
        description = "" if filter_spec.matches_everything() else filter_spec.describe()
        matches = self.select(items, filter_spec)
        ordered = self.sort(matches, sort_spec)
        logger.debug(
            "Resolving %s of %d matches out of %d items (%s)",
            cardinality,
            len(ordered),
            len(items),
            description or "no filter",
        )
        return self.reduce(ordered, cardinality, catalog=items, description=description, require_match=require_match)

    def resolve_catalog(
        self,
        fetch_page: PageFetcher,
        filter_spec: Optional[FilterSpec] = None,
        sort_spec: Optional[SortOrder] = None,
        cardinality: Cardinality = EXACTLY_ONE,
        cancel_event: Optional[threading.Event] = None,
        expand: Optional[Expander] = None,
        require_match: bool = False,
    ) -> list[CatalogItem]:
        """
        Fetch the whole catalog and resolve it.

        The filter is compiled before the first page is fetched so that a
        malformed filter never costs a remote call. ``expand`` maps the
        fetched catalog to the records actually resolved, e.g. the versions
        nested in each machine image.

        Raises:
            FetchFailedError: If a page fetch fails or ``expand`` rejects the payload
        """
        filter_spec = filter_spec or MatchAll()
        filter_spec.predicate()
        items = self.pager.collect(fetch_page, cancel_event=cancel_event)
        if expand is not None:
            items = self._expand(items, expand)
        return self.resolve(items, filter_spec, sort_spec, cardinality, require_match)

    @staticmethod
    def _expand(items: list[CatalogItem], expand: Expander) -> list[CatalogItem]:
        try:
            return [CatalogItem.coerce(item) for item in expand(items)]
        except Exception as e:
            logger.error("Failed to expand catalog of %d items: %s", len(items), e)
            raise FetchFailedError(None, e, message=f"Catalog payload is malformed: {e}") from e

    def outcome(
        self,
        fetch_page: PageFetcher,
        filter_spec: Optional[FilterSpec] = None,
        sort_spec: Optional[SortOrder] = None,
        cardinality: Cardinality = EXACTLY_ONE,
        cancel_event: Optional[threading.Event] = None,
        not_found_policy: NotFoundPolicy = NotFoundPolicy.ERROR,
        expand: Optional[Expander] = None,
        require_match: bool = False,
    ) -> ResolutionOutcome:
        """Like resolve_catalog, but return failures as a ResolutionOutcome."""
        try:
            items = self.resolve_catalog(
                fetch_page, filter_spec, sort_spec, cardinality, cancel_event, expand, require_match
            )
        except CatalogResolutionError as e:
            logger.debug("Catalog resolution ended with %s: %s", e.outcome_kind, e.message)
            return ResolutionOutcome.from_error(e, not_found_policy)
        return ResolutionOutcome.resolved(items)
