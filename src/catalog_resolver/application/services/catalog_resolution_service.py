"""Application service resolving catalog queries for data source reads."""

import threading
from collections.abc import Sequence
from typing import Optional

from catalog_resolver.application.dto.catalog_query import CatalogQuery
from catalog_resolver.application.resolver import CatalogResolver
from catalog_resolver.config.schemas.resolver_schema import ResolverConfig
from catalog_resolver.domain.outcome import ResolutionOutcome, Severity
from catalog_resolver.domain.ports.diagnostics_port import DiagnosticsPort
from catalog_resolver.infrastructure.logging.logger import get_logger

logger = get_logger(__name__)


class CatalogResolutionService:
    """
    Resolve CatalogQuery objects and report failures to a diagnostics sink.

    Each read builds its own pager from configuration, so concurrent reads
    share nothing but the immutable configuration.
    """

    def __init__(self, config: Optional[ResolverConfig] = None) -> None:
        self.config = config or ResolverConfig()

    def resolver_for(self, catalog: str, identifier_fields: Optional[Sequence[str]] = None) -> CatalogResolver:
        return CatalogResolver(
            pager=self.config.pager_for(catalog),
            identifier_fields=identifier_fields or self.config.identifier_fields,
            summary_limit=self.config.summary_limit,
        )

    def read(
        self,
        query: CatalogQuery,
        diagnostics: DiagnosticsPort,
        cancel_event: Optional[threading.Event] = None,
    ) -> ResolutionOutcome:
        """
        Resolve a query and report the result to the diagnostics sink.

        Not-found outcomes are reported as warnings when the query's
        not_found_policy says so; every other failure is an error. Advice the
        query gives about resolved items is reported as warnings.
        """
        resolver = self.resolver_for(query.catalog, query.identifier_fields)
        policy = query.not_found_policy or self.config.not_found_policy
        logger.info(
            "Reading catalog %s (%s, %s)",
            query.catalog,
            query.filter_spec.describe(),
            query.cardinality,
        )
        outcome = resolver.outcome(
            query.fetch_page,
            query.filter_spec,
            query.sort_spec,
            query.cardinality,
            cancel_event=cancel_event,
            not_found_policy=policy,
            expand=query.expand,
            require_match=query.require_match,
        )

        self.report(outcome, diagnostics)
        if outcome.ok:
            logger.info("Catalog %s resolved to %d item(s)", query.catalog, len(outcome.items))
            if query.advise is not None:
                for summary, detail in query.advise(outcome.items):
                    diagnostics.add_warning(summary, detail)
        return outcome

    @staticmethod
    def report(outcome: ResolutionOutcome, diagnostics: DiagnosticsPort) -> None:
        """Forward a failed outcome to the diagnostics sink."""
        if outcome.ok:
            return
        if outcome.severity is Severity.WARNING:
            diagnostics.add_warning(outcome.summary, outcome.detail)
        else:
            diagnostics.add_error(outcome.summary, outcome.detail)
