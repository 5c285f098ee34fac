"""Catalog query DTO."""

from typing import Any, Callable, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from catalog_resolver.domain.filters import EXACTLY_ONE, Cardinality, FilterSpec, MatchAll, SortSpec
from catalog_resolver.domain.outcome import NotFoundPolicy


class CatalogQuery(BaseModel):
    """Everything a data source read needs to resolve a catalog."""

    model_config = ConfigDict(frozen=True)

    catalog: str = Field(description="Catalog name, used for configuration overrides and logging")
    fetch_page: Callable[..., Any] = Field(description="Page fetch callable bound to endpoint, project and region")
    filter_spec: FilterSpec = Field(default_factory=MatchAll)
    sort_spec: Optional[Union[SortSpec, tuple[SortSpec, ...]]] = Field(
        None, description="One sort key, or several in priority order"
    )
    cardinality: Cardinality = EXACTLY_ONE
    not_found_policy: Optional[NotFoundPolicy] = Field(
        None, description="Severity of an empty result, defaults to the configured policy"
    )
    expand: Optional[Callable[..., Any]] = Field(
        None, description="Maps the fetched catalog to the records resolved, e.g. nested versions"
    )
    require_match: bool = Field(
        False, description="Report an empty ALL/FIRST_N result as not found, following not_found_policy"
    )
    identifier_fields: Optional[tuple[str, ...]] = Field(
        None, description="Fields naming items in failure messages, defaults to the configured fields"
    )
    advise: Optional[Callable[..., Any]] = Field(
        None, description="Returns (summary, detail) warnings about the resolved items"
    )
