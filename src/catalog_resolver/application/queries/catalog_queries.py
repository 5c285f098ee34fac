"""
Catalog queries for the read-only data sources.

Each builder turns data source arguments into a CatalogQuery resolved by
CatalogResolutionService. Attribute names follow the API payloads
(``vcpus``, ``nodeType``, ``config.operatingSystem``...).
"""

import re
from collections.abc import Mapping
from typing import Any, Optional

from catalog_resolver.application.dto.catalog_query import CatalogQuery
from catalog_resolver.domain.catalog import CatalogItem
from catalog_resolver.domain.exceptions import InvalidFilterError
from catalog_resolver.domain.filters import (
    AllOf,
    Cardinality,
    ExpressionFilter,
    FilterSpec,
    MatchAll,
    NameMatchFilter,
    SortKind,
    SortSpec,
    StructuredFilter,
)
from catalog_resolver.domain.outcome import NotFoundPolicy
from catalog_resolver.domain.ports.catalog_port import PageFetcher

MACHINE_TYPES = "machine_types"
IMAGES = "images"
FLAVORS = "flavors"
KUBERNETES_VERSIONS = "kubernetes_versions"
MACHINE_IMAGE_VERSIONS = "machine_image_versions"

IMAGE_FILTER_FIELDS = {
    "os": "config.operatingSystem",
    "distro": "config.operatingSystemDistro",
    "version": "config.operatingSystemVersion",
    "uefi": "config.uefi",
    "secure_boot": "config.secureBoot",
}

SUPPORTED = "supported"
PREVIEW = "preview"
DEPRECATED = "deprecated"

_FULL_VERSION_RE = re.compile(r"^\d+\.\d+\.\d+$")
_PARTIAL_VERSION_RE = re.compile(r"^\d+(\.\d+)?$")


def machine_type_query(fetch_page: PageFetcher, expression: str, sort_ascending: bool = False) -> CatalogQuery:
    """First machine type matching an expression, sorted by name."""
    return CatalogQuery(
        catalog=MACHINE_TYPES,
        fetch_page=fetch_page,
        filter_spec=ExpressionFilter(expression=expression),
        sort_spec=SortSpec(field="name", descending=not sort_ascending),
        cardinality=Cardinality.first(1),
        not_found_policy=NotFoundPolicy.WARNING,
        require_match=True,
    )


def image_query(
    fetch_page: PageFetcher,
    name: Optional[str] = None,
    name_regex: Optional[str] = None,
    criteria: Optional[Mapping[str, Any]] = None,
    sort_ascending: bool = False,
) -> CatalogQuery:
    """
    First image matching a name or name regex plus optional criteria.

    Criteria keys are either the short names of IMAGE_FILTER_FIELDS
    (``os``, ``distro``, ``version``, ``uefi``, ``secure_boot``) or attribute
    paths.

    Raises:
        InvalidFilterError: If both name and name_regex are given
    """
    if name and name_regex:
        raise InvalidFilterError("name and name_regex are mutually exclusive", name_regex)

    filters: list[FilterSpec] = []
    if name:
        filters.append(NameMatchFilter(pattern=name))
    elif name_regex:
        filters.append(NameMatchFilter(pattern=name_regex, regex=True))
    if criteria:
        filters.append(
            StructuredFilter(criteria={IMAGE_FILTER_FIELDS.get(key, key): value for key, value in criteria.items()})
        )

    return CatalogQuery(
        catalog=IMAGES,
        fetch_page=fetch_page,
        filter_spec=AllOf(filters=tuple(filters)),
        sort_spec=SortSpec(field="name", descending=not sort_ascending),
        cardinality=Cardinality.first(1),
        not_found_policy=NotFoundPolicy.WARNING,
        require_match=True,
    )


def flavor_query(
    fetch_page: PageFetcher,
    cpu: int,
    memory: int,
    node_type: Optional[str] = None,
    storage_class: Optional[str] = None,
) -> CatalogQuery:
    """Exactly one database flavor by CPU, memory, node type and storage class."""
    return CatalogQuery(
        catalog=FLAVORS,
        fetch_page=fetch_page,
        filter_spec=AllOf(
            filters=(
                StructuredFilter(criteria={"cpu": cpu, "memory": memory, "storageClasses.class": storage_class}),
                StructuredFilter(criteria={"nodeType": node_type}, ignore_case=True),
            )
        ),
        cardinality=Cardinality.exactly_one(),
        not_found_policy=NotFoundPolicy.ERROR,
    )


def version_filter(version_min: Optional[str]) -> FilterSpec:
    """
    Filter for versioned catalogs, in any state.

    A full version (``1.29.3``) selects that exact version, a partial one
    (``1.29``) every version with that prefix, and none every version.

    Raises:
        InvalidFilterError: If version_min is not a version
    """
    if not version_min:
        return MatchAll()
    if _FULL_VERSION_RE.match(version_min):
        return StructuredFilter(criteria={"version": version_min})
    if not _PARTIAL_VERSION_RE.match(version_min):
        raise InvalidFilterError("Invalid version", version_min)
    return NameMatchFilter(pattern=rf"^{re.escape(version_min)}(\.|$)", regex=True, field="version")


def version_order(include_preview: bool = False) -> tuple[SortSpec, ...]:
    """Supported versions first, then previews, then deprecated ones; newest first within a state."""
    ranking = {SUPPORTED: 0, PREVIEW: 0 if include_preview else 1, DEPRECATED: 2}
    return (
        SortSpec(field="state", kind=SortKind.RANK, ranking=ranking),
        SortSpec(field="version", descending=True, kind=SortKind.VERSION),
    )


def advise_version_state(items: list[CatalogItem]) -> list[tuple[str, str]]:
    """Warnings about a selected preview or deprecated version."""
    warnings: list[tuple[str, str]] = []
    for item in items:
        version = item.lookup("version")
        state = item.lookup("state")
        if version is None or state is None:
            continue
        if state.text() == PREVIEW:
            warnings.append(
                (
                    "Preview version selected",
                    f"Only the preview version {version.text()!r} matched the selection criteria",
                )
            )
        elif state.text() == DEPRECATED:
            warnings.append(
                ("Deprecated version selected", f"Version {version.text()} is deprecated, please update it")
            )
    return warnings


def kubernetes_version_query(
    fetch_page: PageFetcher, version_min: Optional[str] = None, include_preview: bool = False
) -> CatalogQuery:
    """Best Kubernetes version matching ``version_min``."""
    return CatalogQuery(
        catalog=KUBERNETES_VERSIONS,
        fetch_page=fetch_page,
        filter_spec=version_filter(version_min),
        sort_spec=version_order(include_preview),
        cardinality=Cardinality.first(1),
        require_match=True,
        identifier_fields=("version",),
        advise=advise_version_state,
    )


def expand_image_versions(image_name: str):
    """Build an expander yielding one record per version of the named machine image."""

    def expand(images: list[CatalogItem]) -> list[dict[str, Any]]:
        versions: list[dict[str, Any]] = []
        for image in images:
            name = image.lookup("name")
            if name is None or name.value != image_name:
                continue
            entries = image.to_dict().get("versions") or []
            if not isinstance(entries, list):
                raise ValueError(f"versions of machine image {image_name!r} is not a list")
            for entry in entries:
                # bare version strings carry no state
                if isinstance(entry, Mapping):
                    versions.append({"name": image_name, **entry})
        return versions

    return expand


def machine_image_version_query(
    fetch_page: PageFetcher, image_name: str, version_min: Optional[str] = None
) -> CatalogQuery:
    """Best version of a machine image matching ``version_min``."""
    return CatalogQuery(
        catalog=MACHINE_IMAGE_VERSIONS,
        fetch_page=fetch_page,
        filter_spec=version_filter(version_min),
        sort_spec=version_order(),
        cardinality=Cardinality.first(1),
        expand=expand_image_versions(image_name),
        require_match=True,
        identifier_fields=("version",),
        advise=advise_version_state,
    )
