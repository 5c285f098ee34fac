"""Global test configuration and fixtures."""

import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any, Optional

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from catalog_resolver.domain.catalog import CatalogItem, Page, PageRequest  # noqa: E402


class RecordingFetcher:
    """Page fetcher serving canned pages and recording every request."""

    def __init__(
        self,
        pages: Sequence[Any],
        fail_at: Optional[int] = None,
        error: Optional[Exception] = None,
        first_page_index: int = 1,
    ) -> None:
        self.pages = list(pages)
        self.fail_at = fail_at
        self.error = error or ConnectionError("connection reset by peer")
        self.first_page_index = first_page_index
        self.requests: list[PageRequest] = []

    def __call__(self, request: PageRequest) -> Any:
        self.requests.append(request)
        if self.fail_at is not None and request.index == self.fail_at:
            raise self.error
        position = request.index - self.first_page_index
        if position < len(self.pages):
            return self.pages[position]
        return Page()

    @property
    def calls(self) -> int:
        return len(self.requests)


@pytest.fixture
def make_fetcher():
    """Factory for RecordingFetcher instances."""
    return RecordingFetcher


@pytest.fixture
def machine_types() -> list[CatalogItem]:
    """Catalog of machine types shaped like the IaaS API."""
    raw = [
        {"name": "c1.2", "vcpus": 2, "ram": 4096, "disk": 20, "extraSpecs": {"cpu": "intel-icelake-generic"}},
        {"name": "g1.1", "vcpus": 1, "ram": 4096, "disk": 20, "extraSpecs": {"cpu": "amd-epyc-rome"}},
        {"name": "s1.2", "vcpus": 2, "ram": 2048, "disk": 20, "extraSpecs": {"cpu": "intel-icelake-generic"}},
        {"name": "m1.4", "vcpus": 4, "ram": 32768, "disk": 50, "extraSpecs": {"cpu": "amd-epyc-rome", "overcommit": "1"}},
    ]
    return [CatalogItem.from_mapping(item) for item in raw]


@pytest.fixture
def images() -> list[dict[str, Any]]:
    """Images shaped like the IaaS image list."""
    return [
        {
            "id": "img-ubuntu-2204",
            "name": "Ubuntu 22.04",
            "config": {"operatingSystem": "linux", "operatingSystemDistro": "ubuntu", "operatingSystemVersion": "22.04", "uefi": True},
        },
        {
            "id": "img-ubuntu-2404",
            "name": "Ubuntu 24.04",
            "config": {"operatingSystem": "linux", "operatingSystemDistro": "ubuntu", "operatingSystemVersion": "24.04", "uefi": True},
        },
        {
            "id": "img-debian-12",
            "name": "Debian 12",
            "config": {"operatingSystem": "linux", "operatingSystemDistro": "debian", "operatingSystemVersion": "12", "uefi": False},
        },
        {
            "id": "img-windows-2022",
            "name": "Windows Server 2022",
            "config": {"operatingSystem": "windows", "secureBoot": True},
        },
    ]
