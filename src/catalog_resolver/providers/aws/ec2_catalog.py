"""EC2 catalogs (instance types and images) as page fetch callables."""

from typing import Any, Callable, Optional, Sequence

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from catalog_resolver.domain.catalog import Page, PageRequest
from catalog_resolver.domain.ports.catalog_port import PageFetcher
from catalog_resolver.infrastructure.logging.logger import get_logger

logger = get_logger(__name__)

# MaxResults bounds accepted by the EC2 API
_INSTANCE_TYPES_PAGE = (5, 100)
_IMAGES_PAGE = (6, 1000)


def _clamp(size: int, bounds: tuple[int, int]) -> int:
    low, high = bounds
    return max(low, min(size, high))


def instance_type_record(raw: dict[str, Any]) -> dict[str, Any]:
    """Flatten the fields filters usually need next to the raw payload."""
    return {
        **raw,
        "name": raw.get("InstanceType"),
        "vcpus": raw.get("VCpuInfo", {}).get("DefaultVCpus"),
        "ram": raw.get("MemoryInfo", {}).get("SizeInMiB"),
    }


def image_record(raw: dict[str, Any]) -> dict[str, Any]:
    return {**raw, "id": raw.get("ImageId"), "name": raw.get("Name")}


class Ec2CatalogClient:
    """Expose EC2 describe calls as token-paginated catalog fetchers."""

    def __init__(
        self,
        region_name: Optional[str] = None,
        profile_name: Optional[str] = None,
        client: Any = None,
        max_attempts: int = 3,
    ) -> None:
        """
        Initialize the EC2 catalog client.

        Args:
            region_name: AWS region, defaults to the session's region
            profile_name: AWS profile name
            client: Preconfigured boto3 EC2 client, mainly for tests
            max_attempts: Retry attempts handled by botocore
        """
        if client is None:
            session = boto3.Session(region_name=region_name, profile_name=profile_name)
            client = session.client(
                "ec2",
                config=Config(retries={"max_attempts": max_attempts, "mode": "adaptive"}),
            )
        self.client = client
        logger.debug("EC2 catalog client ready for region %s", self.client.meta.region_name)

    def _fetcher(
        self,
        operation: str,
        result_key: str,
        bounds: tuple[int, int],
        to_record: Callable[[dict[str, Any]], dict[str, Any]],
        **params: Any,
    ) -> PageFetcher:
        method = getattr(self.client, operation)

        def fetch(request: PageRequest) -> Page:
            kwargs = dict(params, MaxResults=_clamp(request.size, bounds))
            if request.token:
                kwargs["NextToken"] = request.token
            try:
                response = method(**kwargs)
            except ClientError as e:
                error_code = e.response.get("Error", {}).get("Code", "Unknown")
                logger.error("EC2 %s failed on page %d: %s", operation, request.index, error_code)
                raise
            token = response.get("NextToken") or None
            return Page(
                items=[to_record(raw) for raw in response.get(result_key, [])],
                next_token=token,
                has_more=token is not None,
            )

        return fetch

    def instance_types_fetcher(self, filters: Optional[Sequence[dict[str, Any]]] = None) -> PageFetcher:
        """Fetcher over describe_instance_types; records carry name, vcpus and ram."""
        params: dict[str, Any] = {}
        if filters:
            params["Filters"] = list(filters)
        return self._fetcher("describe_instance_types", "InstanceTypes", _INSTANCE_TYPES_PAGE, instance_type_record, **params)

    def images_fetcher(
        self,
        owners: Sequence[str] = ("self",),
        filters: Optional[Sequence[dict[str, Any]]] = None,
    ) -> PageFetcher:
        """Fetcher over describe_images; records carry id and name."""
        params: dict[str, Any] = {"Owners": list(owners)}
        if filters:
            params["Filters"] = list(filters)
        return self._fetcher("describe_images", "Images", _IMAGES_PAGE, image_record, **params)
