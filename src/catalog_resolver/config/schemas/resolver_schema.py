"""Resolver configuration schema."""

from typing import TYPE_CHECKING, Optional

from pydantic import BaseModel, Field, field_validator

from catalog_resolver.domain.outcome import NotFoundPolicy

if TYPE_CHECKING:
    from catalog_resolver.infrastructure.pagination.pager import Pager


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field("INFO", description="Log level name")
    destination: str = Field("stdout", description="Where to send logs: stdout, file or both")
    directory: str = Field("./logs", description="Directory for the log file")
    filename: str = Field("catalog_resolver.log", description="Log file name")
    json_format: bool = Field(False, description="Render log lines as JSON instead of console text")

    @field_validator("level")
    @classmethod
    def _normalise_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level {value!r}")
        return level

    @field_validator("destination")
    @classmethod
    def _check_destination(cls, value: str) -> str:
        if value not in ("stdout", "file", "both"):
            raise ValueError("destination must be one of stdout, file, both")
        return value


class CatalogConfig(BaseModel):
    """Per-catalog pagination overrides."""

    page_size: Optional[int] = Field(None, ge=1, description="Items requested per page")
    first_page_index: Optional[int] = Field(None, ge=0, le=1, description="Index of the first page (0 or 1)")
    max_pages: Optional[int] = Field(None, ge=1, description="Upper bound on pages fetched per walk")


class ResolverConfig(BaseModel):
    """Catalog resolver configuration."""

    page_size: int = Field(25, ge=1, description="Default items requested per page")
    first_page_index: int = Field(1, ge=0, le=1, description="Default index of the first page (0 or 1)")
    max_pages: int = Field(1000, ge=1, description="Upper bound on pages fetched per walk")
    summary_limit: int = Field(10, ge=1, description="Identifiers shown in ambiguity and not-found messages")
    identifier_fields: list[str] = Field(
        default_factory=lambda: ["id", "name"], description="Fields used to identify items in messages"
    )
    not_found_policy: NotFoundPolicy = Field(
        NotFoundPolicy.ERROR, description="Default severity of an empty single-item result"
    )
    catalogs: dict[str, CatalogConfig] = Field(default_factory=dict, description="Per-catalog overrides")
    logging: LoggingConfig = Field(default_factory=LoggingConfig, description="Logging configuration")

    def catalog(self, name: str) -> CatalogConfig:
        return self.catalogs.get(name.lower(), CatalogConfig())

    def pager_for(self, name: Optional[str] = None) -> "Pager":
        """Build a pager with the named catalog's overrides applied."""
        from catalog_resolver.infrastructure.pagination.pager import Pager

        override = self.catalog(name) if name else CatalogConfig()
        return Pager(
            page_size=override.page_size or self.page_size,
            first_page_index=(
                override.first_page_index if override.first_page_index is not None else self.first_page_index
            ),
            max_pages=override.max_pages or self.max_pages,
        )
