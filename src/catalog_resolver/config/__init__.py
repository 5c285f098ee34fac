"""Configuration loading and schemas."""

from .schemas.resolver_schema import CatalogConfig, LoggingConfig, ResolverConfig
from .settings import load_config, load_settings

__all__: list[str] = ["CatalogConfig", "LoggingConfig", "ResolverConfig", "load_config", "load_settings"]
