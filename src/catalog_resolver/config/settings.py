"""Settings loading with dynaconf."""

from collections.abc import Mapping
from typing import Any, Optional, Sequence

from dynaconf import Dynaconf
from pydantic import ValidationError as PydanticValidationError

from catalog_resolver.config.schemas.resolver_schema import ResolverConfig
from catalog_resolver.domain.exceptions import ConfigurationError

ENVVAR_PREFIX = "CATALOG_RESOLVER"
DEFAULT_SETTINGS_FILES = ["catalog_resolver.toml", "catalog_resolver.json"]


def load_settings(settings_files: Optional[Sequence[str]] = None) -> Dynaconf:
    """
    Load raw settings from files and environment.

    Settings files use dynaconf environments (``[default]``,
    ``[development]``...) selected with ``CATALOG_RESOLVER_ENV``. Any key can
    be overridden with a ``CATALOG_RESOLVER_`` prefixed environment variable,
    nested keys with a double underscore (``CATALOG_RESOLVER_LOGGING__LEVEL``).
    """
    return Dynaconf(
        envvar_prefix=ENVVAR_PREFIX,
        settings_files=list(settings_files) if settings_files is not None else DEFAULT_SETTINGS_FILES,
        environments=True,
        env_switcher=f"{ENVVAR_PREFIX}_ENV",
        load_dotenv=True,
        merge_enabled=True,
    )


def _lower_keys(data: Any) -> Any:
    if isinstance(data, Mapping):
        return {str(key).lower(): _lower_keys(value) for key, value in data.items()}
    if isinstance(data, list):
        return [_lower_keys(value) for value in data]
    return data


def load_config(settings_files: Optional[Sequence[str]] = None, **overrides: Any) -> ResolverConfig:
    """
    Load and validate the resolver configuration.

    Args:
        settings_files: Settings files to read, defaults to DEFAULT_SETTINGS_FILES
        **overrides: Values taking precedence over files and environment

    Raises:
        ConfigurationError: If the merged settings do not validate
    """
    settings = load_settings(settings_files)
    known = set(ResolverConfig.model_fields)
    raw = {key: value for key, value in _lower_keys(settings.as_dict()).items() if key in known}
    raw.update(overrides)
    try:
        return ResolverConfig.model_validate(raw)
    except PydanticValidationError as e:
        raise ConfigurationError(
            f"Invalid catalog resolver configuration: {e.error_count()} error(s)",
            details={"errors": [f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors()]},
        ) from e
