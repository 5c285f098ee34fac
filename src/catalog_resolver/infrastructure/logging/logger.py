"""Structured logging setup using structlog on top of the standard library."""

import logging
import os
import sys
from typing import Any, Optional

import structlog

from catalog_resolver.config.schemas.resolver_schema import LoggingConfig

_ROOT_LOGGER = "catalog_resolver"
_configured = False


def setup_logging(config: Optional[LoggingConfig] = None) -> None:
    """
    Set up structured logging for the library.

    Args:
        config: Logging configuration, defaults to LoggingConfig()
    """
    global _configured
    config = config or LoggingConfig()

    handlers: list[logging.Handler] = []
    if config.destination in ("file", "both"):
        os.makedirs(config.directory, exist_ok=True)
        handlers.append(logging.FileHandler(os.path.join(config.directory, config.filename)))
    if config.destination in ("stdout", "both"):
        handlers.append(logging.StreamHandler(sys.stdout))

    shared_processors: list[Any] = [
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    renderer = structlog.processors.JSONRenderer() if config.json_format else structlog.dev.ConsoleRenderer(colors=False)
    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        foreign_pre_chain=shared_processors,
    )

    root = logging.getLogger(_ROOT_LOGGER)
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(getattr(logging, config.level, logging.INFO))
    _configured = True


def get_logger(name: str) -> Any:
    """Return a structlog logger, configuring logging on first use."""
    if not _configured:
        setup_logging()
    if not name.startswith(_ROOT_LOGGER):
        name = f"{_ROOT_LOGGER}.{name}"
    return structlog.get_logger(name)
