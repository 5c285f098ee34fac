"""Domain ports."""

from .catalog_port import PageFetcher, PageResult
from .diagnostics_port import DiagnosticsPort

__all__: list[str] = ["DiagnosticsPort", "PageFetcher", "PageResult"]
