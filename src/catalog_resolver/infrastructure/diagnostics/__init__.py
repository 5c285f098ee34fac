"""Diagnostics sinks."""

from .collector import Diagnostic, DiagnosticsCollector

__all__: list[str] = ["Diagnostic", "DiagnosticsCollector"]
