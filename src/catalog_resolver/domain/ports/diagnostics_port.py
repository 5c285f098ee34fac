"""Domain port for reporting resolution diagnostics."""

from abc import ABC, abstractmethod


class DiagnosticsPort(ABC):
    """Sink for user-facing resolution diagnostics."""

    @abstractmethod
    def add_error(self, summary: str, detail: str) -> None:
        """Report a hard failure."""

    @abstractmethod
    def add_warning(self, summary: str, detail: str) -> None:
        """Report a non-fatal condition."""

    @abstractmethod
    def has_error(self) -> bool:
        """Check whether any error was reported."""
