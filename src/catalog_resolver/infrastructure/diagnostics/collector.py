"""In-memory diagnostics sink."""

from pydantic import BaseModel, ConfigDict

from catalog_resolver.domain.outcome import Severity
from catalog_resolver.domain.ports.diagnostics_port import DiagnosticsPort
from catalog_resolver.infrastructure.logging.logger import get_logger

logger = get_logger(__name__)


class Diagnostic(BaseModel):
    """One reported diagnostic."""

    model_config = ConfigDict(frozen=True)

    severity: Severity
    summary: str
    detail: str

    def __str__(self) -> str:
        return f"{self.severity.value}: {self.summary}: {self.detail}"


class DiagnosticsCollector(DiagnosticsPort):
    """Collects diagnostics and logs each one as it is reported."""

    def __init__(self) -> None:
        self.diagnostics: list[Diagnostic] = []

    def add_error(self, summary: str, detail: str) -> None:
        logger.error("%s: %s", summary, detail)
        self.diagnostics.append(Diagnostic(severity=Severity.ERROR, summary=summary, detail=detail))

    def add_warning(self, summary: str, detail: str) -> None:
        logger.warning("%s: %s", summary, detail)
        self.diagnostics.append(Diagnostic(severity=Severity.WARNING, summary=summary, detail=detail))

    def has_error(self) -> bool:
        return any(diagnostic.severity is Severity.ERROR for diagnostic in self.diagnostics)

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity is Severity.ERROR]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity is Severity.WARNING]

    def __len__(self) -> int:
        return len(self.diagnostics)
