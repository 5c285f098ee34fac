"""Resolution outcomes handed back to data source callers."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from catalog_resolver.domain.catalog import CatalogItem
from catalog_resolver.domain.exceptions import (
    AmbiguousError,
    CatalogResolutionError,
    NotFoundError,
    ValidationError,
)


class OutcomeKind(str, Enum):
    RESOLVED = "resolved"
    NOT_FOUND = "not_found"
    AMBIGUOUS = "ambiguous"
    FETCH_FAILED = "fetch_failed"
    INVALID_FILTER = "invalid_filter"


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class NotFoundPolicy(str, Enum):
    """How a data source reports an empty ExactlyOne/FirstN result."""

    ERROR = "error"
    WARNING = "warning"


class ResolutionOutcome(BaseModel):
    """Either the resolved item(s) or one terminal failure."""

    model_config = ConfigDict(frozen=True)

    kind: OutcomeKind
    items: list[CatalogItem] = Field(default_factory=list)
    summary: str = ""
    detail: str = ""
    identifiers: list[str] = Field(default_factory=list)
    severity: Optional[Severity] = None

    @classmethod
    def resolved(cls, items: list[CatalogItem]) -> "ResolutionOutcome":
        return cls(kind=OutcomeKind.RESOLVED, items=list(items))

    @classmethod
    def from_error(
        cls, error: CatalogResolutionError, not_found_policy: NotFoundPolicy = NotFoundPolicy.ERROR
    ) -> "ResolutionOutcome":
        """Convert a terminal resolution error into an outcome."""
        identifiers: list[str] = []
        if isinstance(error, AmbiguousError):
            identifiers = list(error.identifiers)
        elif isinstance(error, NotFoundError):
            identifiers = list(error.available)

        severity = Severity.ERROR
        if isinstance(error, NotFoundError) and not_found_policy is NotFoundPolicy.WARNING:
            severity = Severity.WARNING

        return cls(
            kind=OutcomeKind(error.outcome_kind),
            summary=error.summary,
            detail=error.message,
            identifiers=identifiers,
            severity=severity,
        )

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.RESOLVED

    @property
    def item(self) -> CatalogItem:
        """The single resolved item."""
        if not self.ok or len(self.items) != 1:
            raise ValidationError(
                f"Outcome does not hold exactly one item (kind={self.kind.value}, items={len(self.items)})"
            )
        return self.items[0]
