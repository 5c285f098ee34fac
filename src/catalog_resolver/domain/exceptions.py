"""Domain exceptions for catalog resolution."""

from typing import Any, Optional, Sequence


class DomainException(Exception):
    """Base exception for all catalog resolver errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        """
        Initialize domain exception.

        Args:
            message: Human readable description of the failure
            error_code: Stable machine readable code, defaults to the class name
            details: Additional structured context
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging and diagnostics."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(DomainException):
    """Raised when an argument or model fails validation."""


class ConfigurationError(DomainException):
    """Raised when resolver configuration is invalid."""


class CatalogResolutionError(DomainException):
    """Base class for the terminal outcomes of a resolution call."""

    outcome_kind: str = "failed"
    summary: str = "Catalog resolution failed"


class FetchFailedError(CatalogResolutionError):
    """
    Reading the catalog failed and aborted the resolution.

    ``page_index`` names the failed page; it is None when the fetched payload
    as a whole could not be turned into catalog items.
    """

    outcome_kind = "fetch_failed"
    summary = "Error reading catalog"

    def __init__(
        self, page_index: Optional[int], cause: Optional[BaseException] = None, message: Optional[str] = None
    ) -> None:
        self.page_index = page_index
        self.cause = cause
        if message is None:
            message = "Reading catalog failed" if page_index is None else f"Fetching catalog page {page_index} failed"
            if cause is not None:
                message = f"{message}: {cause}"
        super().__init__(
            message,
            error_code="FETCH_FAILED",
            details={
                "page_index": page_index,
                "cause": repr(cause) if cause is not None else None,
            },
        )


class PaginationCancelledError(FetchFailedError):
    """The caller cancelled the pagination walk between two page fetches."""

    summary = "Catalog read cancelled"

    def __init__(self, page_index: int) -> None:
        super().__init__(page_index, message=f"Pagination cancelled before fetching page {page_index}")
        self.error_code = "FETCH_CANCELLED"


class InvalidFilterError(CatalogResolutionError):
    """The filter configuration is malformed."""

    outcome_kind = "invalid_filter"
    summary = "Invalid filter"

    def __init__(self, message: str, fragment: Optional[str] = None, position: Optional[int] = None) -> None:
        self.fragment = fragment
        self.position = position
        if fragment is not None:
            message = f"{message}: {fragment!r}"
            if position is not None:
                message = f"{message} at position {position}"
        super().__init__(
            message,
            error_code="INVALID_FILTER",
            details={"fragment": fragment, "position": position},
        )


class NotFoundError(CatalogResolutionError):
    """No catalog item satisfied the filter."""

    outcome_kind = "not_found"
    summary = "No match"

    def __init__(self, message: str, available: Sequence[str] = ()) -> None:
        self.available = tuple(available)
        super().__init__(message, error_code="NOT_FOUND", details={"available": list(self.available)})


class AmbiguousError(CatalogResolutionError):
    """More than one catalog item satisfied a filter expected to select one."""

    outcome_kind = "ambiguous"
    summary = "Ambiguous match"

    def __init__(self, message: str, identifiers: Sequence[str]) -> None:
        self.identifiers = tuple(identifiers)
        super().__init__(
            message,
            error_code="AMBIGUOUS",
            details={"identifiers": list(self.identifiers), "match_count": len(self.identifiers)},
        )

    @property
    def match_count(self) -> int:
        return len(self.identifiers)
