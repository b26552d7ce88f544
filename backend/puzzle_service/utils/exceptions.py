"""
Connections Puzzle Service - Custom Exceptions
Fetch error taxonomy with HTTP error handling
"""
from typing import Optional, Any, Dict
from fastapi import HTTPException, status


class PuzzleServiceError(Exception):
    """Base exception for the puzzle service."""

    def __init__(
        self,
        message: str = "An error occurred",
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Error payload for API responses."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


# =========================
# Input Exceptions
# =========================

class InvalidInputError(PuzzleServiceError):
    """Request input rejected before any I/O."""

    def __init__(
        self,
        message: str = "Invalid input",
        code: str = "INVALID_INPUT",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, code=code, details=details)


class InvalidDateFormatError(InvalidInputError):
    """Date is not a real YYYY-MM-DD calendar date."""

    def __init__(self, date: Any, reason: Optional[str] = None):
        message = reason or f"Invalid date format: {date!r}. Expected YYYY-MM-DD"
        super().__init__(
            message=message,
            code="INVALID_DATE_FORMAT",
            details={"date": date},
        )
        self.date = date


class DateOutOfRangeError(InvalidInputError):
    """Date is in the future or before the puzzle launched."""

    def __init__(self, date: str, reason: str):
        super().__init__(
            message=reason,
            code="DATE_OUT_OF_RANGE",
            details={"date": date},
        )
        self.date = date


# =========================
# Source Exceptions
# =========================

class FetchError(PuzzleServiceError):
    """Error attributed to a single puzzle source."""

    def __init__(
        self,
        source: str,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.source = source
        self.reason = message
        details = dict(details or {})
        details.setdefault("source", source)
        super().__init__(message=f"[{source}] {message}", code=code, details=details)


class NotFoundError(FetchError):
    """Source confirms it has no puzzle for the date."""

    def __init__(self, source: str, date: str, message: Optional[str] = None):
        super().__init__(
            source,
            message or f"No puzzle available for {date}",
            code="NOT_FOUND",
            details={"date": date},
        )
        self.date = date


class TransientNetworkError(FetchError):
    """Timeout or connection failure; retryable."""

    def __init__(
        self,
        source: str,
        message: str,
        status_code: Optional[int] = None,
    ):
        super().__init__(
            source,
            message,
            code="TRANSIENT_NETWORK",
            details={"status_code": status_code} if status_code else None,
        )
        self.status_code = status_code
        self.attempts = 1
        self.exhausted = False


class PersistentSourceError(FetchError):
    """Access denied or repeated server errors; source should be benched."""

    def __init__(
        self,
        source: str,
        message: str,
        status_code: Optional[int] = None,
    ):
        super().__init__(
            source,
            message,
            code="PERSISTENT_SOURCE",
            details={"status_code": status_code} if status_code else None,
        )
        self.status_code = status_code


class MalformedDataError(FetchError):
    """Source responded but the record failed to parse or validate."""

    def __init__(
        self,
        source: str,
        message: str,
        errors: Optional[list[str]] = None,
    ):
        self.errors = list(errors or [])
        if self.errors:
            message = f"{message}: {'; '.join(self.errors)}"
        super().__init__(
            source,
            message,
            code="MALFORMED_DATA",
            details={"errors": self.errors},
        )


# =========================
# Orchestration Exceptions
# =========================

class ExhaustedError(PuzzleServiceError):
    """Every source was tried and none produced a record."""

    def __init__(self, message: str, last_error: Optional[BaseException] = None):
        details = {}
        if last_error is not None:
            details["last_error"] = str(last_error)
            details["last_error_type"] = type(last_error).__name__
        super().__init__(message=message, code="EXHAUSTED", details=details)
        self.last_error = last_error


class FetchInProgressError(PuzzleServiceError):
    """A fetch for the same date is already running."""

    def __init__(self, date: str):
        super().__init__(
            message=f"Fetch already in progress for {date}",
            code="FETCH_IN_PROGRESS",
            details={"date": date},
        )
        self.date = date


class ConcurrencyLimitError(PuzzleServiceError):
    """Too many dates are being fetched at once."""

    def __init__(self, limit: int):
        super().__init__(
            message=f"Too many concurrent fetches (limit {limit})",
            code="CONCURRENCY_LIMIT",
            details={"limit": limit},
        )
        self.limit = limit


class FetcherConfigurationError(PuzzleServiceError):
    """Registered object does not implement the fetcher contract."""

    def __init__(self, message: str = "Invalid fetcher configuration"):
        super().__init__(message=message, code="FETCHER_CONFIGURATION")


# =========================
# HTTP Exception Helpers
# =========================

def raise_bad_request(message: Any = "Bad request"):
    """Raise 400 Bad Request exception."""
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=message
    )


def raise_conflict(message: Any = "Conflict"):
    """Raise 409 Conflict exception."""
    raise HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail=message
    )


def raise_too_many_requests(message: Any = "Too many requests"):
    """Raise 429 Too Many Requests exception."""
    raise HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail=message
    )


def raise_service_unavailable(message: Any = "Service unavailable"):
    """Raise 503 Service Unavailable exception."""
    raise HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=message
    )


def raise_for_service_error(error: PuzzleServiceError):
    """Translate a service error into the matching HTTP exception."""
    payload = error.to_dict()
    if isinstance(error, InvalidInputError):
        raise_bad_request(payload)
    if isinstance(error, FetchInProgressError):
        raise_conflict(payload)
    if isinstance(error, ConcurrencyLimitError):
        raise_too_many_requests(payload)
    raise_service_unavailable(payload)
