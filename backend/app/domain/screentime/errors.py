"""Domain-level exceptions for screen-time reporting."""

from __future__ import annotations

from typing import Optional

from app.infra.rate_limit import RateLimitExceeded


class ScreenTimeError(Exception):
    """Base class for screen-time feature errors."""

    reason: str = "unknown"

    def __init__(self, message: str | None = None, *, field: Optional[str] = None) -> None:
        super().__init__(message or self.reason)
        self.field = field


class InvalidScope(ScreenTimeError):
    reason = "invalid_scope"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or "scope must be one of week, month, year", field="scope")


class MissingReference(ScreenTimeError):
    reason = "missing_reference"


class InvalidReference(ScreenTimeError):
    reason = "invalid_reference"


class InvalidEntry(ScreenTimeError):
    reason = "invalid_entry"


class SubmissionWindowClosed(ScreenTimeError):
    reason = "week_not_allowed"


class UpstreamFetchFailure(ScreenTimeError):
    """The entry store could not be read or written."""

    reason = "upstream_unavailable"

    def __init__(self, operation: str) -> None:
        super().__init__(f"entry store failed during {operation}")
        self.operation = operation


class EntryRateLimitExceeded(RateLimitExceeded):
    """Raised when a user submits entries faster than the budget allows."""


class RateLimitUnavailable(ScreenTimeError):
    """The submission budget could not be checked because Redis failed."""

    reason = "rate_limit_unavailable"
