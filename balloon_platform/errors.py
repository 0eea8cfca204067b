"""
Exceptions for balloon_platform operations.
"""

from typing import Optional


class BalloonPlatformError(Exception):
    """Base exception for balloon_platform errors."""

    pass


class UpstreamError(BalloonPlatformError):
    """An upstream provider was unreachable or returned an unusable body."""

    pass


class WeatherUpstreamError(UpstreamError):
    """The weather provider failed; surfaced to callers, never absorbed."""

    pass


class ConsolidationError(BalloonPlatformError):
    """A consolidation pass failed outside its per-file isolation."""

    pass


class InvalidRequestError(BalloonPlatformError):
    """Request parameters were missing or malformed."""

    pass


class ApiError(BalloonPlatformError):
    """Raised by route handlers; rendered as ``{error, message}`` JSON."""

    def __init__(self, status_code: int, error: str, message: Optional[str] = None) -> None:
        super().__init__(message or error)
        self.status_code = status_code
        self.error = error
        self.message = message
