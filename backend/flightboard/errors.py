"""
Error types for the flight board.

Fetch failures are raised by the fetcher and decided on by the cache:
served around when stale data exists, surfaced otherwise. Row faults never
leave the extractor.
"""

from typing import Optional


class FlightboardError(Exception):
    """Base class for all flight board errors."""


class FetchError(FlightboardError):
    """The upstream page could not be turned into flight records."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.message = message
        self.cause = cause
        super().__init__(message)


class SourceUnreachable(FetchError):
    """Timeout, DNS/connection failure or a non-success HTTP status."""

    def __init__(
        self,
        message: str,
        cause: Optional[BaseException] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message, cause)
        self.status_code = status_code


class PageParseError(FetchError):
    """The response body could not be parsed as an HTML document."""


class RowParseError(FlightboardError):
    """A single table row could not be converted into a flight record."""


__all__ = [
    "FlightboardError",
    "FetchError",
    "SourceUnreachable",
    "PageParseError",
    "RowParseError",
]
