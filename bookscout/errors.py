"""Failure types raised by the search and recommendation flows."""
from typing import Optional


class BookScoutError(Exception):
    """Base class for every failure surfaced to callers."""


class ValidationFailure(BookScoutError):
    """Input rejected locally, before any network call."""


class SearchFailure(BookScoutError):
    """Open Library answered with a non-2xx status."""

    def __init__(self, status: int, message: str):
        self.status = status
        self.message = message
        super().__init__(f"Open Library API request failed ({status}): {message}")

    @property
    def forbidden(self) -> bool:
        return self.status == 403


class TransportFailure(BookScoutError):
    """The request never produced a response (DNS, connect, timeout...)."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)


class UpstreamContractFailure(BookScoutError):
    """A response arrived but does not have the expected shape."""
