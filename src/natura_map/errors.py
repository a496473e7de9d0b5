"""Error taxonomy for the observation search pipeline.

Only the search orchestrator turns these into user-visible statuses; every
other component raises them to its caller.
"""

from __future__ import annotations


class NaturaMapError(Exception):
    """Base class for all natura-map errors."""


class InvalidQueryError(NaturaMapError, ValueError):
    """Query has no taxon id, taxon name or place id. Rejected before any I/O."""


class TransportError(NaturaMapError):
    """Non-success response (other than throttling) or network failure."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ThrottledError(TransportError):
    """The remote service kept answering 429 after the scheduler's one retry."""

    def __init__(self, message: str = "iNaturalist API rate limit exceeded") -> None:
        super().__init__(message, status_code=429)


class CancelledError(NaturaMapError):
    """The search was cancelled or superseded by a newer one."""
