"""
Error taxonomy for the matching engine.

Lookup failures are retryable and always propagate to the caller; they are
never converted into an empty or "no preferences" result. Query validation
failures are not retryable and are raised before any scoring work begins.
"""

from __future__ import annotations

from typing import Optional


class MatchingError(Exception):
    """Base exception for all matching engine errors."""

    retryable: bool = False


class StoreUnavailable(MatchingError):
    """Raised by a store implementation when its backing storage cannot be read."""

    retryable = True


class ProfileLookupFailed(MatchingError):
    """Preference storage could not be read for an investor."""

    retryable = True

    def __init__(self, investor_id: Optional[str], reason: str):
        self.investor_id = investor_id
        self.reason = reason
        target = f"investor {investor_id}" if investor_id else "active investors"
        super().__init__(f"Preference lookup failed for {target}: {reason}")


class CatalogLookupFailed(MatchingError):
    """The property catalog (or a single property) could not be read."""

    retryable = True

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Catalog lookup failed: {reason}")


class InvalidQuery(MatchingError):
    """Match query parameters are out of range."""

    retryable = False

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class PropertyNotFound(MatchingError):
    """The fixed property of an inverse query does not exist."""

    retryable = False

    def __init__(self, property_id: str):
        self.property_id = property_id
        super().__init__(f"Property {property_id} not found")


class MatchDeadlineExceeded(MatchingError):
    """The request-scoped scoring deadline elapsed before scoring finished."""

    retryable = True

    def __init__(self, deadline_seconds: float, scored: int, candidates: int):
        self.deadline_seconds = deadline_seconds
        self.scored = scored
        self.candidates = candidates
        super().__init__(
            f"Scoring exceeded {deadline_seconds}s deadline "
            f"({scored}/{candidates} candidates scored)"
        )
