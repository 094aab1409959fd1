# carrymatch/core/matching/exceptions.py
"""
Matching domain errors.
Each carries an error_code used in API error bodies.
"""

from __future__ import annotations

from typing import Any


class MatchingError(Exception):
    """Base for every matching error."""

    error_code = "matching_error"

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or None


class NotFoundError(MatchingError):
    """An id does not resolve to a record."""

    error_code = "not_found"


class MatchNotFoundError(NotFoundError):
    error_code = "match_not_found"

    def __init__(self, match_id: int) -> None:
        super().__init__(f"Match {match_id} not found", match_id=match_id)
        self.match_id = match_id


class SourceError(MatchingError):
    """Failure while reading from the Demand or Journey service."""

    error_code = "source_error"


class SourceNotFoundError(SourceError, NotFoundError):
    """The Demand or Journey service does not know the id."""

    error_code = "source_not_found"

    def __init__(self, kind: str, entity_id: str | int) -> None:
        super().__init__(f"{kind.capitalize()} {entity_id} not found", kind=kind, entity_id=entity_id)
        self.kind = kind
        self.entity_id = entity_id


class SourceUnavailableError(SourceError):
    """Transport failure or malformed payload after retries."""

    error_code = "source_unavailable"


class InvalidStateError(MatchingError):
    """The entity is not in a state that allows the operation."""

    error_code = "invalid_state"


class UnauthorizedError(MatchingError):
    """The caller is not the party entitled to act."""

    error_code = "unauthorized"


class ConcurrentUpdateError(MatchingError):
    """Optimistic write kept losing to concurrent updates."""

    error_code = "concurrent_update"


class StaleMatchError(Exception):
    """Raised by the ledger when a save lost an optimistic version check."""

    def __init__(self, match_id: int, version: int) -> None:
        super().__init__(f"Match {match_id} changed since version {version}")
        self.match_id = match_id
        self.version = version
