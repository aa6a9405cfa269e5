#!/usr/bin/env python3
"""
Service-layer exceptions for the matching engine.

ValidationError and QuotaExceededError are expected, user-visible outcomes and
are never retried automatically. ConflictError signals a duplicate or racing
request on an already-terminal pair. DependencyError wraps failures of the
profile, relationship, counter, chat or notification collaborators.
"""

from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from matchmaking.models import Direction, MatchRecordDTO


class ServiceException(Exception):
    """Base exception for service layer errors."""
    pass


class ValidationError(ServiceException):
    """Raised for malformed criteria, directions or identifiers."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class NotFoundError(ServiceException):
    """Raised when a user or candidate is unknown."""
    pass


class QuotaExceededError(ServiceException):
    """Raised when a tier allowance is spent for the current period."""

    def __init__(self, message: str, resource: str, resets_in: int):
        super().__init__(message)
        self.resource = resource
        self.remaining = 0
        self.resets_in = resets_in


class ConflictError(ServiceException):
    """Raised on an attempted transition of an already-terminal ordered pair."""

    def __init__(self, message: str, existing: "MatchRecordDTO"):
        super().__init__(message)
        self.existing = existing

    def is_idempotent_for(self, direction: "Direction") -> bool:
        """True when the existing terminal state is what ``direction`` would have produced."""
        from matchmaking.models import Direction, MatchStatus

        if self.existing.status is MatchStatus.MATCHED:
            return direction is Direction.RIGHT
        if self.existing.status is MatchStatus.REJECTED:
            return direction is Direction.LEFT
        return False


class DependencyError(ServiceException):
    """Raised when a collaborator (database, cache, chat, notifications) fails."""
    pass
