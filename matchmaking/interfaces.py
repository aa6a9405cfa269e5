"""
Collaborator Interfaces - abstractions the matching services depend on.

Default implementations live in ``database.repositories`` (PostgreSQL),
``matchmaking.quota.store`` (Redis) and ``notification`` (RQ / in-app).
"""
from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from matchmaking.models import (
    Criteria,
    MatchRecordDTO,
    MatchStatus,
    ProfileSnapshot,
    Role,
    SubscriptionTier,
)


class ProfileStore(ABC):
    """Read access to counterparty profiles."""

    @abstractmethod
    def get(self, user_id: str) -> Optional[ProfileSnapshot]:
        """Return the profile snapshot for ``user_id`` or None if unknown."""
        pass

    @abstractmethod
    def list_candidates(
        self,
        role: Role,
        exclude_ids: Iterable[str],
        tier_ceiling: SubscriptionTier,
        filters: Optional[Criteria] = None,
        exclude_related_to: Optional[str] = None
    ) -> List[ProfileSnapshot]:
        """
        List profiles of ``role`` at or below ``tier_ceiling``.

        Args:
            role: Role of the candidates
            exclude_ids: User ids never returned
            tier_ceiling: Highest subscription tier returned
            filters: Criteria the store may use to narrow results cheaply
            exclude_related_to: Drop users with any match record with this user
        """
        pass


class RelationshipStore(ABC):
    """Directional match records. Written only by the swipe service."""

    @abstractmethod
    def lock_pair(self, user_a: str, user_b: str) -> None:
        """Serialize work on the unordered pair until the unit of work ends."""
        pass

    @abstractmethod
    def get(self, initiator_id: str, target_id: str) -> Optional[MatchRecordDTO]:
        pass

    @abstractmethod
    def get_pending(self, initiator_id: str, target_id: str) -> Optional[MatchRecordDTO]:
        pass

    @abstractmethod
    def create(
        self,
        initiator_id: str,
        target_id: str,
        status: MatchStatus,
        compatibility_score: Optional[int] = None,
        compatibility_factors: Optional[Dict[str, float]] = None,
        match_reasons: Optional[List[str]] = None,
        match_quality: Optional[str] = None,
        super_liked: bool = False
    ) -> MatchRecordDTO:
        """Insert a record. Raises DuplicateRecord if the ordered pair already exists."""
        pass

    @abstractmethod
    def transition(
        self,
        initiator_id: str,
        target_id: str,
        to_status: MatchStatus,
        responded_at: Optional[datetime] = None
    ) -> Optional[MatchRecordDTO]:
        """
        Conditionally move a pending record to ``to_status``.

        Returns the updated record, or None when no pending record exists
        for the ordered pair.
        """
        pass

    @abstractmethod
    def attach_scores(
        self,
        initiator_id: str,
        target_id: str,
        compatibility_score: int,
        compatibility_factors: Dict[str, float],
        match_reasons: List[str],
        match_quality: Optional[str],
        super_liked: Optional[bool] = None
    ) -> Optional[MatchRecordDTO]:
        pass

    @abstractmethod
    def attach_chat_room(self, user_a: str, user_b: str, chat_room_id: str) -> int:
        """Set chat_room_id on both directions of the pair. Returns rows updated."""
        pass

    @abstractmethod
    def find_missing_rooms(self, limit: int = 100) -> List[MatchRecordDTO]:
        """Matched records that have no chat room yet."""
        pass

    @abstractmethod
    def list_matched(self, user_id: str) -> List[MatchRecordDTO]:
        """Matched records initiated by ``user_id``."""
        pass


class DuplicateRecord(Exception):
    """Raised by RelationshipStore.create when the ordered pair already has a record."""
    pass


class UnitOfWork(ABC):
    """Stores bound to one transaction."""
    profiles: ProfileStore
    relationships: RelationshipStore


UnitOfWorkFactory = Callable[[], AbstractContextManager]


class CounterStore(ABC):
    """Expiring integer counters (quota persistence)."""

    @abstractmethod
    def get(self, key: str) -> Optional[int]:
        pass

    @abstractmethod
    def ttl(self, key: str) -> int:
        """Seconds until ``key`` expires, 0 if missing or persistent."""
        pass

    @abstractmethod
    def set_with_expiry(self, key: str, value: int, ttl_seconds: int) -> None:
        pass

    @abstractmethod
    def decr_if_positive(self, key: str, initial: int, ttl_seconds: int) -> Tuple[bool, int, int]:
        """
        Atomically consume one unit from ``key``.

        If the key is absent it is created with ``initial - 1`` and the given
        expiry. Otherwise it is decremented only while its value is > 0.

        Returns:
            Tuple of (allowed, remaining, ttl_seconds)
        """
        pass

    @abstractmethod
    def incr_with_expiry(self, key: str, ttl_seconds: int) -> int:
        pass

    @abstractmethod
    def delete(self, *keys: str) -> None:
        pass


class ChatCollaborator(ABC):

    @abstractmethod
    def create_room(self, user_a: str, user_b: str, priority: bool = False) -> str:
        """Create (or return the existing) chat room for the pair. Returns its id."""
        pass


@dataclass
class MatchEvent:
    """User-facing event handed to the notification collaborator."""
    event_type: str  # match, super_like, super_match
    title: str
    body: str
    priority: str = "normal"
    counterpart_id: Optional[str] = None
    match_id: Optional[str] = None
    payload: Dict[str, Any] = field(default_factory=dict)


class NotificationCollaborator(ABC):

    @abstractmethod
    def notify(self, user_id: str, event: MatchEvent) -> Optional[str]:
        """Deliver ``event`` to ``user_id``. Returns a notification id, None if suppressed."""
        pass
