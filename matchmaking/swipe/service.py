#!/usr/bin/env python3
"""
Swipe Service - the write path of the matching engine.

Every swipe on a pair runs in one transaction that first takes a lock on the
unordered pair, so the two directions of a pair are never decided
concurrently. Order of effects for a single request:

1. quota (super-likes only)
2. match record mutation, committed
3. chat room creation (matches only)
4. notifications

A failure in step 3 leaves a matched pair without a room; it is repaired on
the next read of that pair or by ``repair_missing_rooms``. Failures in step 4
are logged and never undo a match.

Usage:
    service = SwipeService(match_uow, scorer, quota, chat, notifier)
    result = service.swipe("user-a", "user-b", "right")
    if result.is_match:
        print(result.chat_room_id)
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple, Union
import logging

from sqlalchemy.exc import SQLAlchemyError

from matchmaking.exceptions import (
    ConflictError,
    DependencyError,
    NotFoundError,
    QuotaExceededError,
    ValidationError,
)
from matchmaking.interfaces import (
    ChatCollaborator,
    DuplicateRecord,
    MatchEvent,
    NotificationCollaborator,
    UnitOfWorkFactory,
)
from matchmaking.models import (
    Direction,
    MatchQuality,
    MatchRecordDTO,
    MatchStatus,
    ProfileSnapshot,
    SubscriptionTier,
    SwipeResult,
    pair_key,
)
from matchmaking.quota.limits import ResourceKind
from matchmaking.quota.service import QuotaService
from matchmaking.scorer.service import CompatibilityScorer
from matchmaking.swipe.events import match_event, super_like_event, super_match_event

logger = logging.getLogger(__name__)


@dataclass
class _Outcome:
    """What a committed swipe transaction decided."""
    record: MatchRecordDTO
    reciprocal: Optional[MatchRecordDTO] = None
    newly_matched: bool = False
    notify_super_like: bool = False
    super_like_applied: bool = False
    conflict: bool = False

    @property
    def is_match(self) -> bool:
        return self.record.status is MatchStatus.MATCHED

    @property
    def priority(self) -> bool:
        return self.record.super_liked or bool(self.reciprocal and self.reciprocal.super_liked)


class SwipeService:
    """
    Records swipe decisions and super-likes and detects mutual matches.

    Args:
        uow_factory: Callable returning a unit-of-work context manager that
            yields ``profiles`` and ``relationships`` stores
        scorer: CompatibilityScorer used for pending and matched records
        quota: QuotaService charging super-likes
        chat: ChatCollaborator creating one room per matched pair
        notifier: Optional NotificationCollaborator
        clock: Optional callable returning the current UTC time
    """

    # First attempt plus one retry-as-lookup after a duplicate insert
    MAX_ATTEMPTS = 2

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        scorer: CompatibilityScorer,
        quota: QuotaService,
        chat: ChatCollaborator,
        notifier: Optional[NotificationCollaborator] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.uow_factory = uow_factory
        self.scorer = scorer
        self.quota = quota
        self.chat = chat
        self.notifier = notifier
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def swipe(self, initiator_id: str, target_id: str, direction: Union[Direction, str]) -> SwipeResult:
        """
        Record a left or right swipe of ``initiator_id`` on ``target_id``.

        Returns:
            SwipeResult; ``is_match`` is True only when this swipe completed a
            mutual match (the chat room exists by then)

        Raises:
            ValidationError: bad direction or self-swipe
            NotFoundError: unknown user
            ConflictError: the ordered pair is already matched or rejected
            DependencyError: store or chat failure
        """
        direction = Direction.parse(direction)
        self._validate_pair(initiator_id, target_id)

        if direction is Direction.LEFT:
            outcome = self._in_transaction(self._left_tx, initiator_id, target_id)
        else:
            outcome = self._in_transaction(self._right_tx, initiator_id, target_id, False)

        logger.info(
            f"Swipe {direction.value}: {initiator_id} -> {target_id} "
            f"({outcome.record.status.value}{', conflict' if outcome.conflict else ''})"
        )
        return self._finish(outcome)

    def super_like(self, initiator_id: str, target_id: str) -> SwipeResult:
        """
        Right swipe with a boosted score, paid from the daily super-like quota.

        A terminal pair is rejected before any quota is spent. A super-like
        re-delivered on an already super-liked pending record is returned
        unchanged and not charged again.

        Raises:
            QuotaExceededError: no super-likes left today
        """
        self._validate_pair(initiator_id, target_id)

        existing, reciprocal, tier = self._precheck_super_like(initiator_id, target_id)
        if existing is not None:
            if existing.status.is_terminal:
                return self._finish(_Outcome(record=existing, reciprocal=reciprocal, conflict=True))
            if existing.super_liked:
                logger.info(f"Super-like {initiator_id} -> {target_id} re-delivered, not charged")
                return SwipeResult(is_match=False, record=existing)

        decision = self.quota.check_and_consume(initiator_id, ResourceKind.SUPER_LIKES, tier=tier)
        if not decision.allowed:
            raise QuotaExceededError(
                "No super likes remaining",
                resource=ResourceKind.SUPER_LIKES.value,
                resets_in=decision.resets_in
            )

        # The pair can change between the unlocked precheck and the locked
        # transaction; a super-like that ends up not applied is given back
        try:
            outcome = self._in_transaction(self._right_tx, initiator_id, target_id, True)
        except DependencyError:
            self._refund_super_like(initiator_id, tier)
            raise
        if not outcome.super_like_applied:
            self._refund_super_like(initiator_id, tier)

        logger.info(
            f"Super-like: {initiator_id} -> {target_id} "
            f"({outcome.record.status.value}, score {outcome.record.compatibility_score}, "
            f"{decision.remaining if decision.remaining is not None else 'unlimited'} left)"
        )
        return self._finish(outcome)

    def get_matches(self, user_id: str) -> List[MatchRecordDTO]:
        """Active matches of ``user_id`` (their side of each pair)."""
        try:
            with self.uow_factory() as uow:
                if uow.profiles.get(user_id) is None:
                    raise NotFoundError(f"User {user_id} not found")
                records = uow.relationships.list_matched(user_id)
        except SQLAlchemyError as e:
            raise DependencyError(f"Relationship store unavailable: {e}") from e

        for record in records:
            if record.chat_room_id is None:
                try:
                    self._repair_room(record)
                except DependencyError as e:
                    logger.error(f"Chat room repair failed for match {record.id}: {e}")
        return records

    def get_match(self, user_id: str, other_id: str) -> MatchRecordDTO:
        """The active match between two users, repairing its chat room if missing."""
        try:
            with self.uow_factory() as uow:
                record = uow.relationships.get(user_id, other_id)
        except SQLAlchemyError as e:
            raise DependencyError(f"Relationship store unavailable: {e}") from e

        if record is None or record.status is not MatchStatus.MATCHED:
            raise NotFoundError(f"No active match between {user_id} and {other_id}")
        if record.chat_room_id is None:
            self._repair_room(record)
        return record

    def repair_missing_rooms(self, limit: int = 100) -> int:
        """
        Create chat rooms for matched pairs that lack one.

        Returns:
            Number of pairs repaired
        """
        try:
            with self.uow_factory() as uow:
                records = uow.relationships.find_missing_rooms(limit=limit)
        except SQLAlchemyError as e:
            raise DependencyError(f"Relationship store unavailable: {e}") from e

        seen = set()
        repaired = 0
        for record in records:
            key = pair_key(record.initiator_id, record.target_id)
            if key in seen:
                continue
            seen.add(key)
            try:
                self._repair_room(record)
                repaired += 1
            except DependencyError as e:
                logger.error(f"Chat room repair failed for {key}: {e}")

        if records:
            logger.info(f"Repaired chat rooms for {repaired}/{len(seen)} matched pairs")
        return repaired

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def _in_transaction(self, tx: Callable[..., _Outcome], *args) -> _Outcome:
        for attempt in range(1, self.MAX_ATTEMPTS + 1):
            try:
                with self.uow_factory() as uow:
                    return tx(uow, *args)
            except DuplicateRecord as e:
                # A concurrent delivery inserted the same ordered pair; the next
                # attempt reads it back instead of inserting
                logger.info(f"Duplicate swipe insert for {args[0]} -> {args[1]}, retrying as lookup")
                if attempt == self.MAX_ATTEMPTS:
                    raise DependencyError(f"Could not record swipe for {args[0]} -> {args[1]}") from e
            except SQLAlchemyError as e:
                logger.error(f"Relationship store failure for {args[0]} -> {args[1]}: {e}")
                raise DependencyError(f"Relationship store unavailable: {e}") from e

    def _left_tx(self, uow, initiator_id: str, target_id: str) -> _Outcome:
        self._load_pair(uow, initiator_id, target_id)
        rel = uow.relationships
        rel.lock_pair(initiator_id, target_id)

        existing = rel.get(initiator_id, target_id)
        now = self._clock()
        if existing is not None:
            if existing.status.is_terminal:
                return _Outcome(record=existing, reciprocal=rel.get(target_id, initiator_id), conflict=True)
            record = rel.transition(initiator_id, target_id, MatchStatus.REJECTED, responded_at=now)
            logger.info(f"{initiator_id} withdrew pending like on {target_id}")
        else:
            record = rel.create(initiator_id, target_id, MatchStatus.REJECTED)

        reverse = rel.transition(target_id, initiator_id, MatchStatus.REJECTED, responded_at=now)
        if reverse is not None:
            logger.info(f"Pending like {target_id} -> {initiator_id} rejected")
        return _Outcome(record=record, reciprocal=reverse)

    def _right_tx(self, uow, initiator_id: str, target_id: str, super_like: bool) -> _Outcome:
        me, other = self._load_pair(uow, initiator_id, target_id)
        rel = uow.relationships
        rel.lock_pair(initiator_id, target_id)

        existing = rel.get(initiator_id, target_id)
        if existing is not None:
            if existing.status.is_terminal:
                return _Outcome(record=existing, reciprocal=rel.get(target_id, initiator_id), conflict=True)
            if super_like and not existing.super_liked:
                result, score = self._score(me, other, super_like=True)
                record = rel.attach_scores(
                    initiator_id, target_id,
                    compatibility_score=score,
                    compatibility_factors=result.factors,
                    match_reasons=result.reasons,
                    match_quality=MatchQuality.from_score(score),
                    super_liked=True
                )
                return _Outcome(record=record, notify_super_like=True, super_like_applied=True)
            # Re-delivered right swipe on a pending record
            return _Outcome(record=existing)

        reciprocal = rel.transition(target_id, initiator_id, MatchStatus.MATCHED, responded_at=self._clock())
        if reciprocal is not None:
            # Each record is scored from its owner's side; a super match boosts both
            super_match = super_like or reciprocal.super_liked
            result, score = self._score(me, other, super_like=super_match)
            their_result, their_score = self._score(other, me, super_like=super_match)

            record = rel.create(
                initiator_id, target_id, MatchStatus.MATCHED,
                compatibility_score=score,
                compatibility_factors=result.factors,
                match_reasons=result.reasons,
                match_quality=MatchQuality.from_score(score),
                super_liked=super_like
            )
            reciprocal = rel.attach_scores(
                target_id, initiator_id,
                compatibility_score=their_score,
                compatibility_factors=their_result.factors,
                match_reasons=their_result.reasons,
                match_quality=MatchQuality.from_score(their_score)
            )
            logger.info(f"Mutual match {initiator_id} <-> {target_id} (scores {score}/{their_score})")
            return _Outcome(record=record, reciprocal=reciprocal, newly_matched=True, super_like_applied=super_like)

        result, score = self._score(me, other, super_like=super_like)
        quality = MatchQuality.from_score(score)
        record = rel.create(
            initiator_id, target_id, MatchStatus.PENDING,
            compatibility_score=score,
            compatibility_factors=result.factors,
            match_reasons=result.reasons,
            match_quality=quality,
            super_liked=super_like
        )
        return _Outcome(record=record, notify_super_like=super_like, super_like_applied=super_like)

    # ------------------------------------------------------------------
    # After commit
    # ------------------------------------------------------------------

    def _finish(self, outcome: _Outcome) -> SwipeResult:
        record = outcome.record

        if outcome.conflict:
            if record.status is MatchStatus.MATCHED and record.chat_room_id is None:
                logger.warning(f"Matched pair {record.initiator_id} <-> {record.target_id} has no chat room")
                record.chat_room_id = self._ensure_room(record.initiator_id, record.target_id, outcome.priority)
            raise ConflictError(
                f"Swipe on {record.target_id} already recorded as {record.status.value}",
                existing=record
            )

        if not outcome.is_match:
            if outcome.notify_super_like:
                self._notify(record.target_id, super_like_event(record))
            return SwipeResult(is_match=False, record=record)

        room_id = record.chat_room_id
        if room_id is None:
            room_id = self._ensure_room(record.initiator_id, record.target_id, outcome.priority)
            record.chat_room_id = room_id
            if outcome.reciprocal is not None:
                outcome.reciprocal.chat_room_id = room_id

        if outcome.newly_matched:
            build = super_match_event if outcome.priority else match_event
            self._notify(record.initiator_id, build(record, record.target_id, room_id))
            self._notify(record.target_id, build(outcome.reciprocal or record, record.initiator_id, room_id))

        return SwipeResult(is_match=True, record=record, chat_room_id=room_id)

    def _ensure_room(self, user_a: str, user_b: str, priority: bool) -> str:
        """Create (or fetch) the pair's chat room and store its id on both records."""
        try:
            room_id = self.chat.create_room(user_a, user_b, priority=priority)
        except DependencyError:
            raise
        except Exception as e:
            logger.error(f"Chat room creation failed for {user_a} <-> {user_b}: {e}")
            raise DependencyError(f"Chat service unavailable: {e}") from e

        try:
            with self.uow_factory() as uow:
                uow.relationships.attach_chat_room(user_a, user_b, room_id)
        except SQLAlchemyError as e:
            logger.error(f"Could not store chat room {room_id} on {user_a} <-> {user_b}: {e}")
            raise DependencyError(f"Relationship store unavailable: {e}") from e

        logger.info(f"Chat room {room_id} ready for {user_a} <-> {user_b}{' (priority)' if priority else ''}")
        return room_id

    def _repair_room(self, record: MatchRecordDTO) -> str:
        try:
            with self.uow_factory() as uow:
                reciprocal = uow.relationships.get(record.target_id, record.initiator_id)
        except SQLAlchemyError as e:
            raise DependencyError(f"Relationship store unavailable: {e}") from e

        priority = record.super_liked or bool(reciprocal and reciprocal.super_liked)
        logger.warning(f"Repairing missing chat room for {record.initiator_id} <-> {record.target_id}")
        record.chat_room_id = self._ensure_room(record.initiator_id, record.target_id, priority)
        return record.chat_room_id

    def _notify(self, user_id: str, event: MatchEvent) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier.notify(user_id, event)
        except Exception as e:
            logger.error(f"Failed to notify {user_id} of {event.event_type}: {e}")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _precheck_super_like(
        self,
        initiator_id: str,
        target_id: str
    ) -> Tuple[Optional[MatchRecordDTO], Optional[MatchRecordDTO], SubscriptionTier]:
        """Read-only look at the pair before any quota is spent."""
        try:
            with self.uow_factory() as uow:
                me, _ = self._load_pair(uow, initiator_id, target_id)
                existing = uow.relationships.get(initiator_id, target_id)
                reciprocal = uow.relationships.get(target_id, initiator_id)
        except SQLAlchemyError as e:
            raise DependencyError(f"Relationship store unavailable: {e}") from e
        return existing, reciprocal, me.subscription_tier

    def _refund_super_like(self, user_id: str, tier: SubscriptionTier) -> None:
        try:
            self.quota.refund(user_id, ResourceKind.SUPER_LIKES, tier=tier)
        except DependencyError as e:
            logger.error(f"Could not refund super-like to {user_id}: {e}")

    def _score(self, me: ProfileSnapshot, other: ProfileSnapshot, super_like: bool):
        result = self.scorer.score(me, other)
        score = self.scorer.super_like_score(result.score) if super_like else result.score
        return result, score

    @staticmethod
    def _load_pair(uow, initiator_id: str, target_id: str) -> Tuple[ProfileSnapshot, ProfileSnapshot]:
        me = uow.profiles.get(initiator_id)
        if me is None:
            raise NotFoundError(f"User {initiator_id} not found")
        other = uow.profiles.get(target_id)
        if other is None:
            raise NotFoundError(f"User {target_id} not found")
        return me, other

    @staticmethod
    def _validate_pair(initiator_id: str, target_id: str) -> None:
        if not initiator_id or not target_id:
            raise ValidationError("Both initiator and target user ids are required", field='target_id')
        if str(initiator_id) == str(target_id):
            raise ValidationError("Cannot swipe on yourself", field='target_id')
