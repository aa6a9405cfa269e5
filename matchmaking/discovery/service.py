#!/usr/bin/env python3
"""
Candidate Discovery - the read path of the matching engine.

Steps:
1. Load the requester and gate on remaining match views (read-only peek)
2. List opposite-role candidates at or below the requester's tier, excluding
   anyone the requester already has a match record with
3. Apply the requester's criteria
4. Score every survivor
5. Rank (score desc, user id asc) and shape with the diversity strategy
6. Record the view atomically; a denial here means a concurrent request spent
   the last unit, so nothing is returned
"""
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional
import logging

from sqlalchemy.exc import SQLAlchemyError

from matchmaking.config_loader import DiscoveryConfig
from matchmaking.discovery.diversity import DiversityStrategy, TopNStrategy
from matchmaking.discovery.filters import apply_filters
from matchmaking.exceptions import DependencyError, NotFoundError, QuotaExceededError
from matchmaking.interfaces import UnitOfWorkFactory
from matchmaking.models import Criteria, ProfileSnapshot
from matchmaking.quota.limits import ResourceKind
from matchmaking.quota.service import QuotaService
from matchmaking.scorer.models import ScoredCandidate
from matchmaking.scorer.service import CompatibilityScorer

logger = logging.getLogger(__name__)


class CandidateDiscoveryService:
    """
    Finds and ranks counterparties for a requester.

    Args:
        uow_factory: Callable returning a unit-of-work context manager that
            yields an object with ``profiles`` and ``relationships`` stores
        scorer: CompatibilityScorer
        quota: QuotaService gating match views
        config: DiscoveryConfig (max results, parallel scoring)
        diversity: Strategy shaping the ranked list; top-N by default
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        scorer: CompatibilityScorer,
        quota: QuotaService,
        config: Optional[DiscoveryConfig] = None,
        diversity: Optional[DiversityStrategy] = None
    ):
        self.uow_factory = uow_factory
        self.scorer = scorer
        self.quota = quota
        self.config = config or DiscoveryConfig()
        self.diversity = diversity or TopNStrategy(self.config.max_results)

    def find_candidates(self, user_id: str, criteria: Optional[Criteria] = None) -> List[ScoredCandidate]:
        """
        Return ranked candidates for ``user_id``.

        Raises:
            ValidationError: malformed criteria
            NotFoundError: unknown requester
            QuotaExceededError: no match views left this period
            DependencyError: profile or counter store failure
        """
        criteria = (criteria or Criteria()).validate()

        try:
            with self.uow_factory() as uow:
                me = uow.profiles.get(user_id)
                if me is None:
                    raise NotFoundError(f"User {user_id} not found")

                self._ensure_views_left(me)

                candidates = uow.profiles.list_candidates(
                    role=me.role.opposite,
                    exclude_ids={me.user_id},
                    tier_ceiling=me.subscription_tier,
                    filters=criteria,
                    exclude_related_to=me.user_id
                )
        except SQLAlchemyError as e:
            logger.error(f"Profile store failure during discovery for {user_id}: {e}")
            raise DependencyError(f"Profile store unavailable: {e}") from e

        survivors = apply_filters(candidates, criteria)
        logger.info(f"Discovery for {user_id}: {len(candidates)} candidates, {len(survivors)} after filters")

        scored = self._score_all(me, survivors, criteria)
        ranked = sorted(scored, key=lambda c: (-c.score, c.user_id))
        results = self.diversity.apply(ranked)

        decision = self.quota.check_and_consume(user_id, ResourceKind.MATCH_VIEWS, tier=me.subscription_tier)
        if not decision.allowed:
            raise QuotaExceededError(
                "Daily match view limit reached for your subscription tier",
                resource=ResourceKind.MATCH_VIEWS.value,
                resets_in=decision.resets_in
            )

        return results

    def _ensure_views_left(self, me: ProfileSnapshot) -> None:
        usage = self.quota.peek_usage(me.user_id, ResourceKind.MATCH_VIEWS, tier=me.subscription_tier)
        if usage.remaining is not None and usage.remaining <= 0:
            logger.info(f"{me.user_id} has no match views left ({usage.current}/{usage.limit})")
            raise QuotaExceededError(
                "Daily match view limit reached for your subscription tier",
                resource=ResourceKind.MATCH_VIEWS.value,
                resets_in=usage.resets_in
            )

    def _score_one(self, me: ProfileSnapshot, other: ProfileSnapshot, criteria: Criteria) -> ScoredCandidate:
        result = self.scorer.score(me, other, criteria)
        return ScoredCandidate(
            profile=other,
            score=result.score,
            factors=result.factors,
            reasons=result.reasons
        )

    def _score_all(
        self,
        me: ProfileSnapshot,
        candidates: List[ProfileSnapshot],
        criteria: Criteria
    ) -> List[ScoredCandidate]:
        if self.config.parallel_scoring and len(candidates) > 1:
            with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
                return list(executor.map(lambda other: self._score_one(me, other, criteria), candidates))
        return [self._score_one(me, other, criteria) for other in candidates]
