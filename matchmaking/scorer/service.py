#!/usr/bin/env python3
"""
Compatibility Scorer - weighted eight-factor score between two profiles.

Formula:
- factor_i in [0, 1] for each of the eight factors (see factors.py)
- score = round(100 * sum(weight_i * factor_i)), clamped to [0, 100]

The scorer is a pure function of its inputs: it performs no I/O and holds no
mutable state, so a discovery batch may be scored concurrently.
"""

from typing import Callable, Dict, Optional
import logging

from matchmaking.config_loader import ScoringConfig, ScoringWeights
from matchmaking.models import Criteria, ProfileSnapshot
from matchmaking.scorer import factors as f
from matchmaking.scorer.models import CompatibilityResult, FACTOR_NAMES
from matchmaking.scorer.reasons import generate_reasons

logger = logging.getLogger(__name__)

SuccessHistoryProvider = Callable[[ProfileSnapshot, ProfileSnapshot], float]


def constant_success_history(value: float) -> SuccessHistoryProvider:
    """Success history provider that always returns ``value``."""
    def provider(me: ProfileSnapshot, other: ProfileSnapshot) -> float:
        return value
    return provider


class CompatibilityScorer:
    """
    Scores the fit between two profile snapshots.

    The success-history factor is pluggable: pass ``success_history`` to wire
    in a provider backed by past matches and reviews. Without one, the
    configured neutral constant is used.
    """

    def __init__(
        self,
        config: Optional[ScoringConfig] = None,
        success_history: Optional[SuccessHistoryProvider] = None
    ):
        self.config = config or ScoringConfig()
        self.weights: Dict[str, float] = self.config.weights.model_dump()
        self._success_history = success_history or constant_success_history(
            self.config.success_history_default
        )

    def factor_values(self, me: ProfileSnapshot, other: ProfileSnapshot) -> Dict[str, float]:
        """Evaluate every factor for the ordered pair (me, other)."""
        return {
            'industry_alignment': f.industry_alignment(me, other),
            'investment_fit': f.investment_fit(me, other),
            'experience_match': f.experience_match(me, other),
            'verification_level': f.verification_level(me, other),
            'success_history': max(0.0, min(1.0, float(self._success_history(me, other)))),
            'team_compatibility': f.team_compatibility(me, other),
            'business_model_fit': f.business_model_fit(me, other),
            'timeline_alignment': f.timeline_alignment(me, other),
        }

    def weighted_sum(self, factor_values: Dict[str, float]) -> float:
        return sum(self.weights[name] * factor_values[name] for name in FACTOR_NAMES)

    def score(
        self,
        me: ProfileSnapshot,
        other: ProfileSnapshot,
        criteria: Optional[Criteria] = None
    ) -> CompatibilityResult:
        """Score ``other`` from the point of view of ``me``.

        ``criteria`` narrows candidates in discovery; it does not change factor
        values and is accepted here so callers can pass it through unchanged.

        Returns:
            CompatibilityResult with score (0-100), factors and reasons
        """
        values = self.factor_values(me, other)
        raw = self.weighted_sum(values)
        score = max(0, min(100, round(100 * raw)))
        reasons = generate_reasons(me, other, values)

        logger.debug(f"Scored {me.user_id} -> {other.user_id}: {score} ({raw:.4f})")

        return CompatibilityResult(score=score, factors=values, reasons=reasons)

    def super_like_score(self, base_score: int) -> int:
        """Boosted score for a super-like: min(100, base * multiplier) with a hard floor."""
        boosted = min(100, round(base_score * self.config.super_like_multiplier))
        return max(self.config.super_like_floor, boosted)


def weights_total(weights: Optional[ScoringWeights] = None) -> float:
    """Sum of the configured factor weights (1.0 for any valid configuration)."""
    return sum((weights or ScoringWeights()).model_dump().values())
