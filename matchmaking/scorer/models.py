#!/usr/bin/env python3
"""
Scoring Models - Data structures for compatibility results.
"""

from typing import List, Dict, Optional
from dataclasses import dataclass, field

from matchmaking.models import MatchQuality, ProfileSnapshot

FACTOR_NAMES = (
    'industry_alignment',
    'investment_fit',
    'experience_match',
    'verification_level',
    'success_history',
    'team_compatibility',
    'business_model_fit',
    'timeline_alignment',
)


@dataclass
class CompatibilityResult:
    """Score, per-factor breakdown and human-readable reasons for one pair."""
    score: int
    factors: Dict[str, float] = field(default_factory=dict)
    reasons: List[str] = field(default_factory=list)

    @property
    def match_quality(self) -> Optional[MatchQuality]:
        return MatchQuality.from_score(self.score)


@dataclass
class ScoredCandidate:
    """A discovery result: the candidate plus its compatibility with the requester."""
    profile: ProfileSnapshot
    score: int
    factors: Dict[str, float] = field(default_factory=dict)
    reasons: List[str] = field(default_factory=list)

    @property
    def user_id(self) -> str:
        return self.profile.user_id

    @property
    def match_quality(self) -> Optional[MatchQuality]:
        return MatchQuality.from_score(self.score)
