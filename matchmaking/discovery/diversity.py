"""
Diversity strategies - final shaping of a ranked candidate list.

The default strategy keeps the top N. Alternatives can rebalance the list
(e.g. cap candidates per industry) as long as they only drop or reorder.
"""

from abc import ABC, abstractmethod
from typing import Dict, List

from matchmaking.scorer.models import ScoredCandidate


class DiversityStrategy(ABC):

    @abstractmethod
    def apply(self, ranked: List[ScoredCandidate]) -> List[ScoredCandidate]:
        """Shape a list already sorted by score (highest first)."""
        pass


class TopNStrategy(DiversityStrategy):
    """Keep the ``max_results`` best candidates."""

    def __init__(self, max_results: int = 20):
        self.max_results = max_results

    def apply(self, ranked: List[ScoredCandidate]) -> List[ScoredCandidate]:
        return ranked[:self.max_results]


class IndustryCapStrategy(DiversityStrategy):
    """
    Limit how many candidates share the same primary industry, then take top N.

    The primary industry is the alphabetically first one, so the choice is
    deterministic for a given profile.
    """

    def __init__(self, per_industry: int = 5, max_results: int = 20):
        self.per_industry = per_industry
        self.max_results = max_results

    def apply(self, ranked: List[ScoredCandidate]) -> List[ScoredCandidate]:
        seen: Dict[str, int] = {}
        kept = []
        for candidate in ranked:
            industries = sorted(candidate.profile.industries)
            primary = industries[0].lower() if industries else ''
            if seen.get(primary, 0) >= self.per_industry:
                continue
            seen[primary] = seen.get(primary, 0) + 1
            kept.append(candidate)
            if len(kept) >= self.max_results:
                break
        return kept
