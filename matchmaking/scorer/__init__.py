#!/usr/bin/env python3
"""
Scoring Module - compatibility between an entrepreneur and a funder.

Public API:
- CompatibilityScorer: weighted eight-factor scorer
- CompatibilityResult: score, factor breakdown and reasons
- ScoredCandidate: discovery result wrapper

- models.py: Data structures
- factors.py: One pure function per factor
- reasons.py: Human-readable reasons from factor thresholds
- service.py: CompatibilityScorer orchestrator
"""

from matchmaking.scorer.models import CompatibilityResult, ScoredCandidate, FACTOR_NAMES
from matchmaking.scorer.service import CompatibilityScorer, constant_success_history

__all__ = [
    'CompatibilityScorer',
    'CompatibilityResult',
    'ScoredCandidate',
    'FACTOR_NAMES',
    'constant_success_history',
]
