"""
Discovery Module - ranked candidate lists for a requester.

- filters.py: Pre-score criteria filters
- diversity.py: Final shaping of the ranked list
- service.py: CandidateDiscoveryService orchestrator
"""

from matchmaking.discovery.diversity import DiversityStrategy, TopNStrategy, IndustryCapStrategy
from matchmaking.discovery.filters import apply_filters, passes_criteria
from matchmaking.discovery.service import CandidateDiscoveryService

__all__ = [
    'CandidateDiscoveryService',
    'DiversityStrategy',
    'TopNStrategy',
    'IndustryCapStrategy',
    'apply_filters',
    'passes_criteria',
]
