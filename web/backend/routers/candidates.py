#!/usr/bin/env python3
"""
Candidate discovery endpoints.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from matchmaking.discovery.service import CandidateDiscoveryService
from matchmaking.models import Criteria, InvestmentRange
from ..dependencies import get_current_user_id, get_discovery_service
from ..models.responses import CandidateSummary, CandidatesResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/candidates", tags=["candidates"])


@router.get("", response_model=CandidatesResponse)
def find_candidates(
    industries: List[str] = Query(default=[], description="Industries of interest (any match)"),
    investment_min: Optional[float] = Query(default=None, description="Minimum investment amount"),
    investment_max: Optional[float] = Query(default=None, description="Maximum investment amount"),
    experience: Optional[float] = Query(default=None, description="Minimum years of experience"),
    verification_level: Optional[str] = Query(default=None, description="Minimum verification level"),
    business_type: List[str] = Query(default=[], description="Business types"),
    market_size: Optional[str] = Query(default=None, description="small, medium, large or enterprise"),
    timeline: Optional[str] = Query(default=None, description="Investment timeline bucket"),
    verified_only: bool = Query(default=False, description="Only verified candidates"),
    user_id: str = Depends(get_current_user_id),
    service: CandidateDiscoveryService = Depends(get_discovery_service)
):
    """
    Ranked counterparties for the caller.

    Consumes one daily match view per call. Returns 429 with a Retry-After
    header once the caller's tier allowance is spent.
    """
    investment_range = None
    if investment_min is not None or investment_max is not None:
        investment_range = InvestmentRange(
            min=investment_min if investment_min is not None else 0,
            max=investment_max
        )

    criteria = Criteria(
        industries=industries,
        investment_range=investment_range,
        experience_years=experience,
        verification_level=verification_level,
        business_types=business_type,
        market_size=market_size,
        timeline=timeline,
        verified_only=verified_only
    )

    candidates = service.find_candidates(user_id, criteria)

    return CandidatesResponse(
        success=True,
        count=len(candidates),
        candidates=[CandidateSummary.from_candidate(c) for c in candidates]
    )
