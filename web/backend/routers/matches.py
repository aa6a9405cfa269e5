#!/usr/bin/env python3
"""
Match endpoints - the caller's active matches.
"""

import logging
from fastapi import APIRouter, Depends

from matchmaking.swipe.service import SwipeService
from ..dependencies import get_current_user_id, get_swipe_service
from ..models.responses import MatchDetailResponse, MatchesResponse, MatchRecordSummary

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/matches", tags=["matches"])


@router.get("", response_model=MatchesResponse)
def get_matches(
    user_id: str = Depends(get_current_user_id),
    service: SwipeService = Depends(get_swipe_service)
):
    """Active (mutual) matches of the caller, newest first."""
    records = service.get_matches(user_id)
    return MatchesResponse(
        success=True,
        count=len(records),
        matches=[MatchRecordSummary.from_record(r) for r in records]
    )


@router.get("/{other_id}", response_model=MatchDetailResponse)
def get_match(
    other_id: str,
    user_id: str = Depends(get_current_user_id),
    service: SwipeService = Depends(get_swipe_service)
):
    """The caller's match with ``other_id``."""
    record = service.get_match(user_id, other_id)
    return MatchDetailResponse(success=True, match=MatchRecordSummary.from_record(record))
