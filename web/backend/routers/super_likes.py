#!/usr/bin/env python3
"""
Super-like endpoints.
"""

import logging
from fastapi import APIRouter, Depends

from matchmaking.quota.service import QuotaService
from matchmaking.swipe.service import SwipeService
from ..dependencies import get_current_user_id, get_quota_service, get_swipe_service
from ..models.requests import SuperLikeRequest
from ..models.responses import MatchRecordSummary, SwipeResponse, ResourceUsageResponse, UsageSummary

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/super-likes", tags=["super-likes"])


@router.post("", response_model=SwipeResponse)
def super_like(
    request: SuperLikeRequest,
    user_id: str = Depends(get_current_user_id),
    service: SwipeService = Depends(get_swipe_service)
):
    """Super-like another user. Uses one of the caller's daily super-likes."""
    result = service.super_like(user_id, request.target_id)

    return SwipeResponse(
        success=True,
        is_match=result.is_match,
        chat_room_id=result.chat_room_id,
        record=MatchRecordSummary.from_record(result.record)
    )


@router.get("/status", response_model=ResourceUsageResponse)
def super_like_status(
    user_id: str = Depends(get_current_user_id),
    quota: QuotaService = Depends(get_quota_service)
):
    """Remaining super-likes today and seconds until they refill."""
    stats = quota.super_like_status(user_id)
    return ResourceUsageResponse(
        success=True,
        resource="super_likes",
        usage=UsageSummary.from_stats(stats)
    )
