#!/usr/bin/env python3
"""
Swipe endpoints.
"""

import logging
from fastapi import APIRouter, Depends

from matchmaking.swipe.service import SwipeService
from ..dependencies import get_current_user_id, get_swipe_service
from ..models.requests import SwipeRequest
from ..models.responses import MatchRecordSummary, SwipeResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/swipes", tags=["swipes"])


@router.post("", response_model=SwipeResponse)
def swipe(
    request: SwipeRequest,
    user_id: str = Depends(get_current_user_id),
    service: SwipeService = Depends(get_swipe_service)
):
    """
    Record a left or right swipe on another user.

    A right swipe on someone who already liked the caller completes a match
    and returns the chat room id.
    """
    result = service.swipe(user_id, request.target_id, request.direction)

    return SwipeResponse(
        success=True,
        is_match=result.is_match,
        chat_room_id=result.chat_room_id,
        record=MatchRecordSummary.from_record(result.record)
    )
