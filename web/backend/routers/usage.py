#!/usr/bin/env python3
"""
Usage endpoints - quota consumption for the current period.
"""

import logging
from fastapi import APIRouter, Depends

from matchmaking.quota.limits import ResourceKind
from matchmaking.quota.service import QuotaService
from ..dependencies import get_current_user_id, get_quota_service
from ..models.responses import ResourceUsageResponse, UsageResponse, UsageSummary

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/usage", tags=["usage"])


@router.get("", response_model=UsageResponse)
def get_usage(
    user_id: str = Depends(get_current_user_id),
    quota: QuotaService = Depends(get_quota_service)
):
    """Usage of every quota resource. Never consumes anything."""
    summary = quota.usage_summary(user_id)
    return UsageResponse(
        success=True,
        usage={resource: UsageSummary.from_stats(stats) for resource, stats in summary.items()}
    )


@router.get("/{resource}", response_model=ResourceUsageResponse)
def get_resource_usage(
    resource: str,
    user_id: str = Depends(get_current_user_id),
    quota: QuotaService = Depends(get_quota_service)
):
    """Usage of a single resource (match_views, super_likes, monthly_messages)."""
    kind = ResourceKind.parse(resource)
    stats = quota.peek_usage(user_id, kind)
    return ResourceUsageResponse(
        success=True,
        resource=kind.value,
        usage=UsageSummary.from_stats(stats)
    )
