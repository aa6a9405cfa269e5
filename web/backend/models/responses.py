#!/usr/bin/env python3
"""
Response models for API endpoints.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Dict

from matchmaking.models import MatchRecordDTO
from matchmaking.quota.service import UsageStats
from matchmaking.scorer.models import ScoredCandidate


class CandidateSummary(BaseModel):
    """A scored discovery candidate."""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "user_id": "f-102",
                "display_name": "Northwind Ventures",
                "role": "funder",
                "subscription_tier": "Gold",
                "verification_level": "FiscalAnalysis",
                "compatibility_score": 81,
                "match_quality": "HIGH",
                "factors": {"industry_alignment": 1.0, "investment_fit": 1.0},
                "reasons": ["Shared interest in fintech", "Investment amount within your range"]
            }
        }
    )

    user_id: str
    display_name: Optional[str] = None
    role: str
    subscription_tier: str
    verification_level: str
    compatibility_score: int = Field(ge=0, le=100)
    match_quality: Optional[str] = None
    factors: Dict[str, float] = Field(default_factory=dict)
    reasons: List[str] = Field(default_factory=list)

    @classmethod
    def from_candidate(cls, candidate: ScoredCandidate) -> "CandidateSummary":
        profile = candidate.profile
        return cls(
            user_id=profile.user_id,
            display_name=profile.display_name,
            role=profile.role.value,
            subscription_tier=profile.subscription_tier.label,
            verification_level=profile.verification_level.label,
            compatibility_score=candidate.score,
            match_quality=candidate.match_quality.value if candidate.match_quality else None,
            factors=candidate.factors,
            reasons=candidate.reasons
        )


class CandidatesResponse(BaseModel):
    success: bool = True
    count: int
    candidates: List[CandidateSummary]


class MatchRecordSummary(BaseModel):
    """One direction of a swipe relationship."""
    match_id: str
    initiator_id: str
    target_id: str
    status: str
    compatibility_score: Optional[int] = None
    match_quality: Optional[str] = None
    match_reasons: List[str] = Field(default_factory=list)
    super_liked: bool = False
    chat_room_id: Optional[str] = None
    created_at: Optional[str] = None
    responded_at: Optional[str] = None

    @classmethod
    def from_record(cls, record: MatchRecordDTO) -> "MatchRecordSummary":
        return cls(
            match_id=record.id,
            initiator_id=record.initiator_id,
            target_id=record.target_id,
            status=record.status.value,
            compatibility_score=record.compatibility_score,
            match_quality=record.match_quality.value if record.match_quality else None,
            match_reasons=record.match_reasons,
            super_liked=record.super_liked,
            chat_room_id=record.chat_room_id,
            created_at=record.created_at.isoformat() if record.created_at else None,
            responded_at=record.responded_at.isoformat() if record.responded_at else None
        )


class SwipeResponse(BaseModel):
    success: bool = True
    is_match: bool
    chat_room_id: Optional[str] = None
    record: MatchRecordSummary


class MatchesResponse(BaseModel):
    success: bool = True
    count: int
    matches: List[MatchRecordSummary]


class MatchDetailResponse(BaseModel):
    success: bool = True
    match: MatchRecordSummary


class UsageSummary(BaseModel):
    """Usage of one quota resource in the current period."""
    current: int
    limit: Optional[int] = None  # None means unlimited
    percentage: int
    remaining: Optional[int] = None
    resets_in: int

    @classmethod
    def from_stats(cls, stats: UsageStats) -> "UsageSummary":
        return cls(
            current=stats.current,
            limit=stats.limit,
            percentage=stats.percentage,
            remaining=stats.remaining,
            resets_in=stats.resets_in
        )


class UsageResponse(BaseModel):
    success: bool = True
    usage: Dict[str, UsageSummary]


class ResourceUsageResponse(BaseModel):
    success: bool = True
    resource: str
    usage: UsageSummary
