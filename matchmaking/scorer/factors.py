#!/usr/bin/env python3
"""
Compatibility factors - one pure function per weighted factor.

Every factor returns a value in [0, 1] and never raises on missing
attributes. Factors that only make sense between an entrepreneur and a funder
(investment, team, business model, timeline) resolve the pair into
(entrepreneur, funder) first and fall back to a neutral default when the
roles match.
"""

from typing import Optional, Tuple

from matchmaking.models import (
    EntrepreneurAttrs,
    FunderAttrs,
    MarketSize,
    ProfileSnapshot,
    TIMELINE_BUCKETS,
    VerificationLevel,
)

NEUTRAL = 0.5

CROSS_ROLE_EXPERIENCE_SPAN = 15.0
SAME_ROLE_EXPERIENCE_SPAN = 5.0
TEAM_SIZE_SPAN = 10.0

MAX_VERIFICATION = max(VerificationLevel)
VERIFICATION_LEVEL_COUNT = len(VerificationLevel)
MARKET_SIZE_COUNT = len(MarketSize)


def cross_role_pair(
    a: ProfileSnapshot,
    b: ProfileSnapshot
) -> Optional[Tuple[EntrepreneurAttrs, FunderAttrs]]:
    """Return (entrepreneur, funder) attrs for a cross-role pair, else None."""
    if isinstance(a.attrs, EntrepreneurAttrs) and isinstance(b.attrs, FunderAttrs):
        return a.attrs, b.attrs
    if isinstance(a.attrs, FunderAttrs) and isinstance(b.attrs, EntrepreneurAttrs):
        return b.attrs, a.attrs
    return None


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def industry_alignment(a: ProfileSnapshot, b: ProfileSnapshot) -> float:
    ours, theirs = a.industries, b.industries
    if not ours or not theirs:
        return 0.0
    return len(ours & theirs) / max(len(ours), len(theirs))


def investment_in_range(entrepreneur: EntrepreneurAttrs, funder: FunderAttrs) -> bool:
    amount = entrepreneur.desired_investment
    low, high = funder.investment_min, funder.investment_max
    if not amount or not high:
        return False
    return (low or 0) <= amount <= high


def investment_fit(a: ProfileSnapshot, b: ProfileSnapshot) -> float:
    pair = cross_role_pair(a, b)
    if pair is None:
        return NEUTRAL
    entrepreneur, funder = pair

    amount = entrepreneur.desired_investment or 0
    low = funder.investment_min or 0
    high = funder.investment_max or 0
    if amount <= 0 or high <= 0:
        return 0.0

    if low <= amount <= high:
        return 1.0
    if amount < low:
        return max(0.0, 1.0 - (low - amount) / low)
    return max(0.0, 1.0 - (amount - high) / high)


def experience_match(a: ProfileSnapshot, b: ProfileSnapshot) -> float:
    gap = abs(a.years_experience - b.years_experience)
    span = SAME_ROLE_EXPERIENCE_SPAN if a.role == b.role else CROSS_ROLE_EXPERIENCE_SPAN
    return max(0.0, 1.0 - gap / span)


def verification_level(a: ProfileSnapshot, b: ProfileSnapshot) -> float:
    # Rewards the other side's absolute verification and closeness to ours
    ours = int(a.verification_level)
    theirs = int(b.verification_level)
    base = theirs / MAX_VERIFICATION
    similarity = 1.0 - abs(ours - theirs) / VERIFICATION_LEVEL_COUNT
    return _clamp(0.7 * base + 0.3 * similarity)


def team_compatibility(a: ProfileSnapshot, b: ProfileSnapshot) -> float:
    pair = cross_role_pair(a, b)
    if pair is None:
        return NEUTRAL
    entrepreneur, funder = pair

    if not entrepreneur.preferred_team_size or not funder.preferred_team_size:
        return NEUTRAL

    size_gap = abs(entrepreneur.preferred_team_size - funder.preferred_team_size)
    size_score = max(0.0, 1.0 - size_gap / TEAM_SIZE_SPAN)

    skill_score = NEUTRAL
    if entrepreneur.preferred_skills and funder.skills:
        wanted = set(entrepreneur.preferred_skills)
        skill_score = len(wanted & set(funder.skills)) / len(wanted)

    return (size_score + skill_score) / 2


def market_size_alignment(entrepreneur_size: Optional[str], funder_size: Optional[str]) -> float:
    ours = MarketSize.parse(entrepreneur_size)
    theirs = MarketSize.parse(funder_size)
    if ours is None or theirs is None:
        return NEUTRAL
    return 1.0 - abs(int(ours) - int(theirs)) / MARKET_SIZE_COUNT


def business_type_preferred(entrepreneur: EntrepreneurAttrs, funder: FunderAttrs) -> bool:
    return bool(entrepreneur.business_type) and entrepreneur.business_type in funder.preferred_business_types


def business_model_fit(a: ProfileSnapshot, b: ProfileSnapshot) -> float:
    pair = cross_role_pair(a, b)
    if pair is None:
        return NEUTRAL
    entrepreneur, funder = pair

    if not entrepreneur.business_type or not funder.preferred_business_types:
        return NEUTRAL

    type_score = 0.6 if business_type_preferred(entrepreneur, funder) else 0.0
    market_score = market_size_alignment(entrepreneur.target_market_size, funder.preferred_market_size)
    return _clamp(type_score + 0.4 * market_score)


def timeline_position(timeline: str) -> float:
    return TIMELINE_BUCKETS.get(timeline.strip().lower(), NEUTRAL)


def timeline_alignment(a: ProfileSnapshot, b: ProfileSnapshot) -> float:
    pair = cross_role_pair(a, b)
    if pair is None:
        return NEUTRAL
    entrepreneur, funder = pair

    if not entrepreneur.timeline or not funder.preferred_timeline:
        return NEUTRAL

    return 1.0 - abs(timeline_position(entrepreneur.timeline) - timeline_position(funder.preferred_timeline))
