"""
Pre-score candidate filters.

A candidate survives only if it satisfies every criterion the requester set.
Criteria left unset never exclude anyone. A candidate missing the attribute a
criterion asks about does not satisfy it.
"""

from typing import Iterable, List, Optional

from matchmaking.models import (
    Criteria,
    EntrepreneurAttrs,
    MarketSize,
    ProfileSnapshot,
    VerificationLevel,
)


def _normalize(values: Iterable[str]) -> set:
    return {str(v).strip().lower() for v in values if v}


def matches_industries(candidate: ProfileSnapshot, industries: List[str]) -> bool:
    if not industries:
        return True
    return bool(_normalize(candidate.industries) & _normalize(industries))


def matches_investment_range(candidate: ProfileSnapshot, criteria: Criteria) -> bool:
    rng = criteria.investment_range
    if rng is None:
        return True
    upper = rng.max if rng.max is not None else float('inf')
    attrs = candidate.attrs

    if isinstance(attrs, EntrepreneurAttrs):
        if attrs.desired_investment is None:
            return False
        return rng.min <= attrs.desired_investment <= upper

    # Funder: their stated range must overlap the requested one
    if attrs.investment_min is None and attrs.investment_max is None:
        return False
    low = attrs.investment_min or 0
    high = attrs.investment_max if attrs.investment_max is not None else float('inf')
    return low <= upper and rng.min <= high


def matches_experience(candidate: ProfileSnapshot, minimum: Optional[float]) -> bool:
    if minimum is None:
        return True
    return candidate.years_experience >= minimum


def matches_verification(candidate: ProfileSnapshot, criteria: Criteria) -> bool:
    if criteria.verified_only and candidate.verification_level == VerificationLevel.NONE:
        return False
    floor = criteria.verification_floor
    if floor is not None and candidate.verification_level < floor:
        return False
    return True


def matches_business_types(candidate: ProfileSnapshot, business_types: List[str]) -> bool:
    if not business_types:
        return True
    wanted = _normalize(business_types)
    attrs = candidate.attrs
    if isinstance(attrs, EntrepreneurAttrs):
        return bool(attrs.business_type) and attrs.business_type.strip().lower() in wanted
    return bool(_normalize(attrs.preferred_business_types) & wanted)


def matches_market_size(candidate: ProfileSnapshot, market_size: Optional[str]) -> bool:
    if market_size is None:
        return True
    attrs = candidate.attrs
    value = attrs.target_market_size if isinstance(attrs, EntrepreneurAttrs) else attrs.preferred_market_size
    return MarketSize.parse(value) is not None and MarketSize.parse(value) == MarketSize.parse(market_size)


def matches_timeline(candidate: ProfileSnapshot, timeline: Optional[str]) -> bool:
    if timeline is None:
        return True
    attrs = candidate.attrs
    value = attrs.timeline if isinstance(attrs, EntrepreneurAttrs) else attrs.preferred_timeline
    if not value:
        return False
    return value.strip().lower() == timeline.strip().lower()


def passes_criteria(candidate: ProfileSnapshot, criteria: Optional[Criteria]) -> bool:
    """True when ``candidate`` satisfies every criterion that is set."""
    if criteria is None:
        return True
    return (
        matches_industries(candidate, criteria.industries)
        and matches_investment_range(candidate, criteria)
        and matches_experience(candidate, criteria.experience_years)
        and matches_verification(candidate, criteria)
        and matches_business_types(candidate, criteria.business_types)
        and matches_market_size(candidate, criteria.market_size)
        and matches_timeline(candidate, criteria.timeline)
    )


def apply_filters(candidates: Iterable[ProfileSnapshot], criteria: Optional[Criteria]) -> List[ProfileSnapshot]:
    return [c for c in candidates if passes_criteria(c, criteria)]


__all__ = [
    'passes_criteria',
    'apply_filters',
]
