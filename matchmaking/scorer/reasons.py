#!/usr/bin/env python3
"""
Match reasons - human-readable explanations derived from the factor values.

Reasons are recomputed from the same inputs as the score against fixed
thresholds, so they are deterministic and free of side effects. Phrasing is
written from the point of view of ``me`` (the viewer).
"""

from typing import Dict, List

from matchmaking.models import ProfileSnapshot, Role, VerificationLevel
from matchmaking.scorer import factors as f

INDUSTRY_REASON_THRESHOLD = 0.5
EXPERIENCE_REASON_THRESHOLD = 0.7
TIMELINE_REASON_THRESHOLD = 0.7
MAX_LISTED_INDUSTRIES = 3


def generate_reasons(
    me: ProfileSnapshot,
    other: ProfileSnapshot,
    factor_values: Dict[str, float]
) -> List[str]:
    reasons = []

    if factor_values.get('industry_alignment', 0.0) > INDUSTRY_REASON_THRESHOLD:
        common = sorted(me.industries & other.industries)
        if common:
            reasons.append(f"Shared interest in {', '.join(common[:MAX_LISTED_INDUSTRIES])}")

    pair = f.cross_role_pair(me, other)
    if pair is not None:
        entrepreneur, funder = pair
        if f.investment_in_range(entrepreneur, funder):
            if me.role is Role.ENTREPRENEUR:
                reasons.append("Investment needs align with funder's range")
            else:
                reasons.append("Entrepreneur's funding needs match your investment range")

    if factor_values.get('experience_match', 0.0) > EXPERIENCE_REASON_THRESHOLD:
        reasons.append("Similar industry experience levels")

    if other.verification_level is not VerificationLevel.NONE:
        reasons.append(f"{other.verification_level.label} verification completed")

    if pair is not None:
        entrepreneur, funder = pair
        if f.business_type_preferred(entrepreneur, funder):
            if me.role is Role.ENTREPRENEUR:
                reasons.append(f"Your {entrepreneur.business_type} business matches funder's interests")
            else:
                reasons.append(f"Entrepreneur's {entrepreneur.business_type} business matches your interests")

        if (entrepreneur.timeline and funder.preferred_timeline
                and factor_values.get('timeline_alignment', 0.0) > TIMELINE_REASON_THRESHOLD):
            reasons.append("Timeline expectations are well-aligned")

    return reasons
