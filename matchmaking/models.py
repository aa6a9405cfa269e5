"""
Domain models shared by the scoring, quota, discovery and swipe services.

Profiles are modelled as a tagged variant: a ``ProfileSnapshot`` always
carries exactly one of ``EntrepreneurAttrs`` or ``FunderAttrs`` and its role
is derived from which one it holds.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from typing import Dict, FrozenSet, List, Optional, Tuple, Union

from matchmaking.exceptions import ValidationError


class Role(str, Enum):
    ENTREPRENEUR = "entrepreneur"
    FUNDER = "funder"

    @property
    def opposite(self) -> "Role":
        return Role.FUNDER if self is Role.ENTREPRENEUR else Role.ENTREPRENEUR


class VerificationLevel(IntEnum):
    """Verification ladder. Ordinal value is the position on the ladder."""
    NONE = 0
    BUSINESS_PLAN = 1
    USE_CASE = 2
    DEMOGRAPHIC_ALIGNMENT = 3
    APP_UX_UI = 4
    FISCAL_ANALYSIS = 5

    @property
    def label(self) -> str:
        return _VERIFICATION_LABELS[self]

    @classmethod
    def parse(cls, value: Union[str, int, "VerificationLevel", None]) -> "VerificationLevel":
        """Parse a label ("BusinessPlan"), enum name or ordinal. Unknown -> NONE."""
        if value is None:
            return cls.NONE
        if isinstance(value, cls):
            return value
        if isinstance(value, int):
            try:
                return cls(value)
            except ValueError:
                return cls.NONE
        key = str(value).strip()
        for level, label in _VERIFICATION_LABELS.items():
            if key == label or key.upper() == level.name:
                return level
        return cls.NONE

    @classmethod
    def is_known(cls, value: str) -> bool:
        key = str(value).strip()
        return any(key == label or key.upper() == level.name
                   for level, label in _VERIFICATION_LABELS.items())


_VERIFICATION_LABELS = {
    VerificationLevel.NONE: "None",
    VerificationLevel.BUSINESS_PLAN: "BusinessPlan",
    VerificationLevel.USE_CASE: "UseCase",
    VerificationLevel.DEMOGRAPHIC_ALIGNMENT: "DemographicAlignment",
    VerificationLevel.APP_UX_UI: "AppUXUI",
    VerificationLevel.FISCAL_ANALYSIS: "FiscalAnalysis",
}


class SubscriptionTier(IntEnum):
    """Subscription ladder, lowest first."""
    BASIC = 0
    CHROME = 1
    BRONZE = 2
    SILVER = 3
    GOLD = 4
    PLATINUM = 5

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @classmethod
    def parse(cls, value: Union[str, int, "SubscriptionTier", None]) -> "SubscriptionTier":
        """Parse a tier label. Missing or unknown tiers fall back to the most restrictive tier."""
        if isinstance(value, cls):
            return value
        if isinstance(value, int):
            try:
                return cls(value)
            except ValueError:
                return cls.BASIC
        if not value:
            return cls.BASIC
        try:
            return cls[str(value).strip().upper()]
        except KeyError:
            return cls.BASIC

    def accessible_tiers(self) -> List["SubscriptionTier"]:
        """Tiers visible from this tier: itself and everything below."""
        return [tier for tier in SubscriptionTier if tier <= self]


class MarketSize(IntEnum):
    SMALL = 0
    MEDIUM = 1
    LARGE = 2
    ENTERPRISE = 3

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["MarketSize"]:
        if not value:
            return None
        try:
            return cls[str(value).strip().upper()]
        except KeyError:
            return None


# Timeline buckets normalised onto [0, 1]
TIMELINE_BUCKETS: Dict[str, float] = {
    'immediate': 0.0,
    '0-6 months': 0.2,
    '6-12 months': 0.4,
    '1-2 years': 0.6,
    '2-3 years': 0.8,
    '3+ years': 1.0,
}


class MatchStatus(str, Enum):
    PENDING = "pending"
    MATCHED = "matched"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not MatchStatus.PENDING


class MatchQuality(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"

    @classmethod
    def from_score(cls, score: Optional[int]) -> Optional["MatchQuality"]:
        if score is None:
            return None
        if score >= 80:
            return cls.HIGH
        if score >= 60:
            return cls.MEDIUM
        return cls.LOW


class Direction(str, Enum):
    LEFT = "left"
    RIGHT = "right"

    @classmethod
    def parse(cls, value: Union[str, "Direction"]) -> "Direction":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except (ValueError, AttributeError):
            raise ValidationError(
                f"Invalid swipe direction: {value!r}. Direction must be either left or right",
                field='direction'
            )


@dataclass(frozen=True)
class EntrepreneurAttrs:
    industries: FrozenSet[str] = frozenset()
    desired_investment: Optional[float] = None
    years_experience: Optional[float] = None
    business_type: Optional[str] = None
    target_market_size: Optional[str] = None
    timeline: Optional[str] = None
    preferred_team_size: Optional[int] = None
    preferred_skills: Tuple[str, ...] = ()


@dataclass(frozen=True)
class FunderAttrs:
    areas_of_interest: FrozenSet[str] = frozenset()
    investment_min: Optional[float] = None
    investment_max: Optional[float] = None
    years_experience: Optional[float] = None
    preferred_business_types: FrozenSet[str] = frozenset()
    preferred_market_size: Optional[str] = None
    preferred_timeline: Optional[str] = None
    preferred_team_size: Optional[int] = None
    skills: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ProfileSnapshot:
    """Read-only view of one party at score time."""
    user_id: str
    attrs: Union[EntrepreneurAttrs, FunderAttrs]
    subscription_tier: SubscriptionTier = SubscriptionTier.BASIC
    verification_level: VerificationLevel = VerificationLevel.NONE
    location: Optional[Tuple[float, float]] = None
    display_name: Optional[str] = None

    @property
    def role(self) -> Role:
        if isinstance(self.attrs, EntrepreneurAttrs):
            return Role.ENTREPRENEUR
        return Role.FUNDER

    @property
    def industries(self) -> FrozenSet[str]:
        if isinstance(self.attrs, EntrepreneurAttrs):
            return self.attrs.industries
        return self.attrs.areas_of_interest

    @property
    def years_experience(self) -> float:
        return float(self.attrs.years_experience or 0)


@dataclass(frozen=True)
class InvestmentRange:
    min: float = 0
    max: Optional[float] = None


@dataclass
class Criteria:
    """Optional discovery filters, applied before scoring."""
    industries: List[str] = field(default_factory=list)
    investment_range: Optional[InvestmentRange] = None
    experience_years: Optional[float] = None
    verification_level: Optional[str] = None
    business_types: List[str] = field(default_factory=list)
    market_size: Optional[str] = None
    timeline: Optional[str] = None
    verified_only: bool = False

    def validate(self) -> "Criteria":
        if self.investment_range is not None:
            rng = self.investment_range
            if rng.min < 0 or (rng.max is not None and rng.max < 0):
                raise ValidationError("Investment range cannot be negative", field='investment_range')
            if rng.max is not None and rng.max < rng.min:
                raise ValidationError("Investment range max must be >= min", field='investment_range')
        if self.experience_years is not None and self.experience_years < 0:
            raise ValidationError("Experience years cannot be negative", field='experience_years')
        if self.verification_level is not None and not VerificationLevel.is_known(self.verification_level):
            raise ValidationError(
                f"Unknown verification level: {self.verification_level}", field='verification_level'
            )
        if self.market_size is not None and MarketSize.parse(self.market_size) is None:
            raise ValidationError(f"Unknown market size: {self.market_size}", field='market_size')
        if self.timeline is not None and self.timeline.strip().lower() not in TIMELINE_BUCKETS:
            raise ValidationError(f"Unknown timeline: {self.timeline}", field='timeline')
        return self

    @property
    def verification_floor(self) -> Optional[VerificationLevel]:
        if self.verification_level is None:
            return None
        return VerificationLevel.parse(self.verification_level)


@dataclass
class MatchRecordDTO:
    """Plain copy of a match record, safe to use after the session is closed."""
    id: str
    initiator_id: str
    target_id: str
    status: MatchStatus
    compatibility_score: Optional[int] = None
    compatibility_factors: Dict[str, float] = field(default_factory=dict)
    match_reasons: List[str] = field(default_factory=list)
    match_quality: Optional[MatchQuality] = None
    super_liked: bool = False
    chat_room_id: Optional[str] = None
    created_at: Optional[datetime] = None
    responded_at: Optional[datetime] = None


@dataclass
class SwipeResult:
    is_match: bool
    record: MatchRecordDTO
    chat_room_id: Optional[str] = None


def pair_key(user_a: str, user_b: str) -> str:
    """Order-independent key for a pair of users."""
    first, second = sorted((str(user_a), str(user_b)))
    return f"{first}:{second}"


def _as_float(value) -> Optional[float]:
    return None if value is None else float(value)


def build_snapshot(
    user_id: str,
    role: Union[Role, str],
    attributes: Optional[Dict] = None,
    subscription_tier: Union[SubscriptionTier, str, None] = None,
    verification_level: Union[VerificationLevel, str, None] = None,
    location: Optional[Tuple[float, float]] = None,
    display_name: Optional[str] = None
) -> ProfileSnapshot:
    """Build a ProfileSnapshot from a role and a loose attribute mapping (e.g. a JSONB column)."""
    attributes = attributes or {}
    role = Role(role)

    if role is Role.ENTREPRENEUR:
        attrs = EntrepreneurAttrs(
            industries=frozenset(attributes.get('industries') or ()),
            desired_investment=_as_float(attributes.get('desired_investment')),
            years_experience=_as_float(attributes.get('years_experience')),
            business_type=attributes.get('business_type'),
            target_market_size=attributes.get('target_market_size'),
            timeline=attributes.get('timeline'),
            preferred_team_size=attributes.get('preferred_team_size'),
            preferred_skills=tuple(attributes.get('preferred_skills') or ()),
        )
    else:
        attrs = FunderAttrs(
            areas_of_interest=frozenset(attributes.get('areas_of_interest') or ()),
            investment_min=_as_float(attributes.get('investment_min')),
            investment_max=_as_float(attributes.get('investment_max')),
            years_experience=_as_float(attributes.get('years_experience')),
            preferred_business_types=frozenset(attributes.get('preferred_business_types') or ()),
            preferred_market_size=attributes.get('preferred_market_size'),
            preferred_timeline=attributes.get('preferred_timeline'),
            preferred_team_size=attributes.get('preferred_team_size'),
            skills=tuple(attributes.get('skills') or ()),
        )

    return ProfileSnapshot(
        user_id=str(user_id),
        attrs=attrs,
        subscription_tier=SubscriptionTier.parse(subscription_tier),
        verification_level=VerificationLevel.parse(verification_level),
        location=location,
        display_name=display_name,
    )
