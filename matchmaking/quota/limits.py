"""
Tier limits and quota periods.

Limits are looked up per (resource, tier). ``None`` means unlimited. A tier
missing from the table resolves to the most restrictive configured limit so
an incomplete configuration never fails open.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional, Union

from matchmaking.config_loader import QuotaConfig
from matchmaking.exceptions import ValidationError
from matchmaking.models import SubscriptionTier


class ResourceKind(str, Enum):
    MATCH_VIEWS = "match_views"
    SUPER_LIKES = "super_likes"
    MONTHLY_MESSAGES = "monthly_messages"

    @classmethod
    def parse(cls, value: Union[str, "ResourceKind"]) -> "ResourceKind":
        if isinstance(value, cls):
            return value
        normalized = str(value).strip()
        # Accept camelCase names used by API clients (matchViews, superLikes)
        aliases = {
            'matchViews': cls.MATCH_VIEWS,
            'superLikes': cls.SUPER_LIKES,
            'monthlyMessages': cls.MONTHLY_MESSAGES,
        }
        if normalized in aliases:
            return aliases[normalized]
        try:
            return cls(normalized.lower())
        except ValueError:
            raise ValidationError(f"Unknown quota resource: {value}", field='resource')


@dataclass(frozen=True)
class QuotaPeriod:
    """One calendar window (UTC) of a quota."""
    bucket: str
    starts_at: datetime
    ends_at: datetime

    def seconds_remaining(self, now: datetime) -> int:
        # Never report 0 while still inside the window
        return max(1, int((self.ends_at - now).total_seconds() + 0.999999))

    @property
    def length_seconds(self) -> int:
        return int((self.ends_at - self.starts_at).total_seconds())


def current_period(kind: str, now: datetime) -> QuotaPeriod:
    """Return the daily or monthly window containing ``now``."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    now = now.astimezone(timezone.utc)

    if kind == 'monthly':
        start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        if start.month == 12:
            end = start.replace(year=start.year + 1, month=1)
        else:
            end = start.replace(month=start.month + 1)
        return QuotaPeriod(bucket=start.strftime('%Y-%m'), starts_at=start, ends_at=end)

    start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return QuotaPeriod(bucket=start.strftime('%Y-%m-%d'), starts_at=start, ends_at=start + timedelta(days=1))


class TierLimits:
    """Static lookup table: (resource, tier) -> allowance per period."""

    def __init__(self, config: Optional[QuotaConfig] = None):
        self.config = config or QuotaConfig()

    def limit_for(self, resource: ResourceKind, tier: Union[SubscriptionTier, str, None]) -> Optional[int]:
        table = getattr(self.config, resource.value)
        parsed = SubscriptionTier.parse(tier)
        if parsed.label in table:
            return table[parsed.label]
        return self._most_restrictive(table)

    def period_kind(self, resource: ResourceKind) -> str:
        return self.config.periods.get(resource.value, 'daily')

    @staticmethod
    def _most_restrictive(table) -> int:
        bounded = [limit for limit in table.values() if limit is not None]
        return min(bounded) if bounded else 0
