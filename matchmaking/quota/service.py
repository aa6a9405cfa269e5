#!/usr/bin/env python3
"""
Quota Service - per-tier allowances for match views, super-likes and messages.

Counters hold the *remaining* allowance for the current calendar period and
live under a key that embeds the period bucket, so every counter resets to the
full tier limit at the period boundary rather than sliding.

Usage:
    quota = QuotaService(RedisCounterStore.from_url(url), tier_resolver=lookup_tier)

    decision = quota.check_and_consume("user-1", ResourceKind.SUPER_LIKES)
    if not decision.allowed:
        ...

    stats = quota.peek_usage("user-1", ResourceKind.MATCH_VIEWS)
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, Optional, Union

from redis.exceptions import RedisError

from matchmaking.config_loader import QuotaConfig
from matchmaking.exceptions import DependencyError, QuotaExceededError
from matchmaking.interfaces import CounterStore
from matchmaking.models import SubscriptionTier
from matchmaking.quota.limits import QuotaPeriod, ResourceKind, TierLimits, current_period

logger = logging.getLogger(__name__)

TierResolver = Callable[[str], Union[SubscriptionTier, str, None]]
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class QuotaDecision:
    """Outcome of one consume attempt. ``remaining`` is None for unlimited tiers."""
    allowed: bool
    remaining: Optional[int]
    resets_in: int
    limit: Optional[int] = None


@dataclass
class UsageStats:
    current: int
    limit: Optional[int]
    percentage: int
    remaining: Optional[int] = None
    resets_in: int = 0


class QuotaService:
    """
    Tracks and enforces per-tier periodic allowances.

    All consumption goes through ``check_and_consume``, which is a single atomic
    operation against the counter store. ``peek_usage`` never mutates.
    """

    KEY_PREFIX = "quota"

    def __init__(
        self,
        store: CounterStore,
        config: Optional[QuotaConfig] = None,
        tier_resolver: Optional[TierResolver] = None,
        clock: Optional[Clock] = None,
        key_prefix: Optional[str] = None
    ):
        self.store = store
        self.limits = TierLimits(config)
        self._tier_resolver = tier_resolver
        self._clock = clock or utc_now
        self.key_prefix = key_prefix or self.KEY_PREFIX

    def _resolve_tier(self, user_id: str, tier: Union[SubscriptionTier, str, None]) -> SubscriptionTier:
        if tier is None and self._tier_resolver is not None:
            tier = self._tier_resolver(user_id)
        # Unknown or missing tiers fall back to the most restrictive tier
        return SubscriptionTier.parse(tier)

    def _period(self, resource: ResourceKind) -> QuotaPeriod:
        return current_period(self.limits.period_kind(resource), self._clock())

    def counter_key(self, user_id: str, resource: ResourceKind, period: QuotaPeriod) -> str:
        return f"{self.key_prefix}:{resource.value}:{user_id}:{period.bucket}"

    def usage_key(self, user_id: str, resource: ResourceKind, period: QuotaPeriod) -> str:
        return f"{self.counter_key(user_id, resource, period)}:used"

    def check_and_consume(
        self,
        user_id: str,
        resource: Union[ResourceKind, str],
        tier: Union[SubscriptionTier, str, None] = None
    ) -> QuotaDecision:
        """
        Consume one unit of ``resource`` for ``user_id`` if any remain.

        Args:
            user_id: User consuming the allowance
            resource: Resource kind (match_views, super_likes, monthly_messages)
            tier: Subscription tier, resolved via the tier resolver when omitted

        Returns:
            QuotaDecision; ``remaining`` is never negative
        """
        resource = ResourceKind.parse(resource)
        tier = self._resolve_tier(user_id, tier)
        limit = self.limits.limit_for(resource, tier)
        period = self._period(resource)
        resets_in = period.seconds_remaining(self._clock())

        try:
            if limit is None:
                self.store.incr_with_expiry(self.usage_key(user_id, resource, period), resets_in)
                return QuotaDecision(allowed=True, remaining=None, resets_in=resets_in, limit=None)

            allowed, remaining, ttl = self.store.decr_if_positive(
                self.counter_key(user_id, resource, period), limit, resets_in
            )
        except RedisError as e:
            logger.error(f"Counter store failure consuming {resource.value} for {user_id}: {e}")
            raise DependencyError(f"Quota store unavailable: {e}") from e

        remaining = max(0, remaining)
        if allowed:
            logger.debug(f"{user_id} consumed {resource.value}: {remaining}/{limit} remaining")
        else:
            logger.info(f"{user_id} exhausted {resource.value} ({tier.label} limit {limit})")

        return QuotaDecision(
            allowed=allowed,
            remaining=remaining,
            resets_in=ttl or resets_in,
            limit=limit
        )

    def refund(
        self,
        user_id: str,
        resource: Union[ResourceKind, str],
        tier: Union[SubscriptionTier, str, None] = None
    ) -> None:
        """
        Give back one unit consumed in the current period.

        For an action that was charged and then could not be applied. A
        counter that no longer exists (period rolled over) is left alone, and
        unlimited tiers only count usage so nothing is given back.
        """
        resource = ResourceKind.parse(resource)
        tier = self._resolve_tier(user_id, tier)
        if self.limits.limit_for(resource, tier) is None:
            return
        period = self._period(resource)
        key = self.counter_key(user_id, resource, period)

        try:
            if self.store.get(key) is None:
                return
            self.store.incr_with_expiry(key, period.seconds_remaining(self._clock()))
        except RedisError as e:
            logger.error(f"Counter store failure refunding {resource.value} for {user_id}: {e}")
            raise DependencyError(f"Quota store unavailable: {e}") from e

        logger.info(f"Refunded one {resource.value} to {user_id}")

    def require(
        self,
        user_id: str,
        resource: Union[ResourceKind, str],
        tier: Union[SubscriptionTier, str, None] = None,
        message: Optional[str] = None
    ) -> QuotaDecision:
        """Consume one unit or raise QuotaExceededError."""
        resource = ResourceKind.parse(resource)
        decision = self.check_and_consume(user_id, resource, tier=tier)
        if not decision.allowed:
            raise QuotaExceededError(
                message or f"Daily {resource.value} limit reached for your subscription tier",
                resource=resource.value,
                resets_in=decision.resets_in
            )
        return decision

    def peek_usage(
        self,
        user_id: str,
        resource: Union[ResourceKind, str],
        tier: Union[SubscriptionTier, str, None] = None
    ) -> UsageStats:
        """Current usage of ``resource`` in this period. Read-only."""
        resource = ResourceKind.parse(resource)
        tier = self._resolve_tier(user_id, tier)
        limit = self.limits.limit_for(resource, tier)
        period = self._period(resource)
        resets_in = period.seconds_remaining(self._clock())

        try:
            if limit is None:
                used = self.store.get(self.usage_key(user_id, resource, period)) or 0
                return UsageStats(current=used, limit=None, percentage=0, remaining=None, resets_in=resets_in)

            remaining = self.store.get(self.counter_key(user_id, resource, period))
        except RedisError as e:
            logger.error(f"Counter store failure reading {resource.value} for {user_id}: {e}")
            raise DependencyError(f"Quota store unavailable: {e}") from e

        if remaining is None:
            remaining = limit
        remaining = max(0, min(limit, remaining))
        current = limit - remaining

        return UsageStats(
            current=current,
            limit=limit,
            percentage=_percentage(current, limit),
            remaining=remaining,
            resets_in=resets_in
        )

    def usage_summary(
        self,
        user_id: str,
        tier: Union[SubscriptionTier, str, None] = None
    ) -> Dict[str, UsageStats]:
        tier = self._resolve_tier(user_id, tier)
        return {
            resource.value: self.peek_usage(user_id, resource, tier=tier)
            for resource in ResourceKind
        }

    def super_like_status(
        self,
        user_id: str,
        tier: Union[SubscriptionTier, str, None] = None
    ) -> UsageStats:
        """Remaining super-likes for today and seconds until they refill."""
        return self.peek_usage(user_id, ResourceKind.SUPER_LIKES, tier=tier)

    def reset_usage(self, user_id: str) -> None:
        """Drop this period's counters, e.g. after a subscription change."""
        keys = []
        for resource in ResourceKind:
            period = self._period(resource)
            keys.append(self.counter_key(user_id, resource, period))
            keys.append(self.usage_key(user_id, resource, period))
        try:
            self.store.delete(*keys)
        except RedisError as e:
            raise DependencyError(f"Quota store unavailable: {e}") from e
        logger.info(f"Reset quota counters for {user_id}")


def _percentage(current: int, limit: Optional[int]) -> int:
    if limit is None:
        return 0
    if limit == 0:
        return 100
    return round(current / limit * 100)
