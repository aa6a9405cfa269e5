#!/usr/bin/env python3
"""
Unit tests for QuotaService, tier limits and the Redis counter store.
"""

import threading
import unittest
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

from redis.exceptions import ConnectionError as RedisConnectionError

from matchmaking.config_loader import QuotaConfig
from matchmaking.exceptions import DependencyError, QuotaExceededError, ValidationError
from matchmaking.models import SubscriptionTier
from matchmaking.quota import QuotaService, ResourceKind, TierLimits, current_period
from matchmaking.quota.store import RedisCounterStore
from tests.mocks.matching_mocks import FixedClock, InMemoryCounterStore


class TestQuotaConsume(unittest.TestCase):

    def setUp(self):
        self.store = InMemoryCounterStore()
        self.clock = FixedClock(datetime(2026, 3, 14, 12, 0, 0, tzinfo=timezone.utc))
        self.quota = QuotaService(self.store, clock=self.clock)

    def test_denies_after_limit(self):
        decisions = [
            self.quota.check_and_consume('u-1', ResourceKind.MATCH_VIEWS, tier='Basic')
            for _ in range(7)
        ]

        self.assertEqual([d.allowed for d in decisions], [True] * 5 + [False] * 2)
        self.assertEqual([d.remaining for d in decisions], [4, 3, 2, 1, 0, 0, 0])

    def test_remaining_never_negative(self):
        for _ in range(10):
            decision = self.quota.check_and_consume('u-1', ResourceKind.SUPER_LIKES, tier='Basic')
            self.assertGreaterEqual(decision.remaining, 0)

    def test_resets_in_counts_down_to_midnight_utc(self):
        decision = self.quota.check_and_consume('u-1', ResourceKind.MATCH_VIEWS, tier='Basic')

        self.assertEqual(decision.resets_in, 12 * 3600)
        self.assertEqual(decision.limit, 5)

    def test_counter_resets_at_period_boundary(self):
        for _ in range(5):
            self.quota.check_and_consume('u-1', ResourceKind.MATCH_VIEWS, tier='Basic')
        self.assertFalse(self.quota.check_and_consume('u-1', ResourceKind.MATCH_VIEWS, tier='Basic').allowed)

        self.clock.now = datetime(2026, 3, 15, 0, 0, 0, tzinfo=timezone.utc)
        decision = self.quota.check_and_consume('u-1', ResourceKind.MATCH_VIEWS, tier='Basic')

        self.assertTrue(decision.allowed)
        self.assertEqual(decision.remaining, 4)
        self.assertEqual(decision.resets_in, 24 * 3600)

    def test_counters_are_per_user_and_resource(self):
        self.quota.check_and_consume('u-1', ResourceKind.SUPER_LIKES, tier='Basic')

        self.assertTrue(self.quota.check_and_consume('u-2', ResourceKind.SUPER_LIKES, tier='Basic').allowed)
        self.assertTrue(self.quota.check_and_consume('u-1', ResourceKind.MATCH_VIEWS, tier='Basic').allowed)
        self.assertFalse(self.quota.check_and_consume('u-1', ResourceKind.SUPER_LIKES, tier='Basic').allowed)

    def test_counter_key_embeds_period_bucket(self):
        self.quota.check_and_consume('u-1', ResourceKind.MATCH_VIEWS, tier='Basic')
        self.quota.check_and_consume('u-1', ResourceKind.MONTHLY_MESSAGES, tier='Basic')

        self.assertEqual(self.store.get('quota:match_views:u-1:2026-03-14'), 4)
        self.assertEqual(self.store.get('quota:monthly_messages:u-1:2026-03'), 49)

    def test_unknown_tier_falls_back_to_basic(self):
        decision = self.quota.check_and_consume('u-1', ResourceKind.MATCH_VIEWS, tier='Diamond')
        self.assertEqual(decision.limit, 5)

    def test_tier_resolver_used_when_tier_omitted(self):
        quota = QuotaService(self.store, clock=self.clock, tier_resolver=lambda user_id: 'Gold')
        self.assertEqual(quota.check_and_consume('u-1', 'super_likes').limit, 10)

    def test_missing_profile_tier_is_most_restrictive(self):
        quota = QuotaService(self.store, clock=self.clock, tier_resolver=lambda user_id: None)
        self.assertEqual(quota.check_and_consume('u-1', 'super_likes').limit, 1)

    def test_platinum_is_unlimited(self):
        for _ in range(100):
            decision = self.quota.check_and_consume('u-1', ResourceKind.MATCH_VIEWS, tier='Platinum')
            self.assertTrue(decision.allowed)
            self.assertIsNone(decision.remaining)

        usage = self.quota.peek_usage('u-1', ResourceKind.MATCH_VIEWS, tier='Platinum')
        self.assertEqual(usage.current, 100)
        self.assertIsNone(usage.limit)
        self.assertEqual(usage.percentage, 0)

    def test_zero_limit_denies_first_use(self):
        config = QuotaConfig(super_likes={'Basic': 0, 'Platinum': None})
        quota = QuotaService(self.store, config=config, clock=self.clock)

        decision = quota.check_and_consume('u-1', ResourceKind.SUPER_LIKES, tier='Basic')
        self.assertFalse(decision.allowed)
        self.assertEqual(decision.remaining, 0)
        self.assertEqual(quota.peek_usage('u-1', ResourceKind.SUPER_LIKES, tier='Basic').percentage, 100)

    def test_require_raises_quota_exceeded(self):
        self.quota.require('u-1', ResourceKind.SUPER_LIKES, tier='Basic')

        with self.assertRaises(QuotaExceededError) as ctx:
            self.quota.require('u-1', ResourceKind.SUPER_LIKES, tier='Basic')

        self.assertEqual(ctx.exception.resource, 'super_likes')
        self.assertEqual(ctx.exception.remaining, 0)
        self.assertGreater(ctx.exception.resets_in, 0)

    def test_concurrent_consumers_never_overspend(self):
        quota = QuotaService(self.store, clock=self.clock)
        allowed = []
        lock = threading.Lock()
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            for _ in range(5):
                decision = quota.check_and_consume('u-1', ResourceKind.MATCH_VIEWS, tier='Silver')
                with lock:
                    allowed.append(decision.allowed)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(sum(allowed), 30)
        self.assertEqual(self.store.get('quota:match_views:u-1:2026-03-14'), 0)

    def test_store_failure_becomes_dependency_error(self):
        self.store.fail_with = RedisConnectionError("connection refused")

        with self.assertRaises(DependencyError):
            self.quota.check_and_consume('u-1', ResourceKind.MATCH_VIEWS, tier='Basic')
        with self.assertRaises(DependencyError):
            self.quota.peek_usage('u-1', ResourceKind.MATCH_VIEWS, tier='Basic')

    def test_unknown_resource(self):
        with self.assertRaises(ValidationError):
            self.quota.check_and_consume('u-1', 'boosts', tier='Basic')

    def test_refund_gives_back_one_unit(self):
        self.quota.check_and_consume('u-1', ResourceKind.SUPER_LIKES, tier='Silver')
        self.quota.check_and_consume('u-1', ResourceKind.SUPER_LIKES, tier='Silver')

        self.quota.refund('u-1', ResourceKind.SUPER_LIKES, tier='Silver')

        usage = self.quota.peek_usage('u-1', ResourceKind.SUPER_LIKES, tier='Silver')
        self.assertEqual(usage.current, 1)
        self.assertEqual(usage.remaining, 6)

    def test_refund_without_counter_is_noop(self):
        self.quota.refund('u-1', ResourceKind.SUPER_LIKES, tier='Basic')

        self.assertIsNone(self.store.get('quota:super_likes:u-1:2026-03-14'))

    def test_refund_after_rollover_does_not_touch_new_period(self):
        self.quota.check_and_consume('u-1', ResourceKind.SUPER_LIKES, tier='Basic')
        self.clock.now = datetime(2026, 3, 15, 0, 0, 1, tzinfo=timezone.utc)

        self.quota.refund('u-1', ResourceKind.SUPER_LIKES, tier='Basic')

        self.assertEqual(self.quota.peek_usage('u-1', ResourceKind.SUPER_LIKES, tier='Basic').remaining, 1)
        self.assertIsNone(self.store.get('quota:super_likes:u-1:2026-03-15'))

    def test_refund_store_failure(self):
        self.quota.check_and_consume('u-1', ResourceKind.SUPER_LIKES, tier='Basic')
        self.store.fail_with = RedisConnectionError("connection refused")

        with self.assertRaises(DependencyError):
            self.quota.refund('u-1', ResourceKind.SUPER_LIKES, tier='Basic')


class TestQuotaPeek(unittest.TestCase):

    def setUp(self):
        self.store = InMemoryCounterStore()
        self.clock = FixedClock(datetime(2026, 3, 14, 18, 0, 0, tzinfo=timezone.utc))
        self.quota = QuotaService(self.store, clock=self.clock)

    def test_peek_before_any_use(self):
        usage = self.quota.peek_usage('u-1', ResourceKind.MATCH_VIEWS, tier='Chrome')

        self.assertEqual(usage.current, 0)
        self.assertEqual(usage.limit, 10)
        self.assertEqual(usage.percentage, 0)
        self.assertEqual(usage.remaining, 10)
        self.assertEqual(usage.resets_in, 6 * 3600)

    def test_peek_does_not_mutate(self):
        self.quota.check_and_consume('u-1', ResourceKind.MATCH_VIEWS, tier='Chrome')
        before = dict(self.store.values)

        for _ in range(3):
            usage = self.quota.peek_usage('u-1', ResourceKind.MATCH_VIEWS, tier='Chrome')

        self.assertEqual(self.store.values, before)
        self.assertEqual(usage.current, 1)
        self.assertEqual(usage.percentage, 10)

    def test_usage_summary_covers_every_resource(self):
        self.quota.check_and_consume('u-1', ResourceKind.SUPER_LIKES, tier='Bronze')
        summary = self.quota.usage_summary('u-1', tier='Bronze')

        self.assertEqual(set(summary), {'match_views', 'super_likes', 'monthly_messages'})
        self.assertEqual(summary['super_likes'].current, 1)
        self.assertEqual(summary['super_likes'].limit, 5)
        self.assertEqual(summary['super_likes'].percentage, 20)

    def test_super_like_status(self):
        status = self.quota.super_like_status('u-1', tier='Gold')
        self.assertEqual(status.remaining, 10)

    def test_reset_usage_restores_full_allowance(self):
        for _ in range(5):
            self.quota.check_and_consume('u-1', ResourceKind.MATCH_VIEWS, tier='Basic')

        self.quota.reset_usage('u-1')

        self.assertEqual(self.quota.peek_usage('u-1', ResourceKind.MATCH_VIEWS, tier='Basic').remaining, 5)


class TestTierLimitsAndPeriods(unittest.TestCase):

    def test_default_table(self):
        limits = TierLimits()
        self.assertEqual(limits.limit_for(ResourceKind.MATCH_VIEWS, SubscriptionTier.SILVER), 30)
        self.assertEqual(limits.limit_for(ResourceKind.SUPER_LIKES, 'Chrome'), 3)
        self.assertIsNone(limits.limit_for(ResourceKind.MONTHLY_MESSAGES, 'Platinum'))

    def test_tier_missing_from_table_uses_most_restrictive_limit(self):
        limits = TierLimits(QuotaConfig(match_views={'Gold': 50, 'Silver': 30, 'Platinum': None}))
        self.assertEqual(limits.limit_for(ResourceKind.MATCH_VIEWS, 'Gold'), 50)
        self.assertEqual(limits.limit_for(ResourceKind.MATCH_VIEWS, 'Chrome'), 30)

    def test_negative_limit_rejected(self):
        with self.assertRaises(ValueError):
            QuotaConfig(match_views={'Basic': -1})

    def test_unknown_period_rejected(self):
        with self.assertRaises(ValueError):
            QuotaConfig(periods={'match_views': 'hourly'})

    def test_daily_period(self):
        period = current_period('daily', datetime(2026, 3, 14, 23, 59, 59, tzinfo=timezone.utc))

        self.assertEqual(period.bucket, '2026-03-14')
        self.assertEqual(period.length_seconds, 86400)
        self.assertEqual(period.seconds_remaining(datetime(2026, 3, 14, 23, 59, 59, tzinfo=timezone.utc)), 1)

    def test_monthly_period_rolls_over_year(self):
        period = current_period('monthly', datetime(2026, 12, 31, 10, 0, tzinfo=timezone.utc))

        self.assertEqual(period.bucket, '2026-12')
        self.assertEqual(period.ends_at, datetime(2027, 1, 1, tzinfo=timezone.utc))

    def test_naive_datetime_treated_as_utc(self):
        period = current_period('daily', datetime(2026, 3, 14, 8, 30))
        self.assertEqual(period.starts_at, datetime(2026, 3, 14, tzinfo=timezone.utc))

    def test_seconds_remaining_never_zero_inside_window(self):
        period = current_period('daily', datetime(2026, 3, 14, tzinfo=timezone.utc))
        almost = period.ends_at - timedelta(microseconds=1)
        self.assertEqual(period.seconds_remaining(almost), 1)

    def test_resource_aliases(self):
        self.assertIs(ResourceKind.parse('matchViews'), ResourceKind.MATCH_VIEWS)
        self.assertIs(ResourceKind.parse('SUPER_LIKES'), ResourceKind.SUPER_LIKES)


class TestRedisCounterStore(unittest.TestCase):

    def setUp(self):
        self.redis = MagicMock()
        self.consume_script = MagicMock()
        self.incr_script = MagicMock()
        self.redis.register_script.side_effect = [self.consume_script, self.incr_script]
        self.store = RedisCounterStore(self.redis)

    def test_decr_if_positive_runs_script(self):
        self.consume_script.return_value = [1, 4, 3600]

        result = self.store.decr_if_positive('quota:match_views:u-1:2026-03-14', 5, 3600)

        self.assertEqual(result, (True, 4, 3600))
        self.consume_script.assert_called_once_with(
            keys=['quota:match_views:u-1:2026-03-14'], args=[5, 3600]
        )

    def test_denied_result(self):
        self.consume_script.return_value = [0, 0, 120]
        self.assertEqual(self.store.decr_if_positive('k', 5, 3600), (False, 0, 120))

    def test_get_parses_bytes(self):
        self.redis.get.return_value = b'3'
        self.assertEqual(self.store.get('k'), 3)

        self.redis.get.return_value = None
        self.assertIsNone(self.store.get('k'))

    def test_ttl_of_missing_key_is_zero(self):
        self.redis.ttl.return_value = -2
        self.assertEqual(self.store.ttl('k'), 0)

    def test_incr_with_expiry(self):
        self.incr_script.return_value = 7
        self.assertEqual(self.store.incr_with_expiry('k:used', 60), 7)
        self.incr_script.assert_called_once_with(keys=['k:used'], args=[60])

    def test_delete_without_keys_is_noop(self):
        self.store.delete()
        self.redis.delete.assert_not_called()


if __name__ == '__main__':
    unittest.main(verbosity=2)
