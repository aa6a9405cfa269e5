"""
Quota Module - per-tier usage allowances.

Public API:
- QuotaService: check_and_consume / peek_usage / usage_summary / reset_usage
- RedisCounterStore: atomic counter store over Redis
- ResourceKind, TierLimits: resource kinds and the tier limit table
"""

from matchmaking.quota.limits import ResourceKind, TierLimits, QuotaPeriod, current_period
from matchmaking.quota.service import QuotaService, QuotaDecision, UsageStats
from matchmaking.quota.store import RedisCounterStore

__all__ = [
    'QuotaService',
    'QuotaDecision',
    'UsageStats',
    'RedisCounterStore',
    'ResourceKind',
    'TierLimits',
    'QuotaPeriod',
    'current_period',
]
