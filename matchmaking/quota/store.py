#!/usr/bin/env python3
"""
Redis-backed counter store for quota counters.

The consume path runs as a single Lua script so that "read remaining, then
decrement" happens atomically on the Redis server. Two concurrent requests can
never both observe a positive value and both decrement past zero.
"""

import logging
from typing import Optional, Tuple

from redis import Redis

from matchmaking.interfaces import CounterStore

logger = logging.getLogger(__name__)

# KEYS[1] = counter key
# ARGV[1] = period limit, ARGV[2] = expiry in seconds
# Returns {allowed, remaining, ttl}
CONSUME_SCRIPT = """
local current = redis.call('GET', KEYS[1])
local expiry = tonumber(ARGV[2])
if not current then
    local remaining = tonumber(ARGV[1]) - 1
    if remaining < 0 then
        return {0, 0, expiry}
    end
    redis.call('SET', KEYS[1], remaining, 'EX', expiry)
    return {1, remaining, expiry}
end
local ttl = redis.call('TTL', KEYS[1])
if tonumber(current) > 0 then
    local remaining = redis.call('DECR', KEYS[1])
    return {1, remaining, ttl}
end
return {0, 0, ttl}
"""

# KEYS[1] = usage key, ARGV[1] = expiry in seconds
INCR_SCRIPT = """
local value = redis.call('INCR', KEYS[1])
if value == 1 then
    redis.call('EXPIRE', KEYS[1], tonumber(ARGV[1]))
end
return value
"""


class RedisCounterStore(CounterStore):
    """CounterStore over a Redis connection."""

    def __init__(self, redis_conn: Redis):
        self.redis = redis_conn
        self._consume = self.redis.register_script(CONSUME_SCRIPT)
        self._incr = self.redis.register_script(INCR_SCRIPT)

    @classmethod
    def from_url(cls, redis_url: str = 'redis://localhost:6379/0') -> 'RedisCounterStore':
        return cls(Redis.from_url(redis_url))

    def get(self, key: str) -> Optional[int]:
        value = self.redis.get(key)
        if value is None:
            return None
        # Redis returns bytes
        return int(value)

    def ttl(self, key: str) -> int:
        ttl = self.redis.ttl(key)
        return ttl if ttl and ttl > 0 else 0

    def set_with_expiry(self, key: str, value: int, ttl_seconds: int) -> None:
        self.redis.setex(key, ttl_seconds, value)

    def decr_if_positive(self, key: str, initial: int, ttl_seconds: int) -> Tuple[bool, int, int]:
        allowed, remaining, ttl = self._consume(keys=[key], args=[initial, ttl_seconds])
        return bool(allowed), max(0, int(remaining)), max(0, int(ttl))

    def incr_with_expiry(self, key: str, ttl_seconds: int) -> int:
        return int(self._incr(keys=[key], args=[ttl_seconds]))

    def delete(self, *keys: str) -> None:
        if keys:
            self.redis.delete(*keys)
