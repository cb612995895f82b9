"""Redis-backed fixed window rate limiter shared across service replicas."""

from __future__ import annotations

import time

from redis import Redis


class RedisFixedWindowRateLimiter:
    """Counts attempts per key in Redis buckets that expire with their window."""

    def __init__(
        self,
        client: Redis,
        *,
        max_requests: int,
        window_seconds: int,
        key_prefix: str = "quantgen:auth:rate",
    ) -> None:
        """Keep the Redis client and window configuration."""
        self._client = client
        self._max_requests = max_requests
        self._window = window_seconds
        self._key_prefix = key_prefix

    def allow(self, key: str) -> bool:
        """Return ``True`` when ``key`` has attempts left in the current window."""
        bucket = int(time.time()) // self._window
        redis_key = f"{self._key_prefix}:{key}:{bucket}"
        # INCR and EXPIRE are applied as one MULTI block.
        with self._client.pipeline(transaction=True) as pipe:
            pipe.incr(redis_key)
            pipe.expire(redis_key, self._window)
            count, _ = pipe.execute()
        return int(count) <= self._max_requests
