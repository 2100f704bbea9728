import logging
from typing import Optional

import redis

from ...application.ports.rate_limiter import RateLimiter
from .memory_rate_limiter import InMemoryRateLimiter

logger = logging.getLogger(__name__)


class RedisRateLimiter(RateLimiter):
    """Fixed-window limiter shared across processes.

    The window opens with the first request for a key and closes
    ``window_seconds`` later regardless of traffic. When Redis is
    unreachable the check falls back to a process-local limiter.
    """

    def __init__(self, url: str, prefix: str = "qr_event:rl:", client=None, fallback: Optional[RateLimiter] = None) -> None:
        self.client = client or redis.Redis.from_url(url)
        self.prefix = prefix
        self.fallback = fallback or InMemoryRateLimiter()

    def allow(self, key: str, max_requests: int, window_seconds: int) -> bool:
        rk = f"{self.prefix}{key}:{window_seconds}"
        try:
            pipe = self.client.pipeline()
            pipe.incr(rk, 1)
            pipe.ttl(rk)
            count, ttl = pipe.execute()
            # -1: key has no expiry yet, so this request opened the window
            if int(ttl) < 0:
                self.client.expire(rk, window_seconds)
        except redis.RedisError as e:
            logger.error(f"Redis rate limit error, using memory store: {e}")
            return self.fallback.allow(key, max_requests, window_seconds)
        return int(count) <= int(max_requests)
