"""
Sliding-window rate limiter with a burst allowance.

State lives in an injected TTLCache, keyed by session or site. Once the
regular window quota is used up, up to `burst` extra requests are allowed
per window before requests are refused.
"""
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from offerscope.utils.logger import get_logger
from offerscope.utils.ttl_cache import TTLCache

logger = get_logger("utils.rate_limiter")


@dataclass
class RateLimitResult:
    success: bool
    limit: int
    remaining: int
    reset: float                         # epoch seconds when the window resets
    retry_after: Optional[int] = None    # seconds, only set when refused


class RateLimiter:
    def __init__(
        self,
        cache: TTLCache,
        requests: int = 100,
        window_seconds: int = 3600,
        burst: int = 10,
        enabled: bool = True,
        clock: Callable[[], float] = time.time,
    ):
        self.cache = cache
        self.requests = requests
        self.window_seconds = window_seconds
        self.burst = burst
        self.enabled = enabled
        self._clock = clock
        # Held across read-check-write so concurrent requests cannot overshoot
        self.lock = threading.Lock()

    def check(self, key: str) -> RateLimitResult:
        """Record a request for key and report whether it is allowed."""
        if not self.enabled:
            now = self._clock()
            return RateLimitResult(True, self.requests, self.requests, now + self.window_seconds)

        with self.lock:
            return self._check_locked(key)

    def _check_locked(self, key: str) -> RateLimitResult:
        now = self._clock()
        reset = now + self.window_seconds
        window_start = now - self.window_seconds
        cache_key = f"ratelimit:{key}"
        state = self.cache.get(cache_key) or {}
        timestamps = [ts for ts in state.get("timestamps", []) if ts > window_start]
        burst_used = state.get("burst_used", 0)
        window_opened = state.get("window_opened", now)

        # New window: burst allowance refills
        if now - window_opened >= self.window_seconds:
            burst_used = 0
            window_opened = now

        count = len(timestamps)
        remaining = max(0, self.requests - count - 1)
        if count < self.requests:
            success = True
        elif burst_used < self.burst:
            success = True
            burst_used += 1
            remaining = max(0, self.burst - burst_used)
        else:
            success = False
            remaining = 0

        if success:
            timestamps.append(now)
            self.cache.set(
                cache_key,
                {"timestamps": timestamps, "burst_used": burst_used, "window_opened": window_opened},
                ttl=self.window_seconds + 60,
            )
            return RateLimitResult(True, self.requests, remaining, reset)

        retry_after = max(1, math.ceil(timestamps[0] + self.window_seconds - now)) if timestamps else 1
        logger.warning(
            f"Rate limit exceeded for {key}: count={count} limit={self.requests} "
            f"burst_used={burst_used}/{self.burst}"
        )
        return RateLimitResult(False, self.requests, 0, reset, retry_after=retry_after)
