"""Per-client fixed-window rate limiting for submission endpoints.

Each call site owns a ``RateLimiter`` configured with its own limit; the
counters live in an injected ``RateLimitStore``. The in-memory store is
only correct for a single-process deployment. Use the Redis store when
more than one worker serves submissions.
"""

import asyncio
import math
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Protocol

from ..logging import get_context_logger, log_rate_limited
from .exceptions import RateLimitExceededError

logger = get_context_logger(__name__)

DEFAULT_WINDOW_SECONDS = 15 * 60

# Format: (requests, window_seconds)
RATE_LIMITS: dict[str, tuple[int, int]] = {
    "manual": (5, DEFAULT_WINDOW_SECONDS),
    "map": (10, DEFAULT_WINDOW_SECONDS),
    "voice": (100, DEFAULT_WINDOW_SECONDS),
    "webhook": (100, DEFAULT_WINDOW_SECONDS),
}

UNKNOWN_CLIENT = "unknown"


@dataclass
class WindowState:
    """Counter for one client in the current window."""

    count: int
    reset_at: float


@dataclass
class RateLimitDecision:
    """Result of recording one request against a window."""

    limited: bool
    count: int
    reset_at: float

    def retry_after(self, now: float) -> int:
        return max(1, math.ceil(self.reset_at - now))


class RateLimitStore(Protocol):
    """Backend holding per-key window counters."""

    async def hit(
        self, key: str, max_requests: int, window_seconds: int, now: float
    ) -> RateLimitDecision:
        ...


class InMemoryRateLimitStore:
    """Process-local fixed-window counters.

    The lock makes check-then-update atomic within one event loop;
    counters are not shared across processes and vanish on restart.
    Expired windows are swept from ``hit`` at most once per
    ``sweep_interval`` seconds.
    """

    def __init__(self, sweep_interval: float = 60.0):
        self._windows: dict[str, WindowState] = {}
        self._lock = asyncio.Lock()
        self.sweep_interval = sweep_interval
        self._next_sweep: float | None = None

    async def hit(
        self, key: str, max_requests: int, window_seconds: int, now: float
    ) -> RateLimitDecision:
        async with self._lock:
            if self._next_sweep is None:
                self._next_sweep = now + self.sweep_interval
            elif now >= self._next_sweep:
                self._evict_expired(now)
                self._next_sweep = now + self.sweep_interval

            state = self._windows.get(key)

            if state is None or now > state.reset_at:
                state = WindowState(count=1, reset_at=now + window_seconds)
                self._windows[key] = state
                return RateLimitDecision(False, state.count, state.reset_at)

            # Rejected requests do not extend or count against the window
            if state.count >= max_requests:
                return RateLimitDecision(True, state.count, state.reset_at)

            state.count += 1
            return RateLimitDecision(False, state.count, state.reset_at)

    async def cleanup(self, now: float | None = None) -> int:
        """Remove expired windows to prevent memory growth."""
        now = time.time() if now is None else now
        async with self._lock:
            return self._evict_expired(now)

    def _evict_expired(self, now: float) -> int:
        expired = [key for key, state in self._windows.items() if now > state.reset_at]
        for key in expired:
            del self._windows[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._windows)


class RedisRateLimitStore:
    """Redis-backed fixed-window counters for multi-instance deployments.

    Uses INCR with an expiry set on the first hit of each window.
    """

    def __init__(self, redis_client, key_prefix: str = "wbintake:ratelimit:"):
        self._redis = redis_client
        self._key_prefix = key_prefix

    async def hit(
        self, key: str, max_requests: int, window_seconds: int, now: float
    ) -> RateLimitDecision:
        redis_key = f"{self._key_prefix}{key}"

        try:
            pipe = self._redis.pipeline()
            pipe.incr(redis_key)
            pipe.expire(redis_key, window_seconds, nx=True)
            pipe.ttl(redis_key)
            count, _, ttl = await pipe.execute()
        except Exception as e:
            logger.warning(f"Redis rate limit error: {e}, allowing request")
            # Fail open - allow request if Redis is unavailable
            return RateLimitDecision(False, 0, now + window_seconds)

        reset_at = now + (ttl if ttl and ttl > 0 else window_seconds)
        return RateLimitDecision(count > max_requests, count, reset_at)


class RateLimiter:
    """Fixed-window limiter for one submission endpoint.

    Args:
        max_requests: Requests allowed per identity per window
        window_seconds: Window length
        store: Counter backend
        scope: Name of the call site, used in keys and logs
        clock: Returns the current time in seconds
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: int = DEFAULT_WINDOW_SECONDS,
        store: RateLimitStore | None = None,
        scope: str = "default",
        clock: Callable[[], float] = time.time,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.store = store if store is not None else InMemoryRateLimitStore()
        self.scope = scope
        self._clock = clock

    async def hit(self, identity: str) -> RateLimitDecision:
        """Record one request for ``identity`` and return the decision."""
        return await self.store.hit(
            f"{self.scope}:{identity or UNKNOWN_CLIENT}",
            self.max_requests,
            self.window_seconds,
            self._clock(),
        )

    async def is_limited(self, identity: str) -> bool:
        """Record one request and report whether it is over the limit."""
        return (await self.hit(identity)).limited

    async def check(self, identity: str) -> RateLimitDecision:
        """Record one request, raising if it is over the limit.

        Raises:
            RateLimitExceededError: With seconds until the window resets
        """
        decision = await self.hit(identity)
        if decision.limited:
            retry_after = decision.retry_after(self._clock())
            log_rate_limited(self.scope, identity, retry_after)
            raise RateLimitExceededError(identity, retry_after)
        return decision


def build_rate_limiters(
    limits: Mapping[str, tuple[int, int]] | None = None,
    store: RateLimitStore | None = None,
    clock: Callable[[], float] = time.time,
) -> dict[str, RateLimiter]:
    """Create one limiter per call site sharing a single store."""
    store = store if store is not None else InMemoryRateLimitStore()
    return {
        scope: RateLimiter(max_requests, window, store=store, scope=scope, clock=clock)
        for scope, (max_requests, window) in (limits or RATE_LIMITS).items()
    }


def get_client_identity(headers: Mapping[str, str]) -> str:
    """Identify a client for rate limiting.

    Uses the first X-Forwarded-For hop, then X-Real-IP. Clients sending
    neither share the ``"unknown"`` bucket.
    """
    forwarded = headers.get("x-forwarded-for") or headers.get("X-Forwarded-For")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    real_ip = headers.get("x-real-ip") or headers.get("X-Real-IP")
    if real_ip and real_ip.strip():
        return real_ip.strip()

    return UNKNOWN_CLIENT
