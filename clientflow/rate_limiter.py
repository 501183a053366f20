"""
Rate limiting utilities
Counters live in an explicit store created by the application lifespan
and attached to app.state; nothing here is module-level mutable state.
"""

import logging
import time
from threading import Lock
from typing import Callable, Optional

import redis
from fastapi import HTTPException, Request, status

from .config import TRUSTED_PROXY_IPS

logger = logging.getLogger(__name__)


class RateLimitStore:
    """Fixed-window counter store"""

    def hit(self, key: str, window_seconds: int) -> tuple[int, int]:
        """
        Count one request against key

        Returns:
            Tuple of (count in current window, seconds until the window resets)
        """
        raise NotImplementedError

    def close(self) -> None:
        pass


class InMemoryRateLimitStore(RateLimitStore):
    """Single-process store with explicit eviction of expired windows"""

    def __init__(self, cleanup_interval: int = 60, clock: Callable[[], float] = time.time):
        # Format: {key: {'count': int, 'reset_time': float}}
        self._entries: dict[str, dict] = {}
        self._lock = Lock()
        self._cleanup_interval = cleanup_interval
        self._last_cleanup = 0.0
        self._clock = clock

    def __len__(self) -> int:
        return len(self._entries)

    def evict_expired(self) -> int:
        """Remove expired windows; returns how many were dropped"""
        now = self._clock()
        with self._lock:
            expired_keys = [k for k, v in self._entries.items() if now >= v["reset_time"]]
            for k in expired_keys:
                del self._entries[k]
            self._last_cleanup = now

        if expired_keys:
            logger.debug(f"🧹 Cleaned up {len(expired_keys)} expired rate limit entries")
        return len(expired_keys)

    def hit(self, key: str, window_seconds: int) -> tuple[int, int]:
        now = self._clock()
        if now - self._last_cleanup >= self._cleanup_interval:
            self.evict_expired()

        with self._lock:
            entry = self._entries.get(key)
            if entry is None or now >= entry["reset_time"]:
                entry = {"count": 0, "reset_time": now + window_seconds}
                self._entries[key] = entry
            entry["count"] += 1
            return entry["count"], max(0, int(entry["reset_time"] - now))


class RedisRateLimitStore(RateLimitStore):
    """Shared store for multi-process deployments: INCR + EXPIRE per window"""

    def __init__(self, client: redis.Redis):
        self._client = client

    @classmethod
    def from_url(cls, redis_url: str) -> "RedisRateLimitStore":
        client = redis.from_url(
            redis_url,
            decode_responses=True,
            socket_connect_timeout=15,
            socket_timeout=30,
            retry_on_timeout=True,
            health_check_interval=30,
            max_connections=20,
        )
        return cls(client)

    def hit(self, key: str, window_seconds: int) -> tuple[int, int]:
        pipe = self._client.pipeline()
        pipe.incr(key)
        pipe.ttl(key)
        count, ttl = pipe.execute()
        if ttl is None or ttl < 0:
            self._client.expire(key, window_seconds)
            ttl = window_seconds
        return int(count), int(ttl)

    def close(self) -> None:
        self._client.close()


def build_rate_limit_store(redis_url: Optional[str]) -> RateLimitStore:
    """Redis when configured and reachable, otherwise in-memory"""
    if redis_url:
        try:
            store = RedisRateLimitStore.from_url(redis_url)
            store._client.ping()
            logger.info("✅ Rate limiting backed by Redis")
            return store
        except redis.RedisError as e:
            logger.error(f"❌ Failed to connect to Redis: {e}")
            logger.warning("⚠️ Falling back to in-memory rate limiting (single process only)")
    return InMemoryRateLimitStore()


def get_client_ip(request: Request) -> str:
    """Client IP, trusting proxy headers only from configured proxies"""
    direct_ip = request.client.host if request.client else "unknown"
    if direct_ip not in TRUSTED_PROXY_IPS:
        return direct_ip

    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # Rightmost hop not added by one of our proxies
        ips = [ip.strip() for ip in forwarded.split(",") if ip.strip()]
        for ip in reversed(ips):
            if ip not in TRUSTED_PROXY_IPS:
                return ip
    return direct_ip


def create_rate_limiter(limit: int, window_seconds: int, key_prefix: str = "rate_limit"):
    """
    Create a rate limiter dependency with specific parameters

    Example usage:
        rate_limit_login = create_rate_limiter(limit=10, window_seconds=300, key_prefix="login")

        @router.post("/login")
        async def login(data: LoginRequest, _: None = Depends(rate_limit_login)):
            ...
    """

    async def rate_limiter(request: Request):
        store: Optional[RateLimitStore] = getattr(request.app.state, "rate_limit_store", None)
        if store is None:
            return

        key = f"{key_prefix}:{get_client_ip(request)}"
        try:
            count, ttl = store.hit(key, window_seconds)
        except redis.RedisError as e:
            logger.error(f"❌ Rate limiting error: {e}")
            # Fail closed
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Rate limiting service temporarily unavailable",
            ) from e

        if count > limit:
            logger.warning(f"🚫 Rate limit EXCEEDED for {key} - {count}/{limit} requests used")
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail={
                    "message": f"Rate limit exceeded. Maximum {limit} requests per {window_seconds} seconds.",
                    "retry_after": ttl,
                    "limit": limit,
                    "window_seconds": window_seconds,
                },
                headers={"Retry-After": str(ttl)},
            )

        request.state.rate_limit_remaining = limit - count

    return rate_limiter
