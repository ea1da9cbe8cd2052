"""Two-tier cache for async lookups: process-local TTL map, then Redis.

Property lookups during history enrichment hit the same listing for many
calculations; the local tier absorbs that, Redis shares it across workers.
"""

import functools
import hashlib
import json
import logging
import time
from collections import OrderedDict
from typing import Any, Callable

import redis.asyncio as redis

from estatecalc.config import settings

logger = logging.getLogger(__name__)

_MISSING = object()
_redis_client: redis.Redis | None = None


class TTLCache:
    """Bounded key -> value map with a fixed time-to-live per entry.

    Expired entries are swept on access and on insert; when full, the oldest
    entry is evicted.
    """

    def __init__(
        self,
        maxsize: int = 1024,
        ttl_seconds: float = 300,
        clock: Callable[[], float] = time.monotonic,
    ):
        if maxsize <= 0:
            raise ValueError("maxsize must be positive")
        self.maxsize = maxsize
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._data: OrderedDict[str, tuple[float, Any]] = OrderedDict()

    def _sweep(self, now: float) -> None:
        # Same TTL for every entry, so insertion order is expiry order
        while self._data:
            key, (expires_at, _) = next(iter(self._data.items()))
            if expires_at > now:
                break
            del self._data[key]

    def get(self, key: str, default: Any = None) -> Any:
        now = self.clock()
        self._sweep(now)
        entry = self._data.get(key)
        if entry is None:
            return default
        return entry[1]

    def set(self, key: str, value: Any) -> None:
        now = self.clock()
        self._sweep(now)
        if key in self._data:
            del self._data[key]
        elif len(self._data) >= self.maxsize:
            self._data.popitem(last=False)
        self._data[key] = (now + self.ttl_seconds, value)

    def pop(self, key: str, default: Any = None) -> Any:
        entry = self._data.pop(key, None)
        return default if entry is None else entry[1]

    def clear(self) -> None:
        self._data.clear()

    def __len__(self) -> int:
        self._sweep(self.clock())
        return len(self._data)

    def __contains__(self, key: str) -> bool:
        return self.get(key, _MISSING) is not _MISSING


async def get_redis() -> redis.Redis | None:
    global _redis_client
    if not settings.redis_url:
        return None
    if _redis_client is None:
        _redis_client = redis.from_url(settings.redis_url, decode_responses=True)
    return _redis_client


def _cache_key(prefix: str, *args: Any, **kwargs: Any) -> str:
    """Generate a deterministic cache key from function arguments."""
    raw = json.dumps({"args": [str(a) for a in args], "kwargs": {k: str(v) for k, v in kwargs.items()}}, sort_keys=True)
    h = hashlib.sha256(raw.encode()).hexdigest()[:16]
    return f"estatecalc:{prefix}:{h}"


def cached(prefix: str, ttl_seconds: int | None = None, maxsize: int | None = None):
    """Cache decorator for async methods returning JSON-serializable values.

    Args:
        prefix: Cache key prefix (e.g., "property:summary")
        ttl_seconds: Time-to-live for both tiers (default from settings)
        maxsize: Local tier capacity (default from settings)

    The decorated method's `self` is not part of the key. Instead its
    `cache_scope` attribute is, so instances reading different backends do
    not share entries.
    """
    ttl = ttl_seconds or settings.property_cache_ttl_seconds

    def decorator(func: Callable) -> Callable:
        local = TTLCache(maxsize=maxsize or settings.property_cache_maxsize, ttl_seconds=ttl)

        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            key = _cache_key(prefix, getattr(args[0], "cache_scope", ""), *args[1:], **kwargs)
            value = local.get(key, _MISSING)
            if value is not _MISSING:
                logger.debug("Local cache hit: %s", key)
                return value

            try:
                r = await get_redis()
                cached_value = await r.get(key) if r is not None else None
                if cached_value is not None:
                    logger.debug("Redis cache hit: %s", key)
                    value = json.loads(cached_value)
                    local.set(key, value)
                    return value
            except Exception:
                logger.warning("Redis unavailable, skipping cache for %s", key)

            result = await func(*args, **kwargs)
            local.set(key, result)

            try:
                r = await get_redis()
                if r is not None:
                    await r.setex(key, ttl, json.dumps(result, default=str))
            except Exception:
                logger.warning("Failed to write cache for %s", key)

            return result

        wrapper.cache = local
        return wrapper
    return decorator
