"""
==============================================================================
Redis Cache Service
==============================================================================

Cache-aside store backed by Redis.

Every public method is safe to call while Redis is unavailable: reads miss,
writes are skipped and `get_or_set` still returns the factory's value, so a
cache outage never breaks a request.

Key Layout:
----------
    {instance_name}:{key}          e.g. splitter:localization:es:greeting

Values are stored as JSON.

==============================================================================
"""

from __future__ import annotations

import json
import logging
from datetime import timedelta
from functools import lru_cache
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

import redis

from splitter.config import get_settings


logger = logging.getLogger(__name__)

TTL = Union[int, timedelta, None]


class RedisCache:
    """
    JSON cache with key prefixing, hit/miss counters and graceful degradation.

    Attributes:
        instance_name: Prefix applied to every key
        default_ttl: Expiry used when a write passes no TTL
        _client: redis.Redis client, None while disabled

    Example:
        >>> cache = RedisCache.from_settings()
        >>> cache.set("greeting", {"en": "Hello"}, ttl=timedelta(minutes=5))
        >>> cache.get("greeting")
        {'en': 'Hello'}
    """

    def __init__(
        self,
        client: Optional[redis.Redis] = None,
        instance_name: str = "splitter",
        default_ttl: timedelta = timedelta(minutes=60)
    ) -> None:
        self._client = client
        self.instance_name = instance_name
        self.default_ttl = default_ttl
        self._hits = 0
        self._misses = 0

    @classmethod
    def from_settings(cls) -> RedisCache:
        """Build a cache from application settings (disabled if REDIS_ENABLED is false)."""
        settings = get_settings()
        client = None
        if settings.redis_enabled:
            client = redis.Redis.from_url(
                settings.redis_url,
                decode_responses=True,
                socket_connect_timeout=2,
                socket_timeout=2
            )
        return cls(
            client=client,
            instance_name=settings.redis_instance_name,
            default_ttl=timedelta(minutes=settings.redis_default_ttl_minutes)
        )

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    @property
    def enabled(self) -> bool:
        return self._client is not None

    def ping(self) -> bool:
        """True when Redis answers."""
        if not self._client:
            return False
        try:
            return bool(self._client.ping())
        except redis.RedisError as e:
            logger.debug(f"Redis ping failed: {e}")
            return False

    def connect(self) -> None:
        """Surface a misconfigured Redis at startup (non-fatal)."""
        if not self._client:
            logger.info("Redis cache disabled")
            return
        if self.ping():
            logger.info("✅ Redis connected")
        else:
            logger.warning("⚠️ Redis ping failed, cache operations will be skipped")

    def close(self) -> None:
        if self._client:
            self._client.close()

    # =========================================================================
    # KEYS AND SERIALIZATION
    # =========================================================================

    def make_key(self, key: str) -> str:
        return f"{self.instance_name}:{key}" if self.instance_name else key

    def _ttl_seconds(self, ttl: TTL) -> Optional[int]:
        value = self.default_ttl if ttl is None else ttl
        if isinstance(value, timedelta):
            return max(1, int(value.total_seconds()))
        return int(value) if value else None

    @staticmethod
    def _dumps(value: Any) -> str:
        return json.dumps(value, default=str)

    # =========================================================================
    # CORE OPERATIONS
    # =========================================================================

    def get(self, key: str) -> Any:
        """Cached value for key, or None on a miss or error."""
        if not self._client:
            self._misses += 1
            return None
        try:
            data = self._client.get(self.make_key(key))
        except redis.RedisError as e:
            logger.debug(f"Cache GET error for key={key!r}: {e}")
            self._misses += 1
            return None

        if data is None:
            self._misses += 1
            return None

        try:
            value = json.loads(data)
        except ValueError as e:
            logger.debug(f"Cache value for key={key!r} is not JSON: {e}")
            self._misses += 1
            return None

        self._hits += 1
        return value

    def set(self, key: str, value: Any, ttl: TTL = None) -> None:
        if not self._client:
            return
        try:
            self._client.set(self.make_key(key), self._dumps(value), ex=self._ttl_seconds(ttl))
        except (redis.RedisError, TypeError, ValueError) as e:
            logger.debug(f"Cache SET error for key={key!r}: {e}")

    def remove(self, key: str) -> None:
        if not self._client:
            return
        try:
            self._client.delete(self.make_key(key))
        except redis.RedisError as e:
            logger.debug(f"Cache DELETE error for key={key!r}: {e}")

    def exists(self, key: str) -> bool:
        if not self._client:
            return False
        try:
            return bool(self._client.exists(self.make_key(key)))
        except redis.RedisError as e:
            logger.debug(f"Cache EXISTS error for key={key!r}: {e}")
            return False

    def get_or_set(self, key: str, factory: Callable[[], Any], ttl: TTL = None) -> Any:
        """
        Return the cached value, computing and storing it on a miss.

        None results from the factory are not cached.
        """
        value = self.get(key)
        if value is not None:
            return value

        value = factory()
        if value is not None:
            self.set(key, value, ttl)
        return value

    # =========================================================================
    # BULK OPERATIONS
    # =========================================================================

    def remove_all(self, pattern: str) -> int:
        """Delete keys matching a glob pattern using SCAN. Returns the count removed."""
        if not self._client:
            return 0
        try:
            keys = list(self._client.scan_iter(match=self.make_key(pattern)))
            if keys:
                self._client.delete(*keys)
                logger.debug(f"Cache invalidated {len(keys)} key(s) matching {pattern!r}")
            return len(keys)
        except redis.RedisError as e:
            logger.debug(f"Cache DELETE_PATTERN error for pattern={pattern!r}: {e}")
            return 0

    def get_all(self, keys: Iterable[str]) -> Dict[str, Any]:
        """Values for the keys that are present."""
        keys = list(keys)
        if not self._client or not keys:
            self._misses += len(keys)
            return {}
        try:
            raw = self._client.mget([self.make_key(k) for k in keys])
        except redis.RedisError as e:
            logger.debug(f"Cache MGET error: {e}")
            self._misses += len(keys)
            return {}

        found = {}
        for key, data in zip(keys, raw):
            if data is None:
                self._misses += 1
                continue
            try:
                found[key] = json.loads(data)
                self._hits += 1
            except ValueError:
                self._misses += 1
        return found

    def set_all(self, items: Dict[str, Any], ttl: TTL = None) -> None:
        if not self._client or not items:
            return
        seconds = self._ttl_seconds(ttl)
        try:
            pipe = self._client.pipeline()
            for key, value in items.items():
                pipe.set(self.make_key(key), self._dumps(value), ex=seconds)
            pipe.execute()
        except (redis.RedisError, TypeError, ValueError) as e:
            logger.debug(f"Cache SET_ALL error: {e}")

    def publish(self, channel: str, message: Any) -> int:
        """Publish a JSON message. Returns the number of receivers."""
        if not self._client:
            return 0
        try:
            return int(self._client.publish(self.make_key(channel), self._dumps(message)))
        except redis.RedisError as e:
            logger.debug(f"Cache PUBLISH error on {channel!r}: {e}")
            return 0

    # =========================================================================
    # OBSERVABILITY
    # =========================================================================

    @property
    def stats(self) -> Dict[str, Any]:
        total = self._hits + self._misses
        return {
            "enabled": self.enabled,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self._hits / total * 100, 1) if total > 0 else 0.0,
        }


@lru_cache(maxsize=1)
def get_cache() -> RedisCache:
    """Process-wide cache. Also usable as a FastAPI dependency."""
    return RedisCache.from_settings()


__all__ = ["RedisCache", "get_cache"]
