"""Response cache backed by Redis.

This module stores serialized GET response bodies under keys derived from
the acting identity and the request URL. The cache is optional: when Redis
is not configured or not reachable every operation degrades to a no-op and
requests are served straight from the database.
"""

import logging
import threading
import time
from typing import Any, Iterable, Optional

import redis

from config import (
    API_PREFIX,
    CACHE_RETRY_SECONDS,
    CACHE_SOCKET_TIMEOUT,
    CACHE_TTL_SECONDS,
    REDIS_URL,
)
from core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

KEY_PREFIX = "cache"


def build_cache_key(user_id: int, method: str, path: str, query: str = "") -> str:
    """Build the cache key for a request.

    Args:
        user_id: Id of the acting user; responses are never shared across users.
        method: HTTP method.
        path: Request path, including the API prefix.
        query: Raw query string, without the leading '?'.

    Returns:
        Cache key string, e.g. ``cache:7:GET:/api/v1/tasks``.
    """
    key = f"{KEY_PREFIX}:{user_id}:{method.upper()}:{path}"
    if query:
        key = f"{key}?{query}"
    return key


def task_list_patterns(owner_id: int) -> list:
    """Patterns matching every cached task listing of one owner."""
    base = f"{KEY_PREFIX}:{owner_id}:GET:{API_PREFIX}/tasks"
    return [base, f"{base}[?]*"]


def task_detail_patterns(task_id: int) -> list:
    """Patterns matching every cached copy of one task, whoever read it."""
    base = f"{KEY_PREFIX}:*:GET:{API_PREFIX}/tasks/{task_id}"
    return [base, f"{base}[?]*"]


def user_list_patterns() -> list:
    """Patterns matching every cached user listing."""
    return [f"{KEY_PREFIX}:*:GET:{API_PREFIX}/users*"]


def user_scope_patterns(user_id: int) -> list:
    """Patterns matching everything cached on behalf of one user."""
    return [f"{KEY_PREFIX}:{user_id}:*"]


class ResponseCache:
    """Best-effort key/value cache for response bodies.

    Every backend error is logged and swallowed. After a failure the cache
    is bypassed for ``retry_seconds`` so a dead Redis does not add a socket
    timeout to every request.
    """

    def __init__(
        self,
        client: Optional[Any],
        ttl_seconds: int = CACHE_TTL_SECONDS,
        retry_seconds: float = CACHE_RETRY_SECONDS,
    ):
        """Initialize ResponseCache.

        Args:
            client: A redis.Redis compatible client, or None to disable caching.
            ttl_seconds: Expiry applied to every stored entry.
            retry_seconds: Back-off window after a backend failure.
        """
        self._client = client
        self.ttl_seconds = ttl_seconds
        self._retry_seconds = retry_seconds
        self._down_until = 0.0
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self._client is not None

    def is_available(self) -> bool:
        """Return True when the backend is configured and not backing off."""
        if self._client is None:
            return False
        with self._lock:
            return time.monotonic() >= self._down_until

    def _mark_down(self, operation: str, error: Exception) -> None:
        with self._lock:
            self._down_until = time.monotonic() + self._retry_seconds
        logger.warning("Cache %s failed, bypassing cache: %s", operation, error)

    def ping(self) -> bool:
        """Check the backend connection.

        Returns:
            True if the backend answered, False otherwise.
        """
        if self._client is None:
            return False
        try:
            self._client.ping()
        except redis.RedisError as e:
            self._mark_down("ping", e)
            return False
        return True

    def get(self, key: str) -> Optional[bytes]:
        """Return the cached body for key, or None on a miss or failure."""
        if not self.is_available():
            return None
        try:
            value = self._client.get(key)
        except redis.RedisError as e:
            self._mark_down("get", e)
            return None
        if value is None:
            logger.debug("Cache miss: %s", key)
            return None
        logger.debug("Cache hit: %s", key)
        if isinstance(value, str):
            value = value.encode("utf-8")
        return value

    def set(self, key: str, value: bytes, ttl_seconds: Optional[int] = None) -> None:
        """Store a body under key with a TTL."""
        if not self.is_available():
            return
        ttl = ttl_seconds if ttl_seconds is not None else self.ttl_seconds
        try:
            self._client.set(key, value, ex=ttl)
        except redis.RedisError as e:
            self._mark_down("set", e)
            return
        logger.debug("Cached %s (ttl=%ds)", key, ttl)

    def invalidate(self, patterns: Iterable[str]) -> int:
        """Delete every key matching any of the glob patterns.

        Args:
            patterns: Redis glob patterns, e.g. ``cache:*:GET:/api/v1/users*``.

        Returns:
            Number of keys removed.
        """
        if not self.is_available():
            return 0
        removed = 0
        try:
            for pattern in patterns:
                keys = list(self._client.scan_iter(match=pattern))
                if keys:
                    removed += self._client.delete(*keys)
        except redis.RedisError as e:
            self._mark_down("invalidate", e)
            return removed
        if removed:
            logger.debug("Invalidated %d cache entries", removed)
        return removed

    def invalidate_task(self, owner_id: int, task_id: Optional[int] = None) -> int:
        """Drop the owner's task listings and, if given, every copy of one task."""
        patterns = task_list_patterns(owner_id)
        if task_id is not None:
            patterns += task_detail_patterns(task_id)
        return self.invalidate(patterns)

    def invalidate_user(
        self,
        user_id: int,
        deleted: bool = False,
        task_ids: Iterable[int] = (),
    ) -> int:
        """Drop user listings and, for a deleted user, everything cached for them.

        Args:
            user_id: ID of the changed or deleted user.
            deleted: Also drop every entry cached on behalf of the user.
            task_ids: Tasks removed along with the user; every reader's copy
                of them is dropped too.

        Returns:
            Number of keys removed.
        """
        patterns = user_list_patterns()
        if deleted:
            patterns += user_scope_patterns(user_id)
        for task_id in task_ids:
            patterns += task_detail_patterns(task_id)
        return self.invalidate(patterns)


def create_redis_client(url: str) -> Optional[redis.Redis]:
    """Create a Redis client for url, or None when url is empty.

    The client connects lazily, so an unreachable server is not an error here.

    Raises:
        ConfigurationError: If url is not a valid Redis URL.
    """
    if not url:
        logger.info("REDIS_URL is empty; response caching disabled")
        return None
    try:
        return redis.Redis.from_url(
            url,
            socket_timeout=CACHE_SOCKET_TIMEOUT,
            socket_connect_timeout=CACHE_SOCKET_TIMEOUT,
        )
    except ValueError as e:
        raise ConfigurationError(f"Invalid REDIS_URL: {e}") from e


# Global cache instance (shared across requests)
_response_cache: Optional[ResponseCache] = None
_cache_lock = threading.Lock()


def get_response_cache() -> ResponseCache:
    """Get global cache instance (singleton pattern).

    Returns:
        Global ResponseCache instance.
    """
    global _response_cache
    if _response_cache is None:
        with _cache_lock:
            if _response_cache is None:
                _response_cache = ResponseCache(create_redis_client(REDIS_URL))
    return _response_cache


def set_response_cache(cache: Optional[ResponseCache]) -> None:
    """Replace the global cache instance; None resets to the configured one."""
    global _response_cache
    with _cache_lock:
        _response_cache = cache
