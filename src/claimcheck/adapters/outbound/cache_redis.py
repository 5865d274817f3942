"""
Redis Cache Adapter
===================

Adapter for Redis as the cache backing store for pipeline results.
"""

from __future__ import annotations

import asyncio
import json
import logging
import socket
from typing import TYPE_CHECKING, Any

import redis.asyncio as redis

from claimcheck.domain.errors import CacheFailure
from claimcheck.ports.cache import CacheProvider

if TYPE_CHECKING:
    from claimcheck.infrastructure.config import RedisSettings

logger = logging.getLogger(__name__)

KEY_PREFIX = "claimcheck:"


class RedisCacheAdapter(CacheProvider):
    """
    Adapter for Redis as a JSON key/value store.

    Supports:
    - Exact key lookup
    - TTL-based expiration via ``SET EX``
    """

    def __init__(self, settings: RedisSettings, *, retry_delay_seconds: float = 1.0) -> None:
        """
        Initialize the adapter with configuration.

        Args:
            settings: Redis connection settings.
            retry_delay_seconds: Pause between connection attempts.
        """
        self._settings = settings
        self._client: redis.Redis | None = None  # type: ignore[type-arg]
        self._retry_delay = retry_delay_seconds

    async def connect(self) -> None:
        """
        Establish connection to Redis with retries.

        Raises:
            CacheFailure: If Redis stays unreachable.
        """
        max_attempts = self._settings.connect_attempts
        last_error: Exception | None = None

        password = None
        if self._settings.password:
            password = self._settings.password.get_secret_value()

        for attempt in range(max_attempts):
            try:
                if self._settings.socket_path:
                    pool = redis.ConnectionPool(
                        connection_class=redis.UnixDomainSocketConnection,
                        path=self._settings.socket_path,
                        password=password,
                        db=self._settings.db,
                        max_connections=self._settings.max_connections,
                    )
                    target = f"unix:{self._settings.socket_path}"
                else:
                    pool = redis.ConnectionPool(
                        host=self._settings.host,
                        port=self._settings.port,
                        password=password,
                        db=self._settings.db,
                        max_connections=self._settings.max_connections,
                    )
                    # Force IPv4 socket family on the connection class
                    pool.connection_class = type(
                        "IPv4Connection",
                        (pool.connection_class,),
                        {"socket_type": socket.AF_INET},
                    )
                    target = f"{self._settings.host}:{self._settings.port}"

                if attempt == 0:
                    logger.info("Connecting to Redis at %s", target)

                self._client = redis.Redis(connection_pool=pool, decode_responses=False)
                await self._client.ping()  # type: ignore[misc]
                logger.info("Connected to Redis at %s", target)
                return

            except (redis.ConnectionError, FileNotFoundError) as e:
                last_error = e
                self._client = None
                if attempt < max_attempts - 1:
                    logger.warning(
                        "Redis connection attempt %s failed: %s. Retrying in %ss...",
                        attempt + 1,
                        e,
                        self._retry_delay,
                    )
                    await asyncio.sleep(self._retry_delay)
            except Exception as e:
                self._client = None
                logger.error(f"Unexpected Redis error: {e}")
                raise CacheFailure(f"Connection failed: {e}") from e

        logger.error(f"Redis connection failed after {max_attempts} attempts: {last_error}")
        raise CacheFailure(f"Connection failed after {max_attempts} attempts: {last_error}")

    async def disconnect(self) -> None:
        """Close the Redis connection."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.info("Disconnected from Redis")

    async def health_check(self) -> bool:
        """Check if Redis is reachable."""
        if self._client is None:
            return False
        try:
            await self._client.ping()  # type: ignore[misc]
            return True
        except Exception as e:
            logger.warning(f"Redis health check failed: {e}")
            return False

    def _make_key(self, key: str) -> str:
        """Create full cache key with prefix."""
        return f"{KEY_PREFIX}{key}"

    def _require_client(self) -> redis.Redis:  # type: ignore[type-arg]
        if self._client is None:
            raise CacheFailure("Redis client not connected")
        return self._client

    async def get(self, key: str) -> Any | None:
        """
        Retrieve a cached value by exact key.

        Undecodable payloads are deleted and reported as a miss.
        """
        client = self._require_client()
        try:
            data = await client.get(self._make_key(key))
        except redis.RedisError as e:
            raise CacheFailure(f"Cache get failed: {e}") from e

        if data is None:
            return None

        try:
            return json.loads(data)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.error(f"Failed to deserialize cached value for {key}: {e}")
            await self.delete(key)
            return None

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        """Store a JSON-serialisable value with a TTL."""
        client = self._require_client()
        try:
            payload = json.dumps(value, separators=(",", ":"))
        except (TypeError, ValueError) as e:
            raise CacheFailure(f"Value for {key} is not JSON-serialisable: {e}") from e

        try:
            await client.set(self._make_key(key), payload, ex=max(1, int(ttl_seconds)))
        except redis.RedisError as e:
            raise CacheFailure(f"Cache set failed: {e}") from e
        logger.debug(f"Cached value for key {key} with TTL {ttl_seconds}s")

    async def delete(self, key: str) -> bool:
        """Remove an entry; True if it existed."""
        client = self._require_client()
        try:
            deleted = await client.delete(self._make_key(key))
        except redis.RedisError as e:
            raise CacheFailure(f"Cache delete failed: {e}") from e
        return deleted > 0
