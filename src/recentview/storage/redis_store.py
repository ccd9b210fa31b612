"""Redis-backed key-value store."""

from __future__ import annotations

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from recentview.core.exceptions import StorageError
from recentview.storage.base import KeyValueStore


class RedisStore(KeyValueStore):
    """Async Redis store with a key prefix per storefront session."""

    def __init__(self, redis_url: str, prefix: str = "") -> None:
        self._redis_url = redis_url
        self._prefix = prefix
        self._pool: aioredis.ConnectionPool | None = None
        self._redis: aioredis.Redis | None = None

    async def connect(self) -> None:
        """Connect to Redis."""
        self._pool = aioredis.ConnectionPool.from_url(
            self._redis_url,
            max_connections=20,
            decode_responses=True,
        )
        self._redis = aioredis.Redis(connection_pool=self._pool)

    async def close(self) -> None:
        """Close the Redis connection."""
        if self._redis:
            await self._redis.aclose()
        if self._pool:
            await self._pool.disconnect()
        self._redis = None
        self._pool = None

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def _client(self) -> aioredis.Redis:
        if self._redis is None:
            raise StorageError("Redis store is not connected")
        return self._redis

    async def get(self, key: str) -> str | None:
        try:
            return await self._client().get(self._key(key))
        except RedisError as e:
            raise StorageError(f"Redis read failed: {e}", details={"key": key}) from e

    async def set(self, key: str, value: str) -> None:
        # Redis refuses writes with an OOM error once maxmemory is reached.
        try:
            await self._client().set(self._key(key), value)
        except RedisError as e:
            raise StorageError(f"Redis write failed: {e}", details={"key": key}) from e

    async def delete(self, key: str) -> bool:
        try:
            return await self._client().delete(self._key(key)) > 0
        except RedisError as e:
            raise StorageError(f"Redis delete failed: {e}", details={"key": key}) from e

    async def keys(self) -> list[str]:
        try:
            found = [
                key async for key in self._client().scan_iter(match=f"{self._prefix}*")
            ]
        except RedisError as e:
            raise StorageError(f"Redis scan failed: {e}") from e
        return [key[len(self._prefix):] for key in found]

    async def ping(self) -> bool:
        try:
            return bool(await self._client().ping())
        except (RedisError, StorageError):
            return False

    async def __aenter__(self) -> "RedisStore":
        await self.connect()
        return self
