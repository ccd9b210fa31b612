"""Cache tiers used by the resolution pipeline."""

from __future__ import annotations

import logging
import time
from typing import Any, ClassVar

from pydantic import ValidationError

from recentview.cache.keys import CacheKeys
from recentview.cache.ttl import Clock, TTLCache
from recentview.core.models import ResolvedRecord, is_complete
from recentview.core.types import CacheTier
from recentview.storage.base import KeyValueStore

logger = logging.getLogger(__name__)

DAY = 24 * 60 * 60


class TierCache:
    """Base class wiring a tier to its own storage key and default TTL."""

    TIER: ClassVar[CacheTier]
    DEFAULT_TTL: ClassVar[float]

    def __init__(
        self,
        store: KeyValueStore,
        ttl: float | None = None,
        *,
        sweep_interval: float | None = 600.0,
        clock: Clock = time.time,
    ) -> None:
        self._cache = TTLCache(
            store,
            CacheKeys.tier(self.TIER),
            ttl or self.DEFAULT_TTL,
            sweep_interval=sweep_interval,
            clock=clock,
        )

    @property
    def tier(self) -> CacheTier:
        return self.TIER

    @property
    def ttl(self) -> float:
        return self._cache.ttl

    async def delete(self, key: str) -> bool:
        return await self._cache.delete(key)

    async def clear(self) -> None:
        await self._cache.clear()

    async def sweep(self) -> int:
        return await self._cache.sweep()

    async def size(self) -> int:
        return await self._cache.size()


class HandleResolutionCache(TierCache):
    """Identifier -> product handle."""

    TIER: ClassVar[CacheTier] = CacheTier.HANDLES
    DEFAULT_TTL: ClassVar[float] = DAY

    async def get(self, identifier: str, ttl: float | None = None) -> str | None:
        value = await self._cache.get(identifier, ttl)
        return value if isinstance(value, str) and value else None

    async def put(self, identifier: str, handle: str) -> bool:
        return await self._cache.set(identifier, handle)


class RecordCache(TierCache):
    """Identifier -> complete resolved record. Degraded records are refused."""

    TIER: ClassVar[CacheTier] = CacheTier.RECORDS
    DEFAULT_TTL: ClassVar[float] = DAY

    async def get(self, identifier: str, ttl: float | None = None) -> ResolvedRecord | None:
        data = await self._cache.get(identifier, ttl)
        if data is None:
            return None
        try:
            record = ResolvedRecord.model_validate(data)
        except ValidationError:
            logger.warning(f"Dropping malformed cached record for {identifier}")
            await self._cache.delete(identifier)
            return None
        return record

    async def put(self, identifier: str, record: ResolvedRecord) -> bool:
        return await self._cache.set(
            identifier,
            record.model_dump(mode="json"),
            guard=lambda _: is_complete(record),
        )


class RemoteLookupCache(TierCache):
    """Canonical query key -> raw remote payload, deduplicating calls within a session."""

    TIER: ClassVar[CacheTier] = CacheTier.LOOKUPS
    DEFAULT_TTL: ClassVar[float] = 5 * 60

    async def get(self, query_key: str, ttl: float | None = None) -> Any | None:
        return await self._cache.get(query_key, ttl)

    async def put(self, query_key: str, payload: Any) -> bool:
        return await self._cache.set(query_key, payload)

