"""TTL key-value cache persisted as one JSON object per tier."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from typing import Any

from recentview.core.exceptions import StorageError
from recentview.storage.base import KeyValueStore

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
Guard = Callable[[Any], bool]


class TTLCache:
    """
    Purely TTL-driven cache over a :class:`KeyValueStore`.

    All entries of one cache live in a single JSON object stored under
    ``storage_key``, shaped ``{key: {"value": ..., "timestamp": ...}}``.
    An entry is fresh while ``now - timestamp < ttl``. Expired entries are
    purged lazily on read and by :meth:`sweep`; there is no size-based
    eviction.

    The persisted object is loaded once and mirrored in memory. Mutations
    touch the mirror synchronously and then persist it, so concurrent
    writers to different keys never lose each other's entries.
    """

    def __init__(
        self,
        store: KeyValueStore,
        storage_key: str,
        ttl: float,
        *,
        sweep_interval: float | None = 600.0,
        clock: Clock = time.time,
    ) -> None:
        if ttl <= 0:
            raise ValueError(f"TTL must be positive, got {ttl}")
        self._store = store
        self._storage_key = storage_key
        self.ttl = ttl
        self._sweep_interval = sweep_interval
        self._clock = clock
        self._entries: dict[str, dict[str, Any]] | None = None
        self._last_sweep: float | None = None
        self._sweeping = False

    @property
    def storage_key(self) -> str:
        return self._storage_key

    async def get(self, key: str, ttl: float | None = None) -> Any | None:
        """
        Return the cached value, or None on a miss.

        Args:
            key: Entry key
            ttl: Override of the cache TTL for this read only
        """
        entries = await self._load()
        await self._maybe_sweep(ttl)

        entry = entries.get(key)
        if entry is None:
            return None

        if self._is_fresh(entry, self._clock(), self.ttl if ttl is None else ttl):
            return entry.get("value")

        logger.debug(f"Purging expired entry {key!r} from {self._storage_key}")
        entries.pop(key, None)
        await self._persist()
        return None

    async def set(self, key: str, value: Any, guard: Guard | None = None) -> bool:
        """
        Store a value stamped with the current time.

        Args:
            key: Entry key
            value: JSON-serializable value
            guard: Optional predicate; when it rejects the value the write
                is skipped

        Returns:
            Whether the entry was committed to the mirror.
        """
        if guard is not None and not guard(value):
            logger.debug(f"Guard rejected write of {key!r} to {self._storage_key}")
            return False

        entries = await self._load()
        entries[key] = {"value": value, "timestamp": self._clock()}
        await self._persist()
        return True

    async def delete(self, key: str) -> bool:
        """Remove one entry."""
        entries = await self._load()
        if entries.pop(key, None) is None:
            return False
        await self._persist()
        return True

    async def clear(self) -> None:
        """Drop every entry of this cache."""
        self._entries = {}
        try:
            await self._store.delete(self._storage_key)
        except StorageError as e:
            logger.warning(f"Failed to clear {self._storage_key}: {e}")

    async def size(self) -> int:
        """Number of entries currently held, fresh or not."""
        return len(await self._load())

    async def sweep(self, ttl: float | None = None) -> int:
        """
        Drop all expired entries.

        Args:
            ttl: Keep entries younger than this when it exceeds the cache TTL

        Returns:
            Number of entries removed (0 if a sweep is already running).
        """
        if self._sweeping:
            return 0

        self._sweeping = True
        try:
            await self._load()
            now = self._clock()
            self._last_sweep = now
            removed = self._drop_expired(now, self.ttl if ttl is None else max(self.ttl, ttl))
            if removed:
                logger.debug(f"Swept {removed} expired entries from {self._storage_key}")
                await self._persist()
            return removed
        finally:
            self._sweeping = False

    async def _maybe_sweep(self, ttl: float | None = None) -> None:
        if self._sweep_interval is None:
            return
        now = self._clock()
        if self._last_sweep is None or now - self._last_sweep >= self._sweep_interval:
            await self.sweep(ttl)

    async def _load(self) -> dict[str, dict[str, Any]]:
        if self._entries is not None:
            return self._entries

        try:
            raw = await self._store.get(self._storage_key)
        except StorageError as e:
            logger.warning(f"Failed to read {self._storage_key}: {e}")
            raw = None

        entries: dict[str, dict[str, Any]] = {}
        if raw:
            try:
                decoded = json.loads(raw)
            except json.JSONDecodeError:
                logger.warning(f"Discarding unreadable cache data in {self._storage_key}")
                decoded = {}
            if isinstance(decoded, dict):
                entries = {
                    k: v
                    for k, v in decoded.items()
                    if isinstance(v, dict) and isinstance(v.get("timestamp"), (int, float))
                }

        # Another coroutine may have loaded while we awaited the store.
        if self._entries is None:
            self._entries = entries
        return self._entries

    async def _persist(self) -> bool:
        """Write the mirror back, compacting once on a storage failure."""
        try:
            await self._store.set(self._storage_key, self._serialize())
            return True
        except StorageError as e:
            logger.warning(f"Write to {self._storage_key} failed, compacting: {e}")

        removed = self._drop_expired(self._clock(), self.ttl)
        try:
            await self._store.set(self._storage_key, self._serialize())
            logger.debug(f"Write to {self._storage_key} succeeded after dropping {removed} entries")
            return True
        except StorageError as e:
            logger.warning(f"Giving up persisting {self._storage_key}: {e}")
            return False

    def _serialize(self) -> str:
        return json.dumps(self._entries or {}, default=str, separators=(",", ":"))

    def _drop_expired(self, now: float, ttl: float) -> int:
        if not self._entries:
            return 0
        expired = [k for k, v in self._entries.items() if not self._is_fresh(v, now, ttl)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    @staticmethod
    def _is_fresh(entry: dict[str, Any], now: float, ttl: float) -> bool:
        return now - entry["timestamp"] < ttl
