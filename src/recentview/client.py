"""Main library client for standalone usage."""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Mapping
from typing import Any

from recentview.cache.tiers import HandleResolutionCache, RecordCache, RemoteLookupCache
from recentview.cache.ttl import Clock
from recentview.config import RecentViewSettings
from recentview.core.models import ResolvedRecord
from recentview.core.types import CacheTier
from recentview.history.store import IdentifierStore
from recentview.resolution.cancellation import LatestOnly
from recentview.resolution.pipeline import PipelineConfig, ResolutionPipeline, ResolveOptions
from recentview.resolution.strategies import (
    HandleDiscoveryStrategy,
    ProductStrategy,
    SearchStrategy,
    StrategyConfig,
)
from recentview.storage.base import KeyValueStore
from recentview.storage.memory import InMemoryStore

logger = logging.getLogger(__name__)


class RecentViewClient:
    """
    Main client for the recentview library.

    Wires the identifier store, the three cache tiers, the storefront
    strategies and the resolution pipeline from settings.

    Usage:
        async with RecentViewClient() as client:
            await client.track("7214563082")
            records = await client.recently_viewed()

    Settings are loaded from environment variables or can be passed explicitly.
    """

    def __init__(
        self,
        settings: RecentViewSettings | None = None,
        *,
        store: KeyValueStore | None = None,
        clock: Clock = time.time,
    ) -> None:
        """
        Initialize the client.

        Args:
            settings: Application settings. If not provided, loaded from environment.
            store: Key-value store to persist into. If not provided, Redis is
                used when configured, otherwise an in-memory store.
            clock: Time source for cache timestamps.
        """
        self._settings = settings or RecentViewSettings()
        self._store = store
        self._owns_store = store is None
        self._clock = clock
        self._gate = LatestOnly()
        self._history: IdentifierStore | None = None
        self._pipeline: ResolutionPipeline | None = None

    async def __aenter__(self) -> RecentViewClient:
        """Initialize resources on context entry."""
        await self._initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Clean up resources on context exit."""
        await self.close()

    async def _initialize(self) -> None:
        """Initialize client resources."""
        if self._store is None:
            self._store = await self._open_store()

        settings = self._settings
        self._history = IdentifierStore(self._store, settings.default_capacity)

        strategy_config = StrategyConfig(
            base_url=settings.storefront_url,
            timeout=settings.request_timeout,
        )
        self._pipeline = ResolutionPipeline(
            handles=HandleResolutionCache(
                self._store,
                settings.handle_ttl,
                sweep_interval=settings.sweep_interval,
                clock=self._clock,
            ),
            records=RecordCache(
                self._store,
                settings.record_ttl,
                sweep_interval=settings.sweep_interval,
                clock=self._clock,
            ),
            lookups=RemoteLookupCache(
                self._store,
                settings.lookup_ttl,
                sweep_interval=settings.sweep_interval,
                clock=self._clock,
            ),
            primary=SearchStrategy(strategy_config),
            fallbacks=[
                HandleDiscoveryStrategy(strategy_config),
                ProductStrategy(strategy_config),
            ],
            config=PipelineConfig(
                max_concurrency=settings.max_concurrency,
                request_timeout=settings.request_timeout,
            ),
        )

    async def _open_store(self) -> KeyValueStore:
        if self._settings.redis_url:
            try:
                from recentview.storage.redis_store import RedisStore

                store = RedisStore(str(self._settings.redis_url), self._settings.redis_prefix)
                await store.connect()
                logger.info("Redis store initialized")
                return store
            except Exception as e:
                logger.warning(f"Failed to initialize Redis, using memory: {e}")
        return InMemoryStore()

    async def close(self) -> None:
        """Close all resources."""
        self._gate.cancel()

        if self._pipeline:
            for strategy in self._pipeline.strategies:
                await strategy.close()
            self._pipeline = None

        if self._store and self._owns_store:
            await self._store.close()
            self._store = None

        self._history = None

    def _ensure_initialized(self) -> tuple[IdentifierStore, ResolutionPipeline]:
        """Ensure client is initialized."""
        if self._history is None or self._pipeline is None:
            raise RuntimeError(
                "Client not initialized. Use 'async with RecentViewClient() as client:'"
            )
        return self._history, self._pipeline

    @property
    def pipeline(self) -> ResolutionPipeline:
        return self._ensure_initialized()[1]

    @property
    def store(self) -> KeyValueStore | None:
        return self._store

    async def track(self, identifier: str | int) -> tuple[str, ...]:
        """Record a product view; returns the updated identifier list."""
        history, _ = self._ensure_initialized()
        return await history.add(identifier)

    async def identifiers(self) -> tuple[str, ...]:
        """Stored identifiers, most recent first."""
        history, _ = self._ensure_initialized()
        return await history.list()

    async def capacity(self) -> int:
        history, _ = self._ensure_initialized()
        return await history.capacity()

    async def set_capacity(self, capacity: int | str) -> int:
        history, _ = self._ensure_initialized()
        return await history.set_capacity(capacity)

    async def clear(self) -> None:
        """Forget all viewed identifiers."""
        history, _ = self._ensure_initialized()
        await history.clear()

    async def clear_caches(self) -> None:
        """Drop every cache tier."""
        _, pipeline = self._ensure_initialized()
        await pipeline.clear_caches()

    async def recently_viewed(
        self,
        *,
        ttl_overrides: Mapping[CacheTier | str, float] | None = None,
    ) -> list[ResolvedRecord]:
        """
        Resolve the stored identifiers.

        A newer call cancels any call still in flight; the superseded call
        returns an empty list.
        """
        history, pipeline = self._ensure_initialized()
        identifiers = await history.list()
        token = self._gate.issue()

        records = await pipeline.resolve(
            identifiers,
            ResolveOptions(ttl_overrides=ttl_overrides or {}, token=token),
        )
        if not self._gate.is_current(token):
            return []
        return records

    async def resolve(
        self,
        identifiers: Iterable[Any],
        *,
        capacity: int | None = None,
        ttl_overrides: Mapping[CacheTier | str, float] | None = None,
    ) -> list[ResolvedRecord]:
        """Resolve an arbitrary identifier list, outside the stored history."""
        _, pipeline = self._ensure_initialized()
        return await pipeline.resolve(
            identifiers,
            ResolveOptions(capacity=capacity, ttl_overrides=ttl_overrides or {}),
        )

    async def ping(self) -> bool:
        """Whether the backing store is reachable."""
        return self._store is not None and await self._store.ping()
