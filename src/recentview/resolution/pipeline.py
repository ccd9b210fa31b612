"""Resolution pipeline: tiered caches plus an ordered remote fallback chain."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from recentview.cache.tiers import HandleResolutionCache, RecordCache, RemoteLookupCache
from recentview.core.exceptions import ParseError, RecentViewError, ResolutionCancelled
from recentview.core.identifiers import normalize_identifier
from recentview.core.models import ResolvedRecord
from recentview.core.types import CacheTier
from recentview.history.store import clamp_capacity
from recentview.resolution.cancellation import CancellationToken
from recentview.resolution.parsing import ProductFragment, index_fragments
from recentview.resolution.strategies.base import (
    BatchStrategy,
    LookupStrategy,
    LookupTarget,
    RemoteStrategy,
)

logger = logging.getLogger(__name__)


@dataclass
class PipelineConfig:
    """Configuration for the resolution pipeline."""

    # Concurrent identifier-scoped lookups
    max_concurrency: int = 5

    # Per remote call timeout (seconds); expiry counts as a failed call
    request_timeout: float = 10.0


@dataclass
class ResolveOptions:
    """Per-invocation options."""

    # Only the first N identifiers are resolved
    capacity: int | None = None

    # Tier -> TTL (seconds) used for this invocation's cache reads
    ttl_overrides: Mapping[CacheTier | str, float] = field(default_factory=dict)

    token: CancellationToken | None = None


@dataclass
class PipelineStats:
    """Diagnostic counters for one invocation."""

    requested: int = 0
    record_cache_hits: int = 0
    handle_cache_hits: int = 0
    lookup_cache_hits: int = 0
    remote_calls: int = 0
    resolved: int = 0
    degraded: int = 0
    dropped: int = 0
    cancelled: bool = False
    failures: list[str] = field(default_factory=list)


class ResolutionPipeline:
    """
    Turns an ordered identifier list into resolved records.

    Resolution order per identifier:
    1. RecordCache hit
    2. Batched primary lookup (only for identifiers without a cached handle)
    3. Identifier-scoped fallbacks, in priority order
    4. Degraded synthesis from the best fragment seen

    Output preserves input order and omits identifiers nothing could
    resolve. ``resolve`` never raises: every failure is absorbed into the
    fallback chain and, at worst, drops one identifier.
    """

    def __init__(
        self,
        *,
        handles: HandleResolutionCache,
        records: RecordCache,
        lookups: RemoteLookupCache,
        primary: BatchStrategy | None = None,
        fallbacks: Iterable[LookupStrategy] = (),
        config: PipelineConfig | None = None,
    ) -> None:
        self._handles = handles
        self._records = records
        self._lookups = lookups
        self._primary = primary
        # Sort by priority (lower = higher priority)
        self._fallbacks = sorted(fallbacks, key=lambda s: s.priority)
        self.config = config or PipelineConfig()
        self.last_stats = PipelineStats()

    @property
    def strategies(self) -> list[RemoteStrategy]:
        chain: list[RemoteStrategy] = [self._primary] if self._primary else []
        return chain + list(self._fallbacks)

    async def resolve(
        self,
        identifiers: Iterable[Any],
        options: ResolveOptions | None = None,
    ) -> list[ResolvedRecord]:
        """
        Resolve ``identifiers`` into records, preserving their order.

        Args:
            identifiers: Identifiers, most relevant first
            options: Capacity, TTL overrides and cancellation token

        Returns:
            Records for the identifiers that resolved, in input order. A
            cancelled invocation returns an empty list.
        """
        options = options or ResolveOptions()
        token = options.token or CancellationToken()
        stats = PipelineStats()
        self.last_stats = stats
        start = time.monotonic()

        try:
            records = await self._resolve(identifiers, options, token, stats)
        except ResolutionCancelled:
            stats.cancelled = True
            logger.debug("Resolution cancelled, discarding results")
            return []
        except Exception as e:
            logger.exception(f"Resolution failed unexpectedly: {e}")
            return []

        duration = time.monotonic() - start
        logger.info(
            f"Resolved {stats.resolved}/{stats.requested} identifiers in {duration:.2f}s "
            f"(cache hits: {stats.record_cache_hits}, remote calls: {stats.remote_calls}, "
            f"degraded: {stats.degraded}, dropped: {stats.dropped})"
        )
        return records

    async def clear_caches(self) -> None:
        """Explicit cache-clear of all three tiers."""
        await self._handles.clear()
        await self._records.clear()
        await self._lookups.clear()

    async def _resolve(
        self,
        identifiers: Iterable[Any],
        options: ResolveOptions,
        token: CancellationToken,
        stats: PipelineStats,
    ) -> list[ResolvedRecord]:
        ordered = self._prepare(identifiers, options.capacity)
        stats.requested = len(ordered)
        if not ordered:
            return []

        ttls = self._ttls(options.ttl_overrides)

        # 1. Complete records already cached
        cached: dict[str, ResolvedRecord] = {}
        for identifier in ordered:
            token.raise_if_cancelled()
            record = await self._records.get(identifier, ttls[CacheTier.RECORDS])
            if record is not None:
                cached[identifier] = record
        token.raise_if_cancelled()
        stats.record_cache_hits = len(cached)

        uncached = [i for i in ordered if i not in cached]

        # 2. Handles already known skip the batched lookup
        known_handles: dict[str, str] = {}
        for identifier in uncached:
            token.raise_if_cancelled()
            handle = await self._handles.get(identifier, ttls[CacheTier.HANDLES])
            if handle is not None:
                known_handles[identifier] = handle
        token.raise_if_cancelled()
        stats.handle_cache_hits = len(known_handles)

        # 3. One batched query for the rest
        unknown = [i for i in uncached if i not in known_handles]
        fragments: dict[str, ProductFragment] = {}
        if unknown and self._primary is not None and self._primary.is_enabled:
            fragments = await self._run_primary(unknown, ttls, token, stats)

        # 4-5. Complete fragments resolve now; everything else walks the fallbacks
        fresh: dict[str, ResolvedRecord] = {}
        pending: list[tuple[LookupTarget, ProductFragment | None]] = []
        for identifier in uncached:
            fragment = fragments.get(identifier)
            if fragment is not None and fragment.is_complete:
                record = fragment.to_record()
                if record is not None:
                    fresh[identifier] = record
                    continue
            handle = known_handles.get(identifier) or (fragment.handle if fragment else None)
            pending.append((LookupTarget(identifier, handle), fragment))

        if pending:
            fresh.update(await self._run_fallbacks(pending, ttls, token, stats))
        token.raise_if_cancelled()

        # 7. Write back before handing results out
        await self._write_back(fresh, token)

        # 6. Merge into input order, dropping what nothing resolved
        merged: list[ResolvedRecord] = []
        for identifier in ordered:
            record = cached.get(identifier) or fresh.get(identifier)
            if record is None:
                stats.dropped += 1
                logger.debug(f"No strategy resolved {identifier}; omitting it")
                continue
            merged.append(record)

        stats.resolved = len(merged)
        return merged

    def _prepare(self, identifiers: Iterable[Any], capacity: int | None) -> list[str]:
        """Normalize, deduplicate (first wins) and apply ``capacity``."""
        ordered: list[str] = []
        seen: set[str] = set()
        for value in identifiers:
            try:
                identifier = normalize_identifier(value)
            except ValueError as e:
                logger.debug(f"Skipping invalid identifier: {e}")
                continue
            if identifier not in seen:
                seen.add(identifier)
                ordered.append(identifier)

        if capacity is not None:
            ordered = ordered[: clamp_capacity(capacity)]
        return ordered

    def _ttls(self, overrides: Mapping[CacheTier | str, float]) -> dict[CacheTier, float | None]:
        ttls: dict[CacheTier, float | None] = {tier: None for tier in CacheTier}
        for tier, ttl in overrides.items():
            try:
                ttls[CacheTier(tier)] = float(ttl)
            except ValueError:
                logger.warning(f"Ignoring TTL override for unknown tier {tier!r}")
        return ttls

    async def _run_primary(
        self,
        identifiers: list[str],
        ttls: dict[CacheTier, float | None],
        token: CancellationToken,
        stats: PipelineStats,
    ) -> dict[str, ProductFragment]:
        primary = self._primary
        if primary is None:
            return {}

        payload = await self._fetch(
            primary,
            primary.query_key(identifiers),
            lambda: primary.attempt(identifiers),
            ttls,
            token,
            stats,
        )
        return self._fragments(primary, payload, set(identifiers), stats)

    async def _run_fallbacks(
        self,
        pending: list[tuple[LookupTarget, ProductFragment | None]],
        ttls: dict[CacheTier, float | None],
        token: CancellationToken,
        stats: PipelineStats,
    ) -> dict[str, ResolvedRecord]:
        semaphore = asyncio.Semaphore(max(1, self.config.max_concurrency))

        async def run(target: LookupTarget, fragment: ProductFragment | None) -> ResolvedRecord | None:
            async with semaphore:
                try:
                    return await self._resolve_one(target, fragment, ttls, token, stats)
                except ResolutionCancelled:
                    return None

        results = await asyncio.gather(*(run(target, fragment) for target, fragment in pending))
        token.raise_if_cancelled()

        return {
            target.identifier: record
            for (target, _), record in zip(pending, results)
            if record is not None
        }

    async def _resolve_one(
        self,
        target: LookupTarget,
        fragment: ProductFragment | None,
        ttls: dict[CacheTier, float | None],
        token: CancellationToken,
        stats: PipelineStats,
    ) -> ResolvedRecord | None:
        """Walk the fallback chain for one identifier, then synthesize."""
        best = fragment or ProductFragment(identifier=target.identifier, handle=target.handle)

        for strategy in self._fallbacks:
            if not strategy.is_enabled:
                continue
            current = LookupTarget(target.identifier, best.handle or target.handle)
            if not strategy.applies(current):
                continue
            token.raise_if_cancelled()

            payload = await self._fetch(
                strategy,
                strategy.query_key(current),
                lambda: strategy.attempt(current),
                ttls,
                token,
                stats,
            )
            candidate = self._fragments(strategy, payload, {target.identifier}, stats).get(
                target.identifier
            )
            if candidate is not None and candidate.is_complete:
                return candidate.to_record()
            best = best.merge(candidate)

        # Last resort: display-only record from whatever we learned
        record = best.to_degraded()
        if record is not None:
            stats.degraded += 1
            logger.debug(f"Synthesized degraded record for {target.identifier}")
        return record

    async def _fetch(
        self,
        strategy: RemoteStrategy,
        query_key: str,
        call: Callable[[], Awaitable[Any]],
        ttls: dict[CacheTier, float | None],
        token: CancellationToken,
        stats: PipelineStats,
    ) -> Any | None:
        """Raw payload from the lookup cache, else from the strategy."""
        token.raise_if_cancelled()
        payload = await self._lookups.get(query_key, ttls[CacheTier.LOOKUPS])
        token.raise_if_cancelled()
        if payload is not None:
            stats.lookup_cache_hits += 1
            return payload

        stats.remote_calls += 1
        try:
            async with asyncio.timeout(self.config.request_timeout):
                payload = await call()
        except asyncio.TimeoutError:
            self._record_failure(stats, strategy, "timed out")
            payload = None
        except RecentViewError as e:
            self._record_failure(stats, strategy, e.message)
            payload = None
        except Exception as e:
            logger.warning(f"Strategy {strategy.name} raised unexpectedly", exc_info=True)
            self._record_failure(stats, strategy, str(e))
            payload = None
        token.raise_if_cancelled()

        if payload is not None:
            await self._lookups.put(query_key, payload)
        return payload

    def _fragments(
        self,
        strategy: RemoteStrategy,
        payload: Any,
        wanted: set[str],
        stats: PipelineStats,
    ) -> dict[str, ProductFragment]:
        try:
            return index_fragments(payload, wanted)
        except ParseError as e:
            self._record_failure(stats, strategy, e.message)
            return {}

    async def _write_back(self, fresh: dict[str, ResolvedRecord], token: CancellationToken) -> None:
        for identifier, record in fresh.items():
            token.raise_if_cancelled()
            await self._handles.put(identifier, record.handle)
            # Degraded records are refused by the completeness guard
            await self._records.put(identifier, record)

    @staticmethod
    def _record_failure(stats: PipelineStats, strategy: RemoteStrategy, reason: str) -> None:
        logger.warning(f"Strategy {strategy.name} failed: {reason}")
        stats.failures.append(f"{strategy.name}: {reason}")
