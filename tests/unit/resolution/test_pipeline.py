"""Tests for the resolution pipeline."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import Any, ClassVar
from unittest.mock import AsyncMock, patch

import pytest

from recentview.cache.keys import CacheKeys
from recentview.cache.tiers import HandleResolutionCache, RecordCache, RemoteLookupCache
from recentview.core.exceptions import NetworkError
from recentview.core.models import ResolvedRecord
from recentview.core.types import Availability, CacheTier, ResourceKind, StrategyName
from recentview.resolution.cancellation import CancellationToken
from recentview.resolution.pipeline import PipelineConfig, ResolutionPipeline, ResolveOptions
from recentview.resolution.strategies import (
    BatchStrategy,
    LookupStrategy,
    LookupTarget,
    StrategyConfig,
)
from recentview.storage.memory import InMemoryStore

# ============================================================================
# Stub Strategies for Testing
# ============================================================================


class StubSearch(BatchStrategy):
    """Batched strategy returning a canned payload."""

    NAME: ClassVar[StrategyName] = StrategyName.SEARCH
    DEFAULT_PRIORITY: ClassVar[int] = 10

    def __init__(
        self,
        payload: Any = None,
        *,
        error: Exception | None = None,
        delay: float = 0.0,
        enabled: bool = True,
    ):
        super().__init__(StrategyConfig(enabled=enabled))
        self.payload = payload
        self.error = error
        self.delay = delay
        self.calls: list[list[str]] = []

    def query_key(self, identifiers: Sequence[str]) -> str:
        return CacheKeys.query(ResourceKind.PRODUCT, identifiers)

    async def attempt(self, identifiers: Sequence[str]) -> Any | None:
        self.calls.append(list(identifiers))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.payload


class StubProduct(LookupStrategy):
    """Identifier-scoped strategy returning canned payloads per identifier."""

    NAME: ClassVar[StrategyName] = StrategyName.PRODUCT
    DEFAULT_PRIORITY: ClassVar[int] = 50

    def __init__(
        self,
        payloads: dict[str, Any] | None = None,
        *,
        errors: dict[str, Exception] | None = None,
        delay: float = 0.0,
    ):
        super().__init__(StrategyConfig())
        self.payloads = payloads or {}
        self.errors = errors or {}
        self.delay = delay
        self.calls: list[LookupTarget] = []
        self.in_flight = 0
        self.max_in_flight = 0

    def query_key(self, target: LookupTarget) -> str:
        return CacheKeys.product(target.identifier, target.handle)

    async def attempt(self, target: LookupTarget) -> Any | None:
        self.calls.append(target)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if target.identifier in self.errors:
                raise self.errors[target.identifier]
            return self.payloads.get(target.identifier)
        finally:
            self.in_flight -= 1


class StubDiscovery(StubProduct):
    """Handle discovery returning canned search payloads per identifier."""

    NAME: ClassVar[StrategyName] = StrategyName.DISCOVERY
    DEFAULT_PRIORITY: ClassVar[int] = 40

    def applies(self, target: LookupTarget) -> bool:
        return target.handle is None

    def query_key(self, target: LookupTarget) -> str:
        return CacheKeys.query(ResourceKind.PRODUCT, [target.identifier])


class StubHandleProduct(StubProduct):
    """Product lookup that only runs with a known handle."""

    def applies(self, target: LookupTarget) -> bool:
        return target.handle is not None


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def handles(memory_store: InMemoryStore, clock) -> HandleResolutionCache:
    return HandleResolutionCache(memory_store, clock=clock)


@pytest.fixture
def records(memory_store: InMemoryStore, clock) -> RecordCache:
    return RecordCache(memory_store, clock=clock)


@pytest.fixture
def lookups(memory_store: InMemoryStore, clock) -> RemoteLookupCache:
    return RemoteLookupCache(memory_store, clock=clock)


@pytest.fixture
def build_pipeline(handles, records, lookups):
    """Factory fixture wiring stub strategies to shared caches."""

    def _build(
        primary: BatchStrategy | None = None,
        fallbacks: Sequence[LookupStrategy] = (),
        **config: Any,
    ) -> ResolutionPipeline:
        return ResolutionPipeline(
            handles=handles,
            records=records,
            lookups=lookups,
            primary=primary,
            fallbacks=fallbacks,
            config=PipelineConfig(**config),
        )

    return _build


def identifiers_of(records: list[ResolvedRecord]) -> list[str]:
    return [r.identifier for r in records]


# ============================================================================
# Example Scenario Tests
# ============================================================================


class TestPipelineScenarios:
    """End-to-end scenarios over stub strategies."""

    async def test_cached_record_plus_two_step_lookup(
        self,
        build_pipeline,
        records: RecordCache,
        sample_record: ResolvedRecord,
        search_entry,
        search_payload,
        product_payload,
    ):
        """A cache hit and an incomplete search hit completed by the product lookup."""
        await records.put("201", sample_record)
        search = StubSearch(search_payload(search_entry(202, "boot-z", title="Boot Z")))
        product = StubProduct({"202": product_payload(202, "boot-z", variants=3)})
        pipeline = build_pipeline(search, [product])

        with patch.object(records, "put", new=AsyncMock(wraps=records.put)) as put:
            result = await pipeline.resolve(["201", "202"])

        assert identifiers_of(result) == ["201", "202"]
        assert result[0] == sample_record
        assert len(result[1].variants) == 3
        assert search.calls == [["202"]]
        assert product.calls == [LookupTarget("202", "boot-z")]
        put.assert_awaited_once()
        assert put.await_args.args[0] == "202"

    async def test_everything_fails(self, build_pipeline, memory_store: InMemoryStore):
        """No strategy resolves: empty result, no exception, nothing persisted."""
        search = StubSearch(error=NetworkError("down", source="search"))
        product = StubProduct(errors={"301": NetworkError("down", source="product")})
        pipeline = build_pipeline(search, [product])

        result = await pipeline.resolve(["301"])

        assert result == []
        assert await memory_store.keys() == []
        assert pipeline.last_stats.dropped == 1
        assert len(pipeline.last_stats.failures) == 2


# ============================================================================
# Ordering & Idempotence Tests
# ============================================================================


class TestPipelineOrdering:
    """Tests for output order and input normalization."""

    async def test_preserves_input_order(self, build_pipeline, search_entry, search_payload):
        variants = [{"id": 1, "available": True}]
        payload = search_payload(
            search_entry(1, "one", variants=variants),
            search_entry(2, "two", variants=variants),
            search_entry(3, "three", variants=variants),
        )
        pipeline = build_pipeline(StubSearch(payload))

        result = await pipeline.resolve(["3", "1", "2"])

        assert identifiers_of(result) == ["3", "1", "2"]

    async def test_omits_unresolved_without_placeholders(
        self,
        build_pipeline,
        search_entry,
        search_payload,
    ):
        payload = search_payload(search_entry(1, "one", variants=[{"id": 10}]))
        pipeline = build_pipeline(StubSearch(payload), [StubProduct()])

        result = await pipeline.resolve(["9", "1", "8"])

        assert identifiers_of(result) == ["1"]
        assert pipeline.last_stats.dropped == 2

    async def test_deduplicates_input(self, build_pipeline, search_entry, search_payload):
        payload = search_payload(search_entry(1, "one", variants=[{"id": 10}]))
        search = StubSearch(payload)
        pipeline = build_pipeline(search)

        result = await pipeline.resolve(["1", 1, " 1 "])

        assert identifiers_of(result) == ["1"]
        assert search.calls == [["1"]]

    async def test_capacity_keeps_first_n(self, build_pipeline, search_entry, search_payload):
        variants = [{"id": 10}]
        payload = search_payload(*(search_entry(n, f"p{n}", variants=variants) for n in range(1, 7)))
        search = StubSearch(payload)
        pipeline = build_pipeline(search)

        result = await pipeline.resolve(["1", "2", "3", "4", "5", "6"], ResolveOptions(capacity=2))

        assert identifiers_of(result) == ["1", "2"]
        assert search.calls == [["1", "2"]]

    async def test_empty_input(self, build_pipeline):
        search = StubSearch()
        pipeline = build_pipeline(search)

        assert await pipeline.resolve([]) == []
        assert search.calls == []

    async def test_idempotent_with_warm_caches(
        self,
        build_pipeline,
        search_entry,
        search_payload,
        product_payload,
    ):
        """A second call returns the same records without remote calls."""
        search = StubSearch(search_payload(search_entry(1, "one"), search_entry(2, "two")))
        product = StubProduct({"1": product_payload(1, "one"), "2": product_payload(2, "two")})
        pipeline = build_pipeline(search, [product])

        first = await pipeline.resolve(["1", "2"])
        calls = (len(search.calls), len(product.calls))
        second = await pipeline.resolve(["1", "2"])

        assert second == first
        assert (len(search.calls), len(product.calls)) == calls
        assert pipeline.last_stats.remote_calls == 0
        assert pipeline.last_stats.record_cache_hits == 2


# ============================================================================
# Fallback Chain Tests
# ============================================================================


class TestPipelineFallbacks:
    """Tests for strategy sequencing and degradation."""

    async def test_complete_search_hit_skips_fallback(
        self,
        build_pipeline,
        search_entry,
        search_payload,
    ):
        payload = search_payload(search_entry(1, "one", variants=[{"id": 10}]))
        product = StubProduct()
        pipeline = build_pipeline(StubSearch(payload), [product])

        result = await pipeline.resolve(["1"])

        assert len(result[0].variants) == 1
        assert product.calls == []

    async def test_known_handle_skips_batched_lookup(
        self,
        build_pipeline,
        handles: HandleResolutionCache,
        product_payload,
    ):
        await handles.put("5", "known")
        search = StubSearch()
        product = StubProduct({"5": product_payload(5, "known")})
        pipeline = build_pipeline(search, [product])

        result = await pipeline.resolve(["5"])

        assert identifiers_of(result) == ["5"]
        assert search.calls == []
        assert product.calls == [LookupTarget("5", "known")]
        assert pipeline.last_stats.handle_cache_hits == 1

    async def test_degraded_when_product_lookup_fails(
        self,
        build_pipeline,
        search_entry,
        search_payload,
    ):
        search = StubSearch(search_payload(search_entry(3, "three", title="Three")))
        product = StubProduct(errors={"3": NetworkError("boom", source="product")})
        pipeline = build_pipeline(search, [product])

        result = await pipeline.resolve(["3"])

        assert len(result) == 1
        assert result[0].is_degraded
        assert result[0].handle == "three"
        assert result[0].title == "Three"
        assert result[0].availability == Availability.AVAILABLE
        assert pipeline.last_stats.degraded == 1

    async def test_identifiers_past_search_cap_use_fallback(
        self,
        build_pipeline,
        search_entry,
        search_payload,
        product_payload,
    ):
        """Predictive search returns at most 10 entries; the rest go identifier by identifier."""
        ids = [str(i) for i in range(1, 13)]
        search = StubSearch(
            search_payload(
                *(search_entry(int(i), f"p{i}", variants=[{"id": int(i) * 10}]) for i in ids[:10])
            )
        )
        product = StubProduct({i: product_payload(int(i), f"p{i}") for i in ids[10:]})
        pipeline = build_pipeline(search, [product], max_concurrency=12)

        result = await pipeline.resolve(ids, ResolveOptions(capacity=12))

        assert identifiers_of(result) == ids
        assert search.calls == [ids]
        assert sorted(t.identifier for t in product.calls) == ["11", "12"]

    async def test_discovered_handle_feeds_degraded_record(
        self,
        build_pipeline,
        handles: HandleResolutionCache,
        lookups: RemoteLookupCache,
        search_entry,
        search_payload,
    ):
        """A handle found by discovery survives a failed product lookup."""
        search = StubSearch(error=NetworkError("unavailable", source="search", status_code=503))
        discovered = search_payload(search_entry(301, "shoe-x"))
        discovery = StubDiscovery({"301": discovered})
        product = StubHandleProduct(
            errors={"301": NetworkError("unavailable", source="product", status_code=503)}
        )
        pipeline = build_pipeline(search, [product, discovery])

        result = await pipeline.resolve(["301"])

        assert [r.handle for r in result] == ["shoe-x"]
        assert result[0].is_degraded
        assert discovery.calls == [LookupTarget("301")]
        assert product.calls == [LookupTarget("301", "shoe-x")]
        assert await handles.get("301") == "shoe-x"
        assert await lookups.get(discovery.query_key(LookupTarget("301"))) == discovered

    async def test_discovery_skipped_when_handle_known(
        self,
        build_pipeline,
        search_entry,
        search_payload,
        product_payload,
    ):
        search = StubSearch(search_payload(search_entry(4, "four")))
        discovery = StubDiscovery()
        product = StubHandleProduct({"4": product_payload(4, "four")})
        pipeline = build_pipeline(search, [discovery, product])

        result = await pipeline.resolve(["4"])

        assert not result[0].is_degraded
        assert discovery.calls == []
        assert product.calls == [LookupTarget("4", "four")]

    async def test_partial_failure(self, build_pipeline, search_entry, search_payload):
        """One identifier failing never affects the others."""
        payload = search_payload(
            search_entry(1, "one", variants=[{"id": 10}]),
            search_entry(3, "three"),
        )
        product = StubProduct(errors={"3": RuntimeError("unexpected")})
        pipeline = build_pipeline(StubSearch(payload), [product])

        result = await pipeline.resolve(["1", "2", "3"])

        assert identifiers_of(result) == ["1", "3"]
        assert not result[0].is_degraded
        assert result[1].is_degraded

    async def test_unknown_handle_goes_to_fallback_without_handle(
        self,
        build_pipeline,
        product_payload,
    ):
        product = StubProduct({"7": product_payload(7, "seven")})
        pipeline = build_pipeline(StubSearch({"resources": {"results": {"products": []}}}), [product])

        result = await pipeline.resolve(["7"])

        assert identifiers_of(result) == ["7"]
        assert product.calls == [LookupTarget("7", None)]

    async def test_disabled_primary_is_skipped(self, build_pipeline, product_payload):
        search = StubSearch(enabled=False)
        product = StubProduct({"7": product_payload(7, "seven")})
        pipeline = build_pipeline(search, [product])

        result = await pipeline.resolve(["7"])

        assert identifiers_of(result) == ["7"]
        assert search.calls == []

    async def test_malformed_payload_is_absorbed(self, build_pipeline, product_payload):
        product = StubProduct({"7": product_payload(7, "seven")})
        pipeline = build_pipeline(StubSearch({"errors": "bad query"}), [product])

        result = await pipeline.resolve(["7"])

        assert identifiers_of(result) == ["7"]
        assert any(f.startswith("search") for f in pipeline.last_stats.failures)

    async def test_timeout_counts_as_failure(self, build_pipeline, product_payload):
        search = StubSearch(delay=1.0)
        product = StubProduct({"7": product_payload(7, "seven")})
        pipeline = build_pipeline(search, [product], request_timeout=0.05)

        result = await pipeline.resolve(["7"])

        assert identifiers_of(result) == ["7"]
        assert "search: timed out" in pipeline.last_stats.failures

    async def test_concurrency_is_bounded(self, build_pipeline, product_payload):
        ids = [str(n) for n in range(1, 9)]
        product = StubProduct({i: product_payload(int(i), f"p{i}") for i in ids}, delay=0.01)
        pipeline = build_pipeline(None, [product], max_concurrency=2)

        result = await pipeline.resolve(ids)

        assert identifiers_of(result) == ids
        assert product.max_in_flight <= 2

    def test_fallbacks_sorted_by_priority(self, build_pipeline):
        late = StubProduct()
        early = StubProduct()
        early._priority = 5
        pipeline = build_pipeline(None, [late, early])

        assert pipeline.strategies == [early, late]


# ============================================================================
# Cache Interaction Tests
# ============================================================================


class TestPipelineCaching:
    """Tests for cache reads and write-back."""

    async def test_degraded_records_are_not_cached(
        self,
        build_pipeline,
        handles: HandleResolutionCache,
        records: RecordCache,
        search_entry,
        search_payload,
    ):
        search = StubSearch(search_payload(search_entry(3, "three")))
        pipeline = build_pipeline(search, [StubProduct()])

        await pipeline.resolve(["3"])

        assert await records.size() == 0
        assert await handles.get("3") == "three"

    async def test_complete_records_are_cached(
        self,
        build_pipeline,
        handles: HandleResolutionCache,
        records: RecordCache,
        search_entry,
        search_payload,
    ):
        payload = search_payload(search_entry(1, "one", variants=[{"id": 10}]))
        pipeline = build_pipeline(StubSearch(payload))

        result = await pipeline.resolve(["1"])

        assert await records.get("1") == result[0]
        assert await handles.get("1") == "one"

    async def test_raw_payload_served_from_lookup_cache(
        self,
        build_pipeline,
        handles: HandleResolutionCache,
        records: RecordCache,
        search_entry,
        search_payload,
    ):
        payload = search_payload(search_entry(1, "one", variants=[{"id": 10}]))
        search = StubSearch(payload)
        pipeline = build_pipeline(search)
        await pipeline.resolve(["1"])
        await handles.clear()
        await records.clear()

        result = await pipeline.resolve(["1"])

        assert identifiers_of(result) == ["1"]
        assert len(search.calls) == 1
        assert pipeline.last_stats.lookup_cache_hits == 1

    async def test_ttl_override_forces_refresh(
        self,
        build_pipeline,
        records: RecordCache,
        sample_record: ResolvedRecord,
        clock,
        product_payload,
    ):
        await records.put("201", sample_record)
        clock.advance(600)
        product = StubProduct({"201": product_payload(201, "shoe-x")})
        pipeline = build_pipeline(None, [product])

        result = await pipeline.resolve(
            ["201"],
            ResolveOptions(ttl_overrides={CacheTier.RECORDS: 300, "handles": 300}),
        )

        assert len(product.calls) == 1
        assert result[0].identifier == "201"

    async def test_clear_caches(
        self,
        build_pipeline,
        records: RecordCache,
        sample_record: ResolvedRecord,
    ):
        await records.put("201", sample_record)
        pipeline = build_pipeline()

        await pipeline.clear_caches()

        assert await records.get("201") is None


# ============================================================================
# Cancellation Tests
# ============================================================================


class TestPipelineCancellation:
    """Tests for cooperative cancellation."""

    async def test_cancelled_before_start(self, build_pipeline, memory_store: InMemoryStore):
        token = CancellationToken()
        token.cancel()
        search = StubSearch()
        pipeline = build_pipeline(search)

        result = await pipeline.resolve(["1"], ResolveOptions(token=token))

        assert result == []
        assert search.calls == []
        assert pipeline.last_stats.cancelled is True

    async def test_cancelled_mid_flight_writes_nothing(
        self,
        build_pipeline,
        records: RecordCache,
        handles: HandleResolutionCache,
        product_payload,
    ):
        token = CancellationToken()
        product = StubProduct({"1": product_payload(1, "one")}, delay=0.05)
        pipeline = build_pipeline(None, [product])

        task = asyncio.create_task(pipeline.resolve(["1"], ResolveOptions(token=token)))
        await asyncio.sleep(0.01)
        token.cancel()
        result = await task

        assert result == []
        assert await records.size() == 0
        assert await handles.size() == 0
