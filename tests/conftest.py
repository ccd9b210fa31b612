"""Shared test fixtures for all tests."""

from __future__ import annotations

from typing import Any

import pytest

from recentview.config import RecentViewSettings
from recentview.core.models import ProductOption, ResolvedRecord, Variant
from recentview.core.types import Availability
from recentview.storage.memory import InMemoryStore

# ============================================================================
# Clock & Store Fixtures
# ============================================================================


class FakeClock:
    """Manually advanced time source (epoch seconds)."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    """Create a controllable clock."""
    return FakeClock()


@pytest.fixture
def memory_store() -> InMemoryStore:
    """Create an empty in-memory store."""
    return InMemoryStore()


# ============================================================================
# Sample Data Fixtures
# ============================================================================


@pytest.fixture
def sample_variant() -> Variant:
    """Create a sample available variant."""
    return Variant(
        id="40001",
        title="Red / M",
        available=True,
        price=2500,
        url="/products/shoe-x?variant=40001",
    )


@pytest.fixture
def sample_record(sample_variant: Variant) -> ResolvedRecord:
    """Create a complete record with two variants."""
    return ResolvedRecord(
        identifier="201",
        handle="shoe-x",
        url="/products/shoe-x",
        title="Shoe X",
        availability=Availability.AVAILABLE,
        variants=[
            Variant(id="40000", title="Red / S", available=False, price=2500),
            sample_variant,
        ],
        options=[ProductOption(name="Color", position=1, values=["Red"])],
        featured_image="https://cdn.example.com/shoe-x.jpg",
    )


@pytest.fixture
def degraded_record() -> ResolvedRecord:
    """Create a display-only record without variants."""
    return ResolvedRecord(
        identifier="301",
        handle="hat-y",
        url="/products/hat-y",
        title="Hat Y",
        availability=Availability.AVAILABLE,
    )


def _search_entry(
    identifier: int,
    handle: str,
    *,
    title: str | None = None,
    available: bool = True,
    variants: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """Build one predictive search product entry."""
    entry: dict[str, Any] = {
        "id": identifier,
        "title": title or handle.replace("-", " ").title(),
        "handle": handle,
        "url": f"/products/{handle}?_pos=1&_sid=abc&_ss=r",
        "available": available,
        "price": "25.00",
        "image": f"https://cdn.example.com/{handle}.jpg",
    }
    if variants is not None:
        entry["variants"] = variants
    return entry


def _search_payload(*entries: dict[str, Any]) -> dict[str, Any]:
    """Wrap entries the way /search/suggest.json does."""
    return {"resources": {"results": {"products": list(entries)}}}


def _product_payload(identifier: int, handle: str, *, variants: int = 2) -> dict[str, Any]:
    """Build a /products/<handle>.js payload."""
    return {
        "id": identifier,
        "title": handle.replace("-", " ").title(),
        "handle": handle,
        "url": f"/products/{handle}",
        "available": True,
        "featured_image": f"//cdn.example.com/{handle}.jpg",
        "options": [{"name": "Size", "position": 1, "values": ["S", "M"]}],
        "variants": [
            {
                "id": identifier * 100 + n,
                "title": ["S", "M", "L"][n % 3],
                "available": n > 0,
                "price": 2500,
                "quantity_rule": {"min": 1},
            }
            for n in range(variants)
        ],
    }


# ============================================================================
# Settings Fixtures
# ============================================================================


@pytest.fixture
def mock_settings() -> RecentViewSettings:
    """Create settings for testing without Redis."""
    return RecentViewSettings(
        storefront_url="https://shop.example.com",
        redis_url=None,
        request_timeout=1.0,
        debug=True,
        log_level="DEBUG",
    )


@pytest.fixture
def search_entry():
    """Factory fixture building predictive search entries."""
    return _search_entry


@pytest.fixture
def search_payload():
    """Factory fixture wrapping entries in a predictive search payload."""
    return _search_payload


@pytest.fixture
def product_payload():
    """Factory fixture building /products/<handle>.js payloads."""
    return _product_payload
