"""Unit test fixtures with HTTP mocking."""

from __future__ import annotations

import pytest
import respx

from recentview.resolution.strategies import StrategyConfig

STOREFRONT_URL = "https://shop.example.com"


# ============================================================================
# HTTP Mocking Fixtures
# ============================================================================


@pytest.fixture
def respx_mock():
    """Provide a respx mock router for HTTP mocking.

    Use this when you need fine-grained control over mocked responses.
    The mock is automatically started and stopped by respx.
    """
    with respx.mock(base_url=STOREFRONT_URL, assert_all_called=False) as router:
        yield router


# ============================================================================
# Strategy Configuration Fixtures
# ============================================================================


@pytest.fixture
def strategy_config() -> StrategyConfig:
    """Create a strategy config pointing at the mocked storefront."""
    return StrategyConfig(base_url=STOREFRONT_URL, timeout=5.0)


@pytest.fixture
def strategy_config_disabled() -> StrategyConfig:
    """Create a disabled strategy config."""
    return StrategyConfig(base_url=STOREFRONT_URL, enabled=False)

