"""Integration test fixtures for the HTTP API."""

from __future__ import annotations

from typing import AsyncIterator

import pytest
import respx
from httpx import ASGITransport, AsyncClient

from recentview.api.app import create_app
from recentview.client import RecentViewClient
from recentview.config import RecentViewSettings
from recentview.storage.memory import InMemoryStore

STOREFRONT_URL = "https://shop.example.com"


# ============================================================================
# Storefront Mocking Fixtures
# ============================================================================


@pytest.fixture
def storefront():
    """Mock the storefront's search and product endpoints."""
    with respx.mock(base_url=STOREFRONT_URL, assert_all_called=False) as router:
        yield router


# ============================================================================
# Application Fixtures
# ============================================================================


@pytest.fixture
async def recentview_client(
    mock_settings: RecentViewSettings,
    clock,
) -> AsyncIterator[RecentViewClient]:
    """Client backed by a fresh in-memory store."""
    async with RecentViewClient(mock_settings, store=InMemoryStore(), clock=clock) as client:
        yield client


@pytest.fixture
async def test_app(recentview_client: RecentViewClient):
    """
    Create test application with the client in app state.

    The lifespan does not run under ASGITransport, so state is set directly.
    """
    app = create_app()
    app.state.client = recentview_client
    yield app


@pytest.fixture
async def test_client(test_app) -> AsyncIterator[AsyncClient]:
    """Create async HTTP test client."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
