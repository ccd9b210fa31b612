"""Abstract remote strategies with HTTP client management."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, ClassVar

import httpx
from pydantic import BaseModel, Field

from recentview.core.exceptions import NetworkError, ParseError, StrategyTimeoutError
from recentview.core.types import StrategyName


class StrategyConfig(BaseModel):
    """Configuration for a remote strategy."""

    base_url: str | None = None
    timeout: float = 10.0
    headers: dict[str, str] = Field(default_factory=dict)
    enabled: bool = True


@dataclass(frozen=True)
class LookupTarget:
    """An identifier plus the handle already known for it, if any."""

    identifier: str
    handle: str | None = None


class RemoteStrategy(ABC):
    """
    Base class for storefront lookups.

    Strategies only fetch: they return the raw decoded payload (or None when
    the storefront reports the resource missing) and raise on failure.
    Parsing, completeness checks, caching and fallback sequencing belong to
    the pipeline.
    """

    NAME: ClassVar[StrategyName]
    BASE_URL: ClassVar[str] = "http://localhost"
    DEFAULT_PRIORITY: ClassVar[int] = 100

    def __init__(
        self,
        config: StrategyConfig | None = None,
        *,
        priority: int | None = None,
    ) -> None:
        self.config = config or StrategyConfig()
        self._priority = self.DEFAULT_PRIORITY if priority is None else priority
        self._client: httpx.AsyncClient | None = None

    @property
    def name(self) -> StrategyName:
        return self.NAME

    @property
    def priority(self) -> int:
        """Fallback ordering (lower = tried first)."""
        return self._priority

    @property
    def is_enabled(self) -> bool:
        return self.config.enabled

    @asynccontextmanager
    async def _get_client(self) -> AsyncIterator[httpx.AsyncClient]:
        """Get or create HTTP client with proper lifecycle."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.config.base_url or self.BASE_URL,
                timeout=httpx.Timeout(self.config.timeout),
                headers=self._get_default_headers(),
                follow_redirects=True,
            )

        try:
            yield self._client
        except httpx.TimeoutException as e:
            raise StrategyTimeoutError(
                message=f"Request timed out: {e}",
                source=self.name.value,
            ) from e
        except httpx.HTTPError as e:
            raise NetworkError(
                message=f"HTTP error: {e}",
                source=self.name.value,
            ) from e

    def _get_default_headers(self) -> dict[str, str]:
        return {
            "User-Agent": "recentview/0.1",
            "Accept": "application/json",
            **self.config.headers,
        }

    async def _get_json(self, path: str, params: dict[str, str] | None = None) -> Any | None:
        """GET a JSON document. 404 means "no such resource" and yields None."""
        async with self._get_client() as client:
            response = await client.get(path, params=params)

        if response.status_code == 404:
            return None
        if not response.is_success:
            raise NetworkError(
                message=f"Unexpected status {response.status_code} for {path}",
                source=self.name.value,
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise ParseError(
                f"Invalid JSON from {path}",
                details={"source": self.name.value},
            ) from e

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "RemoteStrategy":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


class BatchStrategy(RemoteStrategy):
    """A strategy that looks up a whole identifier set in one request."""

    @abstractmethod
    def query_key(self, identifiers: Sequence[str]) -> str:
        """Canonical cache key describing the request for ``identifiers``."""
        ...

    @abstractmethod
    async def attempt(self, identifiers: Sequence[str]) -> Any | None:
        """Fetch the raw payload for ``identifiers``."""
        ...


class LookupStrategy(RemoteStrategy):
    """A strategy that looks up a single identifier."""

    def applies(self, target: LookupTarget) -> bool:
        """Whether this strategy can do anything for ``target``."""
        return True

    @abstractmethod
    def query_key(self, target: LookupTarget) -> str:
        """Canonical cache key describing the request for ``target``."""
        ...

    @abstractmethod
    async def attempt(self, target: LookupTarget) -> Any | None:
        """Fetch the raw payload for ``target``."""
        ...
