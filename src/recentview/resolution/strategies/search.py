"""Predictive search strategy: one batched query for many identifiers."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, ClassVar

from recentview.cache.keys import CacheKeys
from recentview.core.types import ResourceKind, StrategyName
from recentview.resolution.strategies.base import BatchStrategy


class SearchStrategy(BatchStrategy):
    """
    Primary lookup through the storefront's predictive search endpoint.

    The query is a disjunction of exact-match clauses, ``id:1 OR id:2``.
    Predictive search caps results at 10 and usually omits variants, so
    entries it returns are often incomplete and fall through to the
    product lookup.
    """

    NAME: ClassVar[StrategyName] = StrategyName.SEARCH
    PATH: ClassVar[str] = "/search/suggest.json"
    MAX_RESULTS: ClassVar[int] = 10
    DEFAULT_PRIORITY: ClassVar[int] = 10

    @staticmethod
    def build_filter(identifiers: Sequence[str]) -> str:
        """Filter expression matching any of ``identifiers`` exactly."""
        return " OR ".join(f"id:{identifier}" for identifier in identifiers)

    def build_params(self, identifiers: Sequence[str]) -> dict[str, str]:
        # Entries past MAX_RESULTS never come back; those identifiers resolve
        # through the per-identifier fallbacks instead.
        return {
            "q": self.build_filter(identifiers),
            "resources[type]": ResourceKind.PRODUCT.value,
            "resources[limit]": str(max(1, min(len(identifiers), self.MAX_RESULTS))),
            "resources[options][unavailable_products]": "last",
        }

    def query_key(self, identifiers: Sequence[str]) -> str:
        return CacheKeys.query(ResourceKind.PRODUCT, identifiers)

    async def attempt(self, identifiers: Sequence[str]) -> Any | None:
        if not identifiers:
            return None
        return await self._get_json(self.PATH, params=self.build_params(identifiers))
