"""Handle discovery strategy: single-identifier search for a missing handle."""

from __future__ import annotations

from typing import Any, ClassVar

from recentview.cache.keys import CacheKeys
from recentview.core.types import ResourceKind, StrategyName
from recentview.resolution.strategies.base import LookupStrategy, LookupTarget
from recentview.resolution.strategies.search import SearchStrategy


class HandleDiscoveryStrategy(LookupStrategy):
    """
    Looks up one identifier through predictive search.

    Runs only while the handle is unknown, so that the product lookup
    after it has a handle to fetch by. The entry it returns usually lacks
    variants; its handle, title and availability still feed degraded
    synthesis if the product lookup fails.
    """

    NAME: ClassVar[StrategyName] = StrategyName.DISCOVERY
    DEFAULT_PRIORITY: ClassVar[int] = 40

    def applies(self, target: LookupTarget) -> bool:
        return target.handle is None

    def query_key(self, target: LookupTarget) -> str:
        return CacheKeys.query(ResourceKind.PRODUCT, [target.identifier])

    async def attempt(self, target: LookupTarget) -> Any | None:
        return await self._get_json(
            SearchStrategy.PATH,
            params={
                "q": SearchStrategy.build_filter([target.identifier]),
                "resources[type]": ResourceKind.PRODUCT.value,
                "resources[limit]": "1",
            },
        )
