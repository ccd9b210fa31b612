"""Product strategy: handle-scoped lookup of the full product JSON."""

from __future__ import annotations

from typing import Any, ClassVar
from urllib.parse import quote

from recentview.cache.keys import CacheKeys
from recentview.core.types import StrategyName
from recentview.resolution.strategies.base import LookupStrategy, LookupTarget


class ProductStrategy(LookupStrategy):
    """
    Secondary lookup returning the complete product (variants, options).

    A single ``/products/<handle>.js`` request. Identifiers without a known
    handle are skipped; :class:`HandleDiscoveryStrategy` finds it first.
    """

    NAME: ClassVar[StrategyName] = StrategyName.PRODUCT
    DEFAULT_PRIORITY: ClassVar[int] = 50

    def applies(self, target: LookupTarget) -> bool:
        return target.handle is not None

    def query_key(self, target: LookupTarget) -> str:
        return CacheKeys.product(target.identifier, target.handle)

    async def attempt(self, target: LookupTarget) -> Any | None:
        if target.handle is None:
            return None
        return await self._get_json(f"/products/{quote(target.handle, safe='')}.js")
