"""Remote lookup strategies."""

from .base import (
    BatchStrategy,
    LookupStrategy,
    LookupTarget,
    RemoteStrategy,
    StrategyConfig,
)
from .discovery import HandleDiscoveryStrategy
from .product import ProductStrategy
from .search import SearchStrategy

__all__ = [
    "BatchStrategy",
    "HandleDiscoveryStrategy",
    "LookupStrategy",
    "LookupTarget",
    "ProductStrategy",
    "RemoteStrategy",
    "SearchStrategy",
    "StrategyConfig",
]
