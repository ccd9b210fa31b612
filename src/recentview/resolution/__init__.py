"""Resolution layer: strategies, parsing, and the caching pipeline."""

from recentview.resolution.cancellation import CancellationToken, LatestOnly
from recentview.resolution.parsing import (
    ProductFragment,
    index_fragments,
    locate_products,
    parse_product,
)
from recentview.resolution.pipeline import (
    PipelineConfig,
    PipelineStats,
    ResolutionPipeline,
    ResolveOptions,
)
from recentview.resolution.strategies import (
    BatchStrategy,
    HandleDiscoveryStrategy,
    LookupStrategy,
    LookupTarget,
    ProductStrategy,
    RemoteStrategy,
    SearchStrategy,
    StrategyConfig,
)

__all__ = [
    # Cancellation
    "CancellationToken",
    "LatestOnly",
    # Parsing
    "ProductFragment",
    "index_fragments",
    "locate_products",
    "parse_product",
    # Pipeline
    "PipelineConfig",
    "PipelineStats",
    "ResolutionPipeline",
    "ResolveOptions",
    # Strategies
    "BatchStrategy",
    "HandleDiscoveryStrategy",
    "LookupStrategy",
    "LookupTarget",
    "ProductStrategy",
    "RemoteStrategy",
    "SearchStrategy",
    "StrategyConfig",
]
