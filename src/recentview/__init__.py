"""recentview - Recently viewed product resolution with tiered TTL caching."""

from recentview.client import RecentViewClient
from recentview.core.models import ProductOption, ResolvedRecord, Variant
from recentview.core.types import Availability, CacheTier, StrategyName
from recentview.history.store import IdentifierStore
from recentview.resolution.cancellation import CancellationToken, LatestOnly
from recentview.resolution.pipeline import PipelineConfig, ResolutionPipeline, ResolveOptions

__version__ = "0.1.0"
__all__ = [
    # Client
    "RecentViewClient",
    # Types
    "Availability",
    "CacheTier",
    "StrategyName",
    # Models
    "ProductOption",
    "ResolvedRecord",
    "Variant",
    # Building blocks
    "CancellationToken",
    "IdentifierStore",
    "LatestOnly",
    "PipelineConfig",
    "ResolutionPipeline",
    "ResolveOptions",
    # Version
    "__version__",
]
