"""Core types, models, and utilities."""

from .exceptions import (
    NetworkError,
    ParseError,
    RecentViewError,
    ResolutionCancelled,
    ResolutionError,
    StorageError,
    StrategyTimeoutError,
)
from .identifiers import handle_from_url, normalize_identifier
from .models import ProductOption, ResolvedRecord, Variant, is_complete
from .types import Availability, CacheTier, ResourceKind, StrategyName

__all__ = [
    # Exceptions
    "NetworkError",
    "ParseError",
    "RecentViewError",
    "ResolutionCancelled",
    "ResolutionError",
    "StorageError",
    "StrategyTimeoutError",
    # Identifiers
    "handle_from_url",
    "normalize_identifier",
    # Models
    "ProductOption",
    "ResolvedRecord",
    "Variant",
    "is_complete",
    # Types
    "Availability",
    "CacheTier",
    "ResourceKind",
    "StrategyName",
]
