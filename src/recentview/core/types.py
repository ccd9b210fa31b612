"""Core enums and type definitions."""

from enum import StrEnum


class Availability(StrEnum):
    """Purchasability of a resolved product."""

    AVAILABLE = "available"
    SOLD_OUT = "sold_out"
    UNKNOWN = "unknown"


class StrategyName(StrEnum):
    """Known ways of resolving an identifier."""

    SEARCH = "search"  # batched primary lookup
    DISCOVERY = "discovery"  # single-identifier search for a missing handle
    PRODUCT = "product"  # handle-scoped secondary lookup


class CacheTier(StrEnum):
    """Cache tiers, each persisted under its own storage key."""

    HANDLES = "handles"
    RECORDS = "records"
    LOOKUPS = "lookups"


class ResourceKind(StrEnum):
    """Storefront resource types a remote query can target."""

    PRODUCT = "product"
