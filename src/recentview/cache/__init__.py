"""TTL caching tiers."""

from .keys import CacheKeys
from .tiers import HandleResolutionCache, RecordCache, RemoteLookupCache, TierCache
from .ttl import TTLCache

__all__ = [
    "CacheKeys",
    "HandleResolutionCache",
    "RecordCache",
    "RemoteLookupCache",
    "TTLCache",
    "TierCache",
]
