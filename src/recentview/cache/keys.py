"""Cache key builders for consistent key formatting."""

import hashlib
from collections.abc import Iterable

from recentview.core.types import CacheTier, ResourceKind


class CacheKeys:
    """Cache key builders for consistent key formatting."""

    PREFIX = "recentview"

    @classmethod
    def tier(cls, tier: CacheTier | str) -> str:
        """Storage key holding the whole JSON object of one cache tier."""
        return f"{cls.PREFIX}:{tier}"

    @classmethod
    def query(
        cls,
        kind: ResourceKind | str,
        identifiers: Iterable[str],
    ) -> str:
        """
        Canonical key for a batched remote query.

        The identifier set is deduplicated and sorted so the same set
        requested in any order maps to one key.
        """
        canonical = ",".join(sorted(set(identifiers)))
        hash_value = hashlib.md5(f"{kind}:{canonical}".encode()).hexdigest()[:12]
        return f"{cls.PREFIX}:query:{kind}:{hash_value}"

    @classmethod
    def product(
        cls,
        identifier: str,
        handle: str | None = None,
    ) -> str:
        """Key for an identifier-scoped product lookup."""
        if handle:
            return f"{cls.PREFIX}:product:handle:{handle}"
        return f"{cls.PREFIX}:product:id:{identifier}"
