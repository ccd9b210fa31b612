"""Recently viewed identifier tracking."""

from .store import DEFAULT_CAPACITY, MAX_CAPACITY, MIN_CAPACITY, IdentifierStore, clamp_capacity

__all__ = [
    "DEFAULT_CAPACITY",
    "MAX_CAPACITY",
    "MIN_CAPACITY",
    "IdentifierStore",
    "clamp_capacity",
]
