"""Pluggable persistence for identifiers and cache tiers."""

from .base import KeyValueStore
from .memory import InMemoryStore
from .redis_store import RedisStore

__all__ = [
    "InMemoryStore",
    "KeyValueStore",
    "RedisStore",
]
