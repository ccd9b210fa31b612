"""Bounded, most-recent-first list of viewed product identifiers."""

from __future__ import annotations

import json
import logging
from typing import Any, ClassVar

from recentview.core.exceptions import StorageError
from recentview.core.identifiers import normalize_identifier
from recentview.storage.base import KeyValueStore

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 4
MIN_CAPACITY = 1
MAX_CAPACITY = 50


def clamp_capacity(value: Any, default: int = DEFAULT_CAPACITY) -> int:
    """Clamp a capacity to [1, 50]; unparseable or zero input yields the default."""
    try:
        capacity = int(value)
    except (TypeError, ValueError):
        capacity = 0
    if capacity == 0:
        capacity = default
    return max(MIN_CAPACITY, min(MAX_CAPACITY, capacity))


class IdentifierStore:
    """
    Recently viewed identifiers, persisted under fixed keys.

    The list is deduplicated and ordered most-recent-first; re-adding an
    identifier moves it to the front. Persistence is best-effort: storage
    failures are logged and swallowed so a full or unavailable store never
    breaks the product page that records the view.
    """

    STORAGE_KEY: ClassVar[str] = "viewedProducts"
    CAPACITY_KEY: ClassVar[str] = "viewedProductsMax"

    def __init__(self, store: KeyValueStore, default_capacity: int = DEFAULT_CAPACITY) -> None:
        self._store = store
        self._default_capacity = clamp_capacity(default_capacity)

    async def add(self, identifier: str | int) -> tuple[str, ...]:
        """
        Record a view of ``identifier`` and return the updated list.

        The read and the write are separate store calls. Two concurrent
        ``add`` calls against a shared backend such as Redis can lose one
        of the views; a session records views one at a time.
        """
        try:
            normalized = normalize_identifier(identifier)
        except ValueError as e:
            logger.debug(f"Ignoring view of invalid identifier: {e}")
            return await self.list()

        capacity = await self.capacity()
        current = [i for i in await self.list() if i != normalized]
        updated = [normalized, *current][:capacity]
        await self._write(updated)
        return tuple(updated)

    async def list(self) -> tuple[str, ...]:
        """Snapshot of stored identifiers, most recent first."""
        try:
            raw = await self._store.get(self.STORAGE_KEY)
        except StorageError as e:
            logger.warning(f"Failed to read viewed identifiers: {e}")
            return ()

        if not raw:
            return ()
        try:
            decoded = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Viewed identifiers are unreadable; treating as empty")
            return ()
        if not isinstance(decoded, list):
            return ()

        identifiers: list[str] = []
        for value in decoded:
            try:
                identifier = normalize_identifier(value)
            except ValueError:
                continue
            if identifier not in identifiers:
                identifiers.append(identifier)
        return tuple(identifiers)

    async def clear(self) -> None:
        """Forget all viewed identifiers."""
        try:
            await self._store.delete(self.STORAGE_KEY)
        except StorageError as e:
            logger.warning(f"Failed to clear viewed identifiers: {e}")

    async def capacity(self) -> int:
        """Maximum number of identifiers kept."""
        try:
            raw = await self._store.get(self.CAPACITY_KEY)
        except StorageError as e:
            logger.warning(f"Failed to read capacity: {e}")
            return self._default_capacity
        if raw is None:
            return self._default_capacity
        return clamp_capacity(raw, self._default_capacity)

    async def set_capacity(self, capacity: int | str) -> int:
        """
        Change the capacity, trimming the stored list if it is now too long.

        Returns:
            The clamped capacity actually applied.
        """
        applied = clamp_capacity(capacity, self._default_capacity)
        try:
            await self._store.set(self.CAPACITY_KEY, str(applied))
        except StorageError as e:
            logger.warning(f"Failed to persist capacity {applied}: {e}")

        identifiers = await self.list()
        if len(identifiers) > applied:
            await self._write(list(identifiers[:applied]))
        return applied

    async def _write(self, identifiers: list[str]) -> None:
        try:
            await self._store.set(self.STORAGE_KEY, json.dumps(identifiers))
        except StorageError as e:
            logger.warning(f"Failed to persist viewed identifiers: {e}")
