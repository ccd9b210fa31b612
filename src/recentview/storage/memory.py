"""In-memory key-value store."""

from __future__ import annotations

from recentview.core.exceptions import StorageError
from recentview.storage.base import KeyValueStore


class InMemoryStore(KeyValueStore):
    """
    Dict-backed store for tests and ephemeral sessions.

    An optional ``quota_bytes`` caps the total size of keys plus values,
    mirroring the quota a browser imposes on local storage.
    """

    def __init__(self, quota_bytes: int | None = None) -> None:
        self._data: dict[str, str] = {}
        self._quota_bytes = quota_bytes

    @property
    def used_bytes(self) -> int:
        return sum(self._entry_size(k, v) for k, v in self._data.items())

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        if self._quota_bytes is not None:
            current = self._data.get(key)
            used = self.used_bytes
            if current is not None:
                used -= self._entry_size(key, current)
            if used + self._entry_size(key, value) > self._quota_bytes:
                raise StorageError(
                    "Storage quota exceeded",
                    details={"key": key, "quota_bytes": self._quota_bytes},
                )
        self._data[key] = value

    async def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    async def keys(self) -> list[str]:
        return list(self._data)

    @staticmethod
    def _entry_size(key: str, value: str) -> int:
        return len(key.encode()) + len(value.encode())
