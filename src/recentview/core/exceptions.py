"""Custom exception hierarchy for recentview."""

from typing import Any


class RecentViewError(Exception):
    """Base exception for all recentview errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class StorageError(RecentViewError):
    """Persistence failed (quota exhausted, serialization, backend down)."""

    pass


class ResolutionError(RecentViewError):
    """Failed to resolve an identifier."""

    pass


class NetworkError(ResolutionError):
    """A remote strategy call failed."""

    def __init__(
        self,
        message: str,
        source: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.source = source
        self.status_code = status_code


class StrategyTimeoutError(NetworkError):
    """A remote strategy call did not finish in time."""

    pass


class ParseError(ResolutionError):
    """Remote payload did not have the expected shape."""

    pass


class ResolutionCancelled(RecentViewError):
    """The invocation's cancellation token was triggered."""

    pass
