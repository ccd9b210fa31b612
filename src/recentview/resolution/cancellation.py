"""Cooperative cancellation for in-flight resolutions."""

from __future__ import annotations

from recentview.core.exceptions import ResolutionCancelled


class CancellationToken:
    """Flag checked by every suspension point of a resolution."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise ResolutionCancelled("Resolution was cancelled")


class LatestOnly:
    """
    Issues one token per request and cancels the previous one.

    Rapid navigation can start several resolutions; only the most recent
    one is allowed to deliver its result.
    """

    def __init__(self) -> None:
        self._current: CancellationToken | None = None

    def issue(self) -> CancellationToken:
        if self._current is not None:
            self._current.cancel()
        self._current = CancellationToken()
        return self._current

    def is_current(self, token: CancellationToken) -> bool:
        return token is self._current and not token.cancelled

    def cancel(self) -> None:
        if self._current is not None:
            self._current.cancel()
