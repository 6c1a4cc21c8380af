"""
Single-flight credential refresh.

One RefreshCoordinator belongs to one client. Concurrent 401s on that client
share a single refresh call and all see its outcome.
"""

import asyncio
import inspect
from typing import Awaitable, Callable, Optional

from .errors import ConfigurationError


def _consume_exception(task: "asyncio.Future[str]") -> None:
    # Every waiter may have been cancelled before the refresh failed.
    if not task.cancelled():
        task.exception()


class RefreshCoordinator:
    """Owns the in-flight refresh and the refreshing flag for one client."""

    def __init__(self, refresh: Optional[Callable[[], Awaitable[str]]] = None) -> None:
        self._refresh = refresh
        self._in_flight: "Optional[asyncio.Future[str]]" = None
        self._refreshing = False

    @property
    def configured(self) -> bool:
        return self._refresh is not None

    @property
    def refreshing(self) -> bool:
        return self._refreshing

    def can_refresh(self) -> bool:
        """
        Whether a 401 may trigger a refresh right now.

        False while a refresh is running, so a 401 from the refresh call
        itself never starts a nested refresh.
        """
        return self._refresh is not None and not self._refreshing

    async def refresh_once(self) -> str:
        """Start a refresh, or join the one already in flight."""
        if self._refresh is None:
            raise ConfigurationError("refresh() is not configured")

        if self._in_flight is None:
            self._refreshing = True
            self._in_flight = asyncio.ensure_future(self._run())
            self._in_flight.add_done_callback(_consume_exception)

        # A cancelled waiter must not cancel the refresh other waiters share.
        return await asyncio.shield(self._in_flight)

    async def _run(self) -> str:
        try:
            token = self._refresh()
            if inspect.isawaitable(token):
                token = await token
            return token
        finally:
            self._in_flight = None
            self._refreshing = False
