"""Single-slot bearer token cache with single-flight refresh."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Awaitable, Callable

if TYPE_CHECKING:
    from scan_scheduler.credentials.client_credentials import Credential

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenCacheKey:
    """The one service identity this process authenticates as."""

    token_uri: str
    client_id: str
    scope: str = ""


class TokenCache:
    """Holds at most one credential for a fixed key.

    Concurrent callers that find the slot empty or expiring share a single
    refresh task and observe the same credential or the same exception. A
    caller being cancelled does not cancel the shared refresh.
    """

    def __init__(self, key: TokenCacheKey) -> None:
        self.key = key
        self._credential: Credential | None = None
        self._in_flight: asyncio.Task[Credential] | None = None
        self._lock = asyncio.Lock()

    @property
    def credential(self) -> Credential | None:
        return self._credential

    async def get_or_refresh(
        self,
        refresh_fn: Callable[[], Awaitable[Credential]],
    ) -> Credential:
        async with self._lock:
            cached = self._credential
            if cached is not None and cached.is_usable():
                return cached

            if self._in_flight is None:
                if cached is not None:
                    logger.debug("Cached token for %s is expiring; refreshing", self.key.client_id)
                self._credential = None
                self._in_flight = asyncio.create_task(self._refresh(refresh_fn))
                self._in_flight.add_done_callback(_consume_result)
            in_flight = self._in_flight

        return await asyncio.shield(in_flight)

    async def _refresh(self, refresh_fn: Callable[[], Awaitable[Credential]]) -> Credential:
        task = asyncio.current_task()
        try:
            credential = await refresh_fn()
        except BaseException:
            async with self._lock:
                if self._in_flight is task:
                    self._in_flight = None
            raise

        async with self._lock:
            # A clear() during the refresh leaves the slot empty.
            if self._in_flight is task:
                self._credential = credential
                self._in_flight = None
        return credential

    async def clear(self) -> None:
        """Discard the cached credential.

        A refresh already in flight still completes for the callers awaiting
        it, but its result is not stored.
        """
        async with self._lock:
            self._credential = None
            self._in_flight = None


def _consume_result(task: asyncio.Task) -> None:
    # Retrieve the outcome even when every waiter was cancelled.
    if not task.cancelled():
        task.exception()
