"""Outbound request instrumentation.

``AuthenticatedTransport`` wraps any httpx transport. Every request that passes
through it carries the service bearer token and, when a correlation scope is
active, the ``X-Correlation-ID`` header. It performs exactly one inner
transport attempt per request.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

import httpx

from scan_scheduler import correlation

if TYPE_CHECKING:
    from scan_scheduler.credentials.client_credentials import Credential

logger = logging.getLogger(__name__)

AUTHORIZATION_HEADER = "Authorization"


class TokenSource(Protocol):
    async def acquire(self) -> "Credential": ...


class AuthenticatedTransport(httpx.AsyncBaseTransport):
    def __init__(
        self,
        token_source: TokenSource,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._token_source = token_source
        self._transport = transport or httpx.AsyncHTTPTransport()

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        # AuthUnavailable propagates before anything is dispatched.
        credential = await self._token_source.acquire()
        request.headers[AUTHORIZATION_HEADER] = credential.authorization_header
        logger.debug("Added OAuth2 token to request: %s %s", request.method, request.url)

        correlation_id = correlation.current()
        if correlation_id:
            request.headers[correlation.CORRELATION_ID_HEADER] = correlation_id
            logger.debug("Added correlation ID to request: %s", correlation_id)

        return await self._transport.handle_async_request(request)

    async def aclose(self) -> None:
        await self._transport.aclose()
