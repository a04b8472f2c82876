"""Inbound correlation id handling."""

from __future__ import annotations

from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from scan_scheduler import correlation


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Open a correlation scope per request and echo its id on the response.

    An id arriving on ``X-Correlation-ID`` is reused unchanged; otherwise a
    new one is generated. Outbound calls made while handling the request carry
    the same id.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        inbound = request.headers.get(correlation.CORRELATION_ID_HEADER, "").strip()
        with correlation.begin(inbound or None) as scope:
            response = await call_next(request)
            response.headers[correlation.CORRELATION_ID_HEADER] = scope.correlation_id
            return response
