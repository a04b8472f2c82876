"""HTTP client assembly for ControllerApp."""

from __future__ import annotations

import httpx

from scan_scheduler.config import DownstreamSettings
from scan_scheduler.transport.interceptor import AuthenticatedTransport, TokenSource


def build_controller_app_client(
    settings: DownstreamSettings,
    token_source: TokenSource,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create the client all ControllerApp traffic goes through.

    ``transport`` replaces the network transport underneath the interceptor.
    """
    return httpx.AsyncClient(
        base_url=settings.base_url,
        timeout=httpx.Timeout(
            settings.read_timeout_seconds,
            connect=settings.connect_timeout_seconds,
        ),
        transport=AuthenticatedTransport(token_source, transport),
    )
