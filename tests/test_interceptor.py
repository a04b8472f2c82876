from __future__ import annotations

import httpx
import pytest

from conftest import BASE_URL, FakeTokenSource, RecordingTransport, make_credential
from scan_scheduler import correlation
from scan_scheduler.errors import AuthUnavailable
from scan_scheduler.transport.interceptor import AuthenticatedTransport


def _client(token_source, inner: RecordingTransport) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=BASE_URL,
        transport=AuthenticatedTransport(token_source, inner),
    )


@pytest.mark.asyncio
async def test_adds_bearer_and_correlation_headers(token_source) -> None:
    inner = RecordingTransport(lambda _: httpx.Response(200, text="[]"))

    async with _client(token_source, inner) as client:
        with correlation.begin("corr-1"):
            response = await client.get("/controller/internal/scans/status")

    assert response.status_code == 200
    assert len(inner.requests) == 1
    request = inner.requests[0]
    assert request.headers["Authorization"] == "Bearer T1"
    assert request.headers["X-Correlation-ID"] == "corr-1"


@pytest.mark.asyncio
async def test_no_correlation_header_outside_scope(token_source) -> None:
    inner = RecordingTransport(lambda _: httpx.Response(200))

    async with _client(token_source, inner) as client:
        await client.get("/anything")

    request = inner.requests[0]
    assert request.headers["Authorization"] == "Bearer T1"
    assert "X-Correlation-ID" not in request.headers


@pytest.mark.asyncio
async def test_token_replaces_caller_authorization_header() -> None:
    inner = RecordingTransport(lambda _: httpx.Response(200))
    source = FakeTokenSource(make_credential("fresh"))

    async with _client(source, inner) as client:
        await client.get("/anything", headers={"Authorization": "Bearer stale"})

    assert inner.requests[0].headers["Authorization"] == "Bearer fresh"


@pytest.mark.asyncio
async def test_auth_unavailable_prevents_dispatch(failing_token_source) -> None:
    inner = RecordingTransport(lambda _: httpx.Response(200))

    async with _client(failing_token_source, inner) as client:
        with pytest.raises(AuthUnavailable) as exc_info:
            await client.get("/anything")

    assert exc_info.value.code == "token_rejected"
    assert inner.requests == []


@pytest.mark.asyncio
async def test_each_request_acquires_token_once(token_source) -> None:
    inner = RecordingTransport(lambda _: httpx.Response(500))

    async with _client(token_source, inner) as client:
        response = await client.get("/anything")

    assert response.status_code == 500
    assert token_source.calls == 1
    assert len(inner.requests) == 1
