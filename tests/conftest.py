from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from scan_scheduler.config import (
    DownstreamSettings,
    IdentityProviderSettings,
    SchedulerSettings,
    ServerSettings,
    Settings,
)
from scan_scheduler.credentials.client_credentials import Credential
from scan_scheduler.errors import AuthUnavailable

TOKEN_URI = "https://idp.example.com/oauth2/token"
BASE_URL = "https://controller.example.com"


def make_credential(
    token: str = "T1",
    expires_in: float = 3600,
    margin: float = 60,
) -> Credential:
    return Credential(
        access_token=token,
        expires_at=datetime.now(timezone.utc) + timedelta(seconds=expires_in),
        scope="controllerapp.internal",
        safety_margin_seconds=margin,
    )


class FakeTokenSource:
    """Token source returning a fixed credential or raising a fixed error."""

    def __init__(
        self,
        credential: Credential | None = None,
        error: Exception | None = None,
    ) -> None:
        self.credential = credential or make_credential()
        self.error = error
        self.calls = 0

    async def acquire(self) -> Credential:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.credential


class RecordingTransport(httpx.AsyncBaseTransport):
    """Records every request that reaches the network layer."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.handler = handler
        self.requests: list[httpx.Request] = []

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)


@pytest.fixture
def idp_settings() -> IdentityProviderSettings:
    return IdentityProviderSettings(
        token_uri=TOKEN_URI,
        client_id="schedulerapp-service",
        client_secret="s3cr3t",
        scope="controllerapp.internal",
    )


@pytest.fixture
def settings(idp_settings: IdentityProviderSettings) -> Settings:
    return Settings(
        identity_provider=idp_settings,
        downstream=DownstreamSettings(base_url=BASE_URL),
        scheduler=SchedulerSettings(enabled=False),
        server=ServerSettings(enabled=False),
    )


@pytest.fixture
def audit_lines() -> list[str]:
    return []


@pytest.fixture
def token_source() -> FakeTokenSource:
    return FakeTokenSource()


@pytest.fixture
def failing_token_source() -> FakeTokenSource:
    return FakeTokenSource(
        error=AuthUnavailable(
            "Identity provider rejected token request (HTTP 400)",
            code="token_rejected",
            status_code=400,
        )
    )

