"""OAuth2 client-credentials token provider.

Acquires the bearer token this service presents to ControllerApp. Tokens are
cached in a single-slot ``TokenCache`` and refreshed before they expire:
a credential is usable only while ``now < expires_at - safety_margin``.

The access token value is never logged. Error payloads returned by the token
endpoint are masked before they reach the log.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta

import httpx

from scan_scheduler.config import IdentityProviderSettings
from scan_scheduler.credentials.cache import TokenCache, TokenCacheKey
from scan_scheduler.errors import AuthUnavailable
from scan_scheduler.utils.masking import describe_error_body
from scan_scheduler.utils.time import ensure_aware, utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Credential:
    """Immutable bearer credential issued by the identity provider."""

    access_token: str = field(repr=False)
    expires_at: datetime
    scope: str = ""
    token_type: str = "Bearer"
    safety_margin_seconds: float = 0.0

    def __repr__(self) -> str:
        return (
            f"Credential(access_token={self.access_token[:4]}***, "
            f"expires_at={self.expires_at.isoformat()}, scope={self.scope!r})"
        )

    @property
    def refresh_at(self) -> datetime:
        return ensure_aware(self.expires_at) - timedelta(seconds=self.safety_margin_seconds)

    def is_usable(self, now: datetime | None = None) -> bool:
        return (now or utc_now()) < self.refresh_at

    @property
    def authorization_header(self) -> str:
        return f"Bearer {self.access_token}"


class ClientCredentialsTokenProvider:
    """Client-credentials grant against a single configured token endpoint."""

    def __init__(
        self,
        settings: IdentityProviderSettings,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(
                settings.read_timeout_seconds,
                connect=settings.connect_timeout_seconds,
            )
        )
        self._cache = TokenCache(
            TokenCacheKey(
                token_uri=settings.token_uri,
                client_id=settings.client_id,
                scope=settings.scope,
            )
        )

    @property
    def cache(self) -> TokenCache:
        return self._cache

    async def acquire(self) -> Credential:
        """Return a usable credential, requesting a new one only when needed.

        Raises:
            AuthUnavailable: The identity provider rejected the request or
                could not be reached. No stale credential is substituted.
        """
        return await self._cache.get_or_refresh(self.fetch)

    async def authorization_header(self) -> str:
        credential = await self.acquire()
        return credential.authorization_header

    async def fetch(self) -> Credential:
        """Perform one token request. Bypasses the cache."""
        settings = self._settings
        if self._client.is_closed:
            raise AuthUnavailable("Token provider is closed", code="provider_closed")

        form = {"grant_type": "client_credentials"}
        if settings.scope:
            form["scope"] = settings.scope

        auth: httpx.Auth | None = None
        if settings.client_auth_method == "client_secret_basic":
            auth = httpx.BasicAuth(settings.client_id, settings.client_secret)
        else:
            form["client_id"] = settings.client_id
            form["client_secret"] = settings.client_secret

        logger.debug("Requesting access token for client %s", settings.client_id)
        requested_at = utc_now()

        try:
            response = await self._client.post(
                settings.token_uri,
                data=form,
                auth=auth,
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as exc:
            logger.warning(
                "Token endpoint unreachable: client=%s, error=%s: %s",
                settings.client_id,
                type(exc).__name__,
                exc,
            )
            raise AuthUnavailable(
                f"Identity provider unreachable: {type(exc).__name__}",
                code="idp_unreachable",
            ) from exc

        if not response.is_success:
            logger.warning(
                "Token request rejected: client=%s, status=%s, body=%s",
                settings.client_id,
                response.status_code,
                describe_error_body(response),
            )
            raise AuthUnavailable(
                f"Identity provider rejected token request (HTTP {response.status_code})",
                code="token_rejected",
                status_code=response.status_code,
            )

        credential = self._parse_token_response(response, requested_at)
        logger.debug(
            "Access token retrieved successfully. Expires at: %s",
            credential.expires_at.isoformat(),
        )
        return credential

    def _parse_token_response(self, response: httpx.Response, requested_at: datetime) -> Credential:
        try:
            payload = response.json()
        except ValueError as exc:
            raise AuthUnavailable(
                "Token response is not valid JSON", code="invalid_token_response"
            ) from exc

        if not isinstance(payload, dict):
            raise AuthUnavailable("Token response is not an object", code="invalid_token_response")

        access_token = payload.get("access_token")
        if not isinstance(access_token, str) or not access_token:
            raise AuthUnavailable(
                "Token response has no access_token", code="invalid_token_response"
            )

        expires_in = self._expires_in(payload.get("expires_in"))
        # Tokens shorter-lived than twice the buffer keep half their lifetime usable.
        margin = min(float(self._settings.refresh_buffer_seconds), expires_in / 2)

        return Credential(
            access_token=access_token,
            expires_at=requested_at + timedelta(seconds=expires_in),
            scope=str(payload.get("scope") or self._settings.scope),
            token_type=str(payload.get("token_type") or "Bearer"),
            safety_margin_seconds=margin,
        )

    def _expires_in(self, raw: object) -> float:
        if raw is None:
            return float(self._settings.default_expires_in_seconds)
        try:
            value = float(raw)  # type: ignore[arg-type]
        except (TypeError, ValueError) as exc:
            raise AuthUnavailable(
                f"Token response has invalid expires_in: {raw!r}",
                code="invalid_token_response",
            ) from exc
        if value <= 0:
            raise AuthUnavailable(
                f"Token response has non-positive expires_in: {raw!r}",
                code="invalid_token_response",
            )
        return value

    async def aclose(self) -> None:
        """Discard the cached credential and close the owned HTTP client."""
        await self._cache.clear()
        if self._owns_client:
            await self._client.aclose()
