"""Service credential acquisition and caching."""

from scan_scheduler.credentials.cache import TokenCache, TokenCacheKey
from scan_scheduler.credentials.client_credentials import (
    ClientCredentialsTokenProvider,
    Credential,
)

__all__ = [
    "ClientCredentialsTokenProvider",
    "Credential",
    "TokenCache",
    "TokenCacheKey",
]
