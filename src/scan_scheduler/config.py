"""Configuration management for the scan scheduler."""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

_config_logger = logging.getLogger(__name__)


class LoggingSettings(BaseModel):
    level: str = Field(default="INFO", description="Python logging level name")
    file: str | None = Field(default=None, description="Optional log file path")


class IdentityProviderSettings(BaseModel):
    """OAuth2 client-credentials registration for this service identity."""

    token_uri: str
    client_id: str
    client_secret: str = Field(repr=False)
    scope: str = Field(default="")
    client_auth_method: Literal["client_secret_basic", "client_secret_post"] = Field(
        default="client_secret_basic"
    )
    refresh_buffer_seconds: int = Field(default=60, ge=0, le=3600)
    default_expires_in_seconds: int = Field(
        default=300,
        ge=1,
        description="Lifetime assumed when the token response carries no expires_in.",
    )
    connect_timeout_seconds: float = Field(default=10.0, gt=0)
    read_timeout_seconds: float = Field(default=30.0, gt=0)

    @field_validator("token_uri", "client_id", "client_secret")
    @classmethod
    def _require_non_empty(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value


class DownstreamSettings(BaseModel):
    base_url: str
    connect_timeout_seconds: float = Field(default=10.0, gt=0)
    read_timeout_seconds: float = Field(default=30.0, gt=0)

    @field_validator("base_url")
    @classmethod
    def _normalize_base_url(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        if not value.startswith(("http://", "https://")):
            raise ValueError("base_url must use http or https")
        return value


class AuditSettings(BaseModel):
    service_name: str = Field(default="schedulerapp-service")
    enabled: bool = Field(default=True)
    file: str | None = Field(default=None, description="Audit JSON lines file; stdout if unset")


class SchedulerSettings(BaseModel):
    enabled: bool = Field(default=True)
    jobs_config_path: str | None = Field(default=None)
    recent_scans_within_days: int = Field(default=7, ge=1, le=365)
    recent_scans_limit: int = Field(default=50, ge=1, le=10_000)


class ServerSettings(BaseModel):
    enabled: bool = Field(default=True)
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8080, ge=1024, le=65535)


class Settings(BaseModel):
    identity_provider: IdentityProviderSettings
    downstream: DownstreamSettings
    audit: AuditSettings = Field(default_factory=AuditSettings)
    scheduler: SchedulerSettings = Field(default_factory=SchedulerSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


ENV_KEYS = {
    "token_uri": "OAUTH_TOKEN_URI",
    "client_id": "OAUTH_CLIENT_ID",
    "client_secret": "OAUTH_CLIENT_SECRET",
    "scope": "OAUTH_SCOPE",
    "client_auth_method": "OAUTH_CLIENT_AUTH_METHOD",
    "refresh_buffer": "OAUTH_REFRESH_BUFFER_SECONDS",
    "default_expires_in": "OAUTH_DEFAULT_EXPIRES_IN_SECONDS",
    "idp_connect_timeout": "OAUTH_CONNECT_TIMEOUT_SECONDS",
    "idp_read_timeout": "OAUTH_READ_TIMEOUT_SECONDS",
    "base_url": "CONTROLLERAPP_BASE_URL",
    "downstream_connect_timeout": "CONTROLLERAPP_CONNECT_TIMEOUT_SECONDS",
    "downstream_read_timeout": "CONTROLLERAPP_READ_TIMEOUT_SECONDS",
    "audit_service_name": "AUDIT_SERVICE_NAME",
    "audit_enabled": "AUDIT_ENABLED",
    "audit_file": "AUDIT_LOG_FILE",
    "log_level": "LOG_LEVEL",
    "log_file": "LOG_FILE",
    "scheduler_enabled": "SCHEDULER_ENABLED",
    "jobs_config": "SCHEDULER_JOBS_CONFIG",
    "recent_within_days": "SCHEDULER_RECENT_SCANS_WITHIN_DAYS",
    "recent_limit": "SCHEDULER_RECENT_SCANS_LIMIT",
    "server_enabled": "HTTP_SERVER_ENABLED",
    "host": "HTTP_HOST",
    "port": "HTTP_PORT",
}

_TRUE_VALUES = frozenset({"1", "true", "yes"})


def _project_root() -> Path:
    return Path(__file__).resolve().parents[2]


def _resolve_path(path: str) -> str:
    candidate = Path(path)
    if candidate.is_absolute():
        return str(candidate.resolve())
    return str((_project_root() / candidate).resolve())


def _env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        _config_logger.warning(
            "Invalid integer value for %s: %r, using default %d", key, value, default
        )
        return default


def _env_float(key: str, default: float) -> float:
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError:
        _config_logger.warning(
            "Invalid float value for %s: %r, using default %s", key, value, default
        )
        return default


def _env_path(key: str) -> str | None:
    value = os.getenv(key, "").strip()
    return _resolve_path(value) if value else None


def load_settings() -> Settings:
    """Load configuration and cache the result."""

    return _load_settings_cached()


@lru_cache(maxsize=1)
def _load_settings_cached() -> Settings:
    load_dotenv(dotenv_path=_project_root() / ".env")

    idp_defaults = IdentityProviderSettings.model_fields
    downstream_defaults = DownstreamSettings.model_fields

    settings_data: dict[str, object] = {
        "identity_provider": {
            "token_uri": os.getenv(ENV_KEYS["token_uri"], ""),
            "client_id": os.getenv(ENV_KEYS["client_id"], ""),
            "client_secret": os.getenv(ENV_KEYS["client_secret"], ""),
            "scope": os.getenv(ENV_KEYS["scope"], idp_defaults["scope"].default),
            "client_auth_method": os.getenv(
                ENV_KEYS["client_auth_method"],
                idp_defaults["client_auth_method"].default,
            ),
            "refresh_buffer_seconds": _env_int(
                ENV_KEYS["refresh_buffer"],
                idp_defaults["refresh_buffer_seconds"].default,
            ),
            "default_expires_in_seconds": _env_int(
                ENV_KEYS["default_expires_in"],
                idp_defaults["default_expires_in_seconds"].default,
            ),
            "connect_timeout_seconds": _env_float(
                ENV_KEYS["idp_connect_timeout"],
                idp_defaults["connect_timeout_seconds"].default,
            ),
            "read_timeout_seconds": _env_float(
                ENV_KEYS["idp_read_timeout"],
                idp_defaults["read_timeout_seconds"].default,
            ),
        },
        "downstream": {
            "base_url": os.getenv(ENV_KEYS["base_url"], ""),
            "connect_timeout_seconds": _env_float(
                ENV_KEYS["downstream_connect_timeout"],
                downstream_defaults["connect_timeout_seconds"].default,
            ),
            "read_timeout_seconds": _env_float(
                ENV_KEYS["downstream_read_timeout"],
                downstream_defaults["read_timeout_seconds"].default,
            ),
        },
        "audit": {
            "service_name": os.getenv(
                ENV_KEYS["audit_service_name"], AuditSettings().service_name
            ),
            "enabled": _env_bool(ENV_KEYS["audit_enabled"], AuditSettings().enabled),
            "file": _env_path(ENV_KEYS["audit_file"]),
        },
        "scheduler": {
            "enabled": _env_bool(ENV_KEYS["scheduler_enabled"], SchedulerSettings().enabled),
            "jobs_config_path": _env_path(ENV_KEYS["jobs_config"]),
            "recent_scans_within_days": _env_int(
                ENV_KEYS["recent_within_days"],
                SchedulerSettings().recent_scans_within_days,
            ),
            "recent_scans_limit": _env_int(
                ENV_KEYS["recent_limit"],
                SchedulerSettings().recent_scans_limit,
            ),
        },
        "server": {
            "enabled": _env_bool(ENV_KEYS["server_enabled"], ServerSettings().enabled),
            "host": os.getenv(ENV_KEYS["host"], ServerSettings().host),
            "port": _env_int(ENV_KEYS["port"], ServerSettings().port),
        },
        "logging": {
            "level": os.getenv(ENV_KEYS["log_level"], LoggingSettings().level),
            "file": _env_path(ENV_KEYS["log_file"]),
        },
    }

    try:
        settings = Settings.model_validate(settings_data)
    except ValidationError as exc:
        raise RuntimeError(f"Invalid configuration: {exc}") from exc

    if settings.scheduler.jobs_config_path and not Path(
        settings.scheduler.jobs_config_path
    ).exists():
        raise RuntimeError(
            "Invalid configuration: SCHEDULER_JOBS_CONFIG points to a missing file: "
            f"{settings.scheduler.jobs_config_path}"
        )

    return settings
