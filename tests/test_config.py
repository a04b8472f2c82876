from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from pydantic import ValidationError

from scan_scheduler import config
from scan_scheduler.config import DownstreamSettings, IdentityProviderSettings


@pytest.fixture
def env(monkeypatch: pytest.MonkeyPatch) -> Iterator[pytest.MonkeyPatch]:
    monkeypatch.setattr(config, "load_dotenv", lambda **_: None)
    for key in config.ENV_KEYS.values():
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("OAUTH_TOKEN_URI", "https://idp.example.com/oauth2/token")
    monkeypatch.setenv("OAUTH_CLIENT_ID", "schedulerapp-service")
    monkeypatch.setenv("OAUTH_CLIENT_SECRET", "s3cr3t")
    monkeypatch.setenv("CONTROLLERAPP_BASE_URL", "https://controller.example.com/")
    config._load_settings_cached.cache_clear()
    yield monkeypatch
    config._load_settings_cached.cache_clear()


def test_load_settings_defaults(env: pytest.MonkeyPatch) -> None:
    settings = config.load_settings()

    idp = settings.identity_provider
    assert idp.client_id == "schedulerapp-service"
    assert idp.client_auth_method == "client_secret_basic"
    assert idp.refresh_buffer_seconds == 60
    assert idp.default_expires_in_seconds == 300
    assert settings.downstream.base_url == "https://controller.example.com"
    assert settings.audit.service_name == "schedulerapp-service"
    assert settings.audit.enabled is True
    assert settings.scheduler.enabled is True
    assert settings.scheduler.jobs_config_path is None
    assert settings.server.port == 8080
    assert settings.logging.level == "INFO"


def test_load_settings_is_cached(env: pytest.MonkeyPatch) -> None:
    assert config.load_settings() is config.load_settings()


def test_load_settings_reads_overrides(env: pytest.MonkeyPatch) -> None:
    env.setenv("OAUTH_SCOPE", "controllerapp.internal")
    env.setenv("OAUTH_CLIENT_AUTH_METHOD", "client_secret_post")
    env.setenv("OAUTH_REFRESH_BUFFER_SECONDS", "120")
    env.setenv("CONTROLLERAPP_READ_TIMEOUT_SECONDS", "5.5")
    env.setenv("AUDIT_ENABLED", "false")
    env.setenv("SCHEDULER_ENABLED", "0")
    env.setenv("SCHEDULER_RECENT_SCANS_WITHIN_DAYS", "14")
    env.setenv("HTTP_PORT", "9090")

    settings = config.load_settings()

    assert settings.identity_provider.scope == "controllerapp.internal"
    assert settings.identity_provider.client_auth_method == "client_secret_post"
    assert settings.identity_provider.refresh_buffer_seconds == 120
    assert settings.downstream.read_timeout_seconds == 5.5
    assert settings.audit.enabled is False
    assert settings.scheduler.enabled is False
    assert settings.scheduler.recent_scans_within_days == 14
    assert settings.server.port == 9090


def test_jobs_config_path_is_resolved(env: pytest.MonkeyPatch, tmp_path: Path) -> None:
    schedule = tmp_path / "schedule.yaml"
    schedule.write_text("jobs: {}\n", encoding="utf-8")
    env.setenv("SCHEDULER_JOBS_CONFIG", str(schedule))

    settings = config.load_settings()

    assert settings.scheduler.jobs_config_path == str(schedule.resolve())


def test_missing_jobs_config_file_is_rejected(env: pytest.MonkeyPatch, tmp_path: Path) -> None:
    env.setenv("SCHEDULER_JOBS_CONFIG", str(tmp_path / "missing.yaml"))

    with pytest.raises(RuntimeError, match="points to a missing file"):
        config.load_settings()


@pytest.mark.parametrize(
    "key",
    ["OAUTH_TOKEN_URI", "OAUTH_CLIENT_ID", "OAUTH_CLIENT_SECRET", "CONTROLLERAPP_BASE_URL"],
)
def test_missing_required_value_raises_runtime_error(env: pytest.MonkeyPatch, key: str) -> None:
    env.delenv(key)

    with pytest.raises(RuntimeError, match="Invalid configuration"):
        config.load_settings()


def test_invalid_auth_method_raises_runtime_error(env: pytest.MonkeyPatch) -> None:
    env.setenv("OAUTH_CLIENT_AUTH_METHOD", "private_key_jwt")

    with pytest.raises(RuntimeError, match="Invalid configuration"):
        config.load_settings()


def test_client_secret_not_in_repr() -> None:
    settings = IdentityProviderSettings(
        token_uri="https://idp.example.com/token",
        client_id="svc",
        client_secret="do-not-print",
    )

    assert "do-not-print" not in repr(settings)


def test_base_url_requires_http_scheme() -> None:
    with pytest.raises(ValidationError):
        DownstreamSettings(base_url="ftp://controller.example.com")


def test_env_int_invalid_value_returns_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TEST_INT_INVALID", "not_a_number")
    assert config._env_int("TEST_INT_INVALID", 42) == 42


def test_env_float_uses_default_for_blank(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TEST_FLOAT_VALUE", "")
    assert config._env_float("TEST_FLOAT_VALUE", 1.5) == 1.5


def test_env_bool(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TEST_BOOL_VALUE", "Yes")
    assert config._env_bool("TEST_BOOL_VALUE", False) is True
    monkeypatch.setenv("TEST_BOOL_VALUE", "off")
    assert config._env_bool("TEST_BOOL_VALUE", True) is False
    monkeypatch.delenv("TEST_BOOL_VALUE")
    assert config._env_bool("TEST_BOOL_VALUE", True) is True


def test_resolve_relative_path_against_project_root() -> None:
    root = config._project_root().resolve()
    assert config._resolve_path("logs/audit.log") == str(root / "logs" / "audit.log")
