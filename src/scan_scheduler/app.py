"""Application context assembly."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from scan_scheduler.audit.emitter import AuditEmitter, AuditSink
from scan_scheduler.config import Settings, load_settings
from scan_scheduler.credentials.client_credentials import ClientCredentialsTokenProvider
from scan_scheduler.downstream.client import build_controller_app_client
from scan_scheduler.downstream.repository import ControllerAppRepository
from scan_scheduler.scheduler.jobs import ScanJobs
from scan_scheduler.scheduler.runner import JobScheduler
from scan_scheduler.scheduler.schedule_config import load_schedule_config

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Process-wide dependency container.

    Owns the token provider, the ControllerApp client and the scheduler.
    ``aclose()`` stops the jobs and releases every HTTP connection.
    """

    settings: Settings
    token_provider: ClientCredentialsTokenProvider
    http_client: httpx.AsyncClient
    audit: AuditEmitter
    repository: ControllerAppRepository
    scheduler: JobScheduler
    scan_jobs: ScanJobs

    async def aclose(self) -> None:
        await self.scheduler.stop()
        await self.http_client.aclose()
        await self.token_provider.aclose()


def create_app_context(
    settings: Settings | None = None,
    *,
    identity_http_client: httpx.AsyncClient | None = None,
    downstream_transport: httpx.AsyncBaseTransport | None = None,
    audit_sink: AuditSink | None = None,
) -> AppContext:
    """Wire every component. The keyword arguments replace network I/O in tests."""
    settings = settings or load_settings()

    token_provider = ClientCredentialsTokenProvider(
        settings.identity_provider,
        http_client=identity_http_client,
    )
    http_client = build_controller_app_client(
        settings.downstream,
        token_provider,
        transport=downstream_transport,
    )
    audit = AuditEmitter(
        settings.audit.service_name,
        sink=audit_sink,
        enabled=settings.audit.enabled,
    )
    repository = ControllerAppRepository(http_client, audit)
    scheduler = JobScheduler(audit)
    scan_jobs = ScanJobs(repository, scheduler, settings.scheduler)

    overrides = None
    if settings.scheduler.jobs_config_path:
        logger.info("Loading schedule config from: %s", settings.scheduler.jobs_config_path)
        overrides = load_schedule_config(settings.scheduler.jobs_config_path)
    registered = scan_jobs.register(overrides)
    logger.info("Registered jobs: %s", ", ".join(registered) or "<none>")

    return AppContext(
        settings=settings,
        token_provider=token_provider,
        http_client=http_client,
        audit=audit,
        repository=repository,
        scheduler=scheduler,
        scan_jobs=scan_jobs,
    )
