"""Entrypoint for the scan scheduler."""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

if __package__ in (None, ""):
    sys.path.insert(0, str(Path(__file__).resolve().parents[1]))  # pragma: no cover

from scan_scheduler import __version__
from scan_scheduler.app import create_app_context
from scan_scheduler.config import Settings, load_settings
from scan_scheduler.logging_utils import configure_logging

logger = logging.getLogger(__name__)


def run_entrypoint() -> None:
    """Run with the HTTP server, or as a bare scheduler process."""
    settings = load_settings()
    configure_logging()
    logger.info("Starting scan scheduler v%s", __version__)

    if settings.server.enabled:
        _run_http(settings)
        return
    asyncio.run(run_scheduler(settings))


async def run_scheduler(settings: Settings, stop_event: asyncio.Event | None = None) -> None:
    """Run the scheduled jobs until ``stop_event`` is set or the task is cancelled."""
    ctx = create_app_context(settings)
    if not settings.scheduler.enabled:
        logger.warning("SCHEDULER_ENABLED is false and the HTTP server is disabled; exiting")
        await ctx.aclose()
        return

    stop_event = stop_event or asyncio.Event()
    ctx.scheduler.start()
    try:
        await stop_event.wait()
    finally:
        await ctx.aclose()


def _run_http(settings: Settings) -> None:
    from scan_scheduler.transport.http_server import create_http_app

    try:
        import uvicorn
    except ImportError as exc:
        raise RuntimeError("uvicorn is required when HTTP_SERVER_ENABLED is true") from exc

    app = create_http_app(create_app_context(settings))
    uvicorn.run(
        app,
        host=settings.server.host,
        port=settings.server.port,
        ws="none",
        log_config=None,
    )


if __name__ == "__main__":  # pragma: no cover
    run_entrypoint()
