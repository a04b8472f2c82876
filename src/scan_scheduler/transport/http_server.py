"""Starlette HTTP server: health probes and manual job triggers."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from scan_scheduler import correlation
from scan_scheduler.app import AppContext, create_app_context
from scan_scheduler.middleware.correlation import CorrelationIdMiddleware

logger = logging.getLogger(__name__)


def create_http_app(context: AppContext | None = None) -> Starlette:
    """Create the HTTP application around an application context.

    The lifespan starts the scheduler (when enabled) and closes the context on
    shutdown.
    """
    ctx = context or create_app_context()

    async def health_handler(request: Request) -> Response:
        return JSONResponse({"status": "healthy"})

    async def ready_handler(request: Request) -> Response:
        return JSONResponse({"status": "ready", "schedulerRunning": ctx.scheduler.running})

    async def list_jobs_handler(request: Request) -> Response:
        return JSONResponse(
            {
                "jobs": {
                    name: ctx.scheduler.status(name).to_dict()
                    for name in ctx.scheduler.job_names()
                }
            }
        )

    async def run_job_handler(request: Request) -> Response:
        name = request.path_params["name"]
        if name not in ctx.scheduler.job_names():
            return JSONResponse({"error": f"Unknown job: {name}"}, status_code=404)

        logger.info("Manual run of job %s requested", name)
        succeeded = await ctx.scheduler.run_job(name, correlation_id=correlation.current())
        return JSONResponse(
            {
                "job": name,
                "succeeded": succeeded,
                "correlationId": correlation.current(),
            },
            status_code=200 if succeeded else 502,
        )

    async def launch_scan_handler(request: Request) -> Response:
        scan_cycle_id: int = request.path_params["scan_cycle_id"]
        succeeded = await ctx.scan_jobs.launch_scan_manually(
            scan_cycle_id,
            correlation_id=correlation.current(),
        )
        return JSONResponse(
            {
                "scanCycleId": scan_cycle_id,
                "succeeded": succeeded,
                "correlationId": correlation.current(),
            },
            status_code=200 if succeeded else 502,
        )

    routes = [
        Route("/health", endpoint=health_handler, methods=["GET"]),
        Route("/ready", endpoint=ready_handler, methods=["GET"]),
        Route("/jobs", endpoint=list_jobs_handler, methods=["GET"]),
        Route("/jobs/{name}/run", endpoint=run_job_handler, methods=["POST"]),
        Route(
            "/scans/{scan_cycle_id:int}/launch",
            endpoint=launch_scan_handler,
            methods=["POST"],
        ),
    ]

    @asynccontextmanager
    async def lifespan(app: Starlette):
        if ctx.settings.scheduler.enabled:
            ctx.scheduler.start()
        else:
            logger.info("Scheduler disabled; only manual triggers are available")
        try:
            yield
        finally:
            logger.info("Shutting down HTTP server...")
            await ctx.aclose()

    app = Starlette(
        routes=routes,
        middleware=[Middleware(CorrelationIdMiddleware)],
        lifespan=lifespan,
    )
    app.state.context = ctx
    return app
