"""Timer-driven job runner.

Each registered job gets its own asyncio task. Every invocation, timed or
manual, runs inside its own correlation scope, and any error it raises is
logged (and optionally audited) here so that one failed run never stops the
loop or affects other jobs.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable

from scan_scheduler import correlation
from scan_scheduler.audit.emitter import AuditEmitter
from scan_scheduler.audit.models import NOT_APPLICABLE
from scan_scheduler.scheduler.triggers import Trigger
from scan_scheduler.utils.time import utc_now

logger = logging.getLogger(__name__)

JobFunc = Callable[[], Awaitable[Any]]


@dataclass(frozen=True)
class ScheduledJob:
    name: str
    trigger: Trigger
    func: JobFunc
    failure_action: str | None = None
    log_level: int = logging.INFO


@dataclass
class JobRunStatus:
    runs: int = 0
    failures: int = 0
    last_started_at: datetime | None = None
    last_succeeded: bool | None = None
    last_correlation_id: str | None = None
    next_fire_time: datetime | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "runs": self.runs,
            "failures": self.failures,
            "lastStartedAt": self.last_started_at.isoformat() if self.last_started_at else None,
            "lastSucceeded": self.last_succeeded,
            "lastCorrelationId": self.last_correlation_id,
            "nextFireTime": self.next_fire_time.isoformat() if self.next_fire_time else None,
        }


class JobScheduler:
    def __init__(
        self,
        audit: AuditEmitter,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._audit = audit
        self._clock = clock
        self._jobs: dict[str, ScheduledJob] = {}
        self._status: dict[str, JobRunStatus] = {}
        self._tasks: dict[str, asyncio.Task[None]] = {}

    def add_job(self, job: ScheduledJob) -> None:
        if job.name in self._jobs:
            raise ValueError(f"Job already registered: {job.name}")
        self._jobs[job.name] = job
        self._status[job.name] = JobRunStatus()

    def job_names(self) -> list[str]:
        return list(self._jobs)

    def status(self, name: str) -> JobRunStatus:
        return self._status[name]

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks.values())

    def start(self) -> None:
        """Start one timer task per job. Requires a running event loop."""
        for job in self._jobs.values():
            if job.name in self._tasks and not self._tasks[job.name].done():
                continue
            self._tasks[job.name] = asyncio.create_task(
                self._job_loop(job), name=f"scheduled-job:{job.name}"
            )
            logger.info("Scheduled job %s (%s)", job.name, job.trigger.describe())

    async def stop(self) -> None:
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        if tasks:
            logger.info("Scheduler stopped (%d jobs)", len(tasks))

    async def _job_loop(self, job: ScheduledJob) -> None:
        while True:
            fire_at = job.trigger.next_fire_time(self._clock())
            self._status[job.name].next_fire_time = fire_at
            delay = (fire_at - self._clock()).total_seconds()
            await asyncio.sleep(max(0.0, delay))
            try:
                await self.run_job(job.name)
            except Exception:
                logger.exception("Unexpected error running job %s; timer continues", job.name)

    async def run_job(self, name: str, correlation_id: str | None = None) -> bool:
        """Run a registered job now, outside its timer.

        Raises:
            KeyError: No job with that name is registered.
        """
        job = self._jobs.get(name)
        if job is None:
            raise KeyError(f"Unknown job: {name}")

        status = self._status[name]
        status.runs += 1
        correlation_id = correlation_id or correlation.new_correlation_id()
        status.last_started_at = self._clock()
        succeeded = await self.invoke(
            job.name,
            job.func,
            failure_action=job.failure_action,
            correlation_id=correlation_id,
            log_level=job.log_level,
        )
        status.last_succeeded = succeeded
        status.last_correlation_id = correlation_id
        if not succeeded:
            status.failures += 1
        return succeeded

    async def invoke(
        self,
        name: str,
        func: JobFunc,
        *,
        failure_action: str | None = None,
        failure_subject: str = NOT_APPLICABLE,
        correlation_id: str | None = None,
        log_level: int = logging.INFO,
    ) -> bool:
        """Run ``func`` as one unit of work. Returns False if it raised."""
        with correlation.begin(correlation_id) as scope:
            logger.log(
                log_level,
                "=== %s started - Correlation ID: %s ===",
                name,
                scope.correlation_id,
            )
            try:
                await func()
            except Exception as exc:
                logger.exception("Error in %s", name)
                if failure_action:
                    self._audit.log_failure(failure_action, failure_subject, str(exc))
                return False
            logger.log(log_level, "=== %s completed ===", name)
            return True
