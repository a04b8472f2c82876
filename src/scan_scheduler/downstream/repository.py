"""Typed access to ControllerApp internal endpoints.

The bearer token and correlation header are added by the client's transport;
this module only decides method, path and parameters, and records one
``STARTED`` plus exactly one terminal audit entry per call. Response bodies
are returned unparsed.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any
from urllib.parse import quote

import httpx

from scan_scheduler.audit.emitter import AuditEmitter
from scan_scheduler.audit.models import NOT_APPLICABLE
from scan_scheduler.errors import DownstreamError, ScanSchedulerError, TransportError

logger = logging.getLogger(__name__)

_BASE_PATH = "/controller/internal"


class ControllerAppRepository:
    def __init__(self, client: httpx.AsyncClient, audit: AuditEmitter) -> None:
        self._client = client
        self._audit = audit

    async def get_recently_completed_scans(
        self,
        from_date: str,
        to_date: str,
        completed_within_days: int,
        scan_limit: int,
    ) -> str:
        return await self._call(
            "GET_RECENTLY_COMPLETED_SCANS",
            NOT_APPLICABLE,
            "GET",
            f"{_BASE_PATH}/scans/recently-completed",
            params={
                "withinDays": str(completed_within_days),
                "scanLimit": str(scan_limit),
                "fromDate": from_date,
                "toDate": to_date,
            },
        )

    async def get_active_scan_cycle_by_id(self, scan_cycle_id: int) -> str:
        return await self._call(
            "GET_ACTIVE_SCAN_CYCLE",
            str(scan_cycle_id),
            "GET",
            f"{_BASE_PATH}/scan-cycles/active/{scan_cycle_id}",
        )

    async def get_scan_cycle_by_id(self, scan_cycle_id: int) -> str:
        return await self._call(
            "GET_SCAN_CYCLE",
            str(scan_cycle_id),
            "GET",
            f"{_BASE_PATH}/scan-cycles/{scan_cycle_id}",
        )

    async def get_scan_cycle_by_data_target_name(self, name: str) -> str:
        return await self._call(
            "GET_SCAN_CYCLE_BY_NAME",
            name,
            "GET",
            f"{_BASE_PATH}/scan-cycles/data-target/{quote(name, safe='')}",
        )

    async def get_scans_by_status(self, status: str) -> str:
        return await self._call(
            "GET_SCANS_BY_STATUS",
            status,
            "GET",
            f"{_BASE_PATH}/scans/status",
            params={"status": status},
        )

    async def launch_scan_cycle(self, scan_cycle_id: int) -> str:
        """Launch a scan cycle. Idempotence is ControllerApp's concern."""
        body = await self._call(
            "LAUNCH_SCAN",
            str(scan_cycle_id),
            "POST",
            f"{_BASE_PATH}/scheduler/launch-scan/{scan_cycle_id}",
            success_summary="Scan launched via scheduler",
        )
        logger.info("Scan cycle %s launched successfully. Response: %s", scan_cycle_id, body)
        return body

    async def _call(
        self,
        action: str,
        subject: str,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        success_summary: str | None = None,
    ) -> str:
        self._audit.log_start(action, subject)

        try:
            response = await self._client.request(method, path, params=params)
        except asyncio.CancelledError:
            logger.warning("Call to ControllerApp %s cancelled", action)
            self._audit.log_failure(action, subject, "cancelled")
            raise
        except ScanSchedulerError as exc:
            # AuthUnavailable: the request was never dispatched.
            logger.error("Error calling ControllerApp %s: %s (%s)", action, exc, exc.code)
            self._audit.log_failure(action, subject, str(exc))
            raise
        except httpx.HTTPError as exc:
            error = TransportError(
                f"{type(exc).__name__} calling {method} {path}: {exc}",
                code="timeout" if isinstance(exc, httpx.TimeoutException) else "transport_error",
            )
            logger.error("Error calling ControllerApp %s: %s", action, error)
            self._audit.log_failure(action, subject, str(error))
            raise error from exc
        except Exception as exc:
            logger.exception("Unexpected error calling ControllerApp %s", action)
            self._audit.log_failure(action, subject, f"{type(exc).__name__}: {exc}")
            raise

        if not response.is_success:
            error = DownstreamError(
                response.status_code,
                response.text,
                message=f"{response.status_code} {response.reason_phrase} from {method} {path}",
            )
            logger.error(
                "Error calling ControllerApp: %s - %s", response.status_code, response.text
            )
            self._audit.log_failure(action, subject, f"{error}: {response.text}")
            raise error

        logger.debug("Response Returned -> %s", response.text)
        details = f"HTTP {response.status_code}"
        if success_summary:
            details = f"{success_summary} ({details})"
        self._audit.log_success(action, subject, details)
        return response.text
