"""Structured audit trail for service-to-service calls.

Every entry is one JSON object on one line, tagged with the active
correlation id. Auditing is best-effort: an entry that cannot be serialized
or written is reported on the application log and dropped.
"""

from __future__ import annotations

import json
import logging
from typing import Callable

from scan_scheduler import correlation
from scan_scheduler.audit.models import AuditEntry, AuditStatus
from scan_scheduler.errors import AuditSinkError
from scan_scheduler.logging_utils import AUDIT_LOGGER_NAME
from scan_scheduler.utils.time import utc_now_iso

logger = logging.getLogger(__name__)

AuditSink = Callable[[str], None]


class AuditEmitter:
    def __init__(
        self,
        service_name: str,
        sink: AuditSink | None = None,
        enabled: bool = True,
    ) -> None:
        self.service_name = service_name
        self.enabled = enabled
        self._sink = sink or logging.getLogger(AUDIT_LOGGER_NAME).info

    def log_action(
        self,
        action: str,
        subject: str,
        status: AuditStatus,
        details: object | None = None,
    ) -> AuditEntry | None:
        """Write one audit entry. Returns it, or None if nothing was written."""
        if not self.enabled:
            return None

        entry = AuditEntry(
            service=self.service_name,
            action=action,
            subject=subject,
            status=status,
            timestamp=utc_now_iso(),
            correlation_id=correlation.current(),
            details=details,
        )
        try:
            self._sink(json.dumps(entry.to_dict(), ensure_ascii=False))
        except Exception as exc:
            error = AuditSinkError(f"Failed to write audit entry: {exc}")
            logger.error(
                "Dropping audit entry action=%s subject=%s status=%s: %s",
                action,
                subject,
                status.value,
                error,
                exc_info=exc,
            )
            return None
        return entry

    def log_start(self, action: str, subject: str) -> AuditEntry | None:
        return self.log_action(action, subject, AuditStatus.STARTED)

    def log_success(
        self, action: str, subject: str, details: object | None = None
    ) -> AuditEntry | None:
        return self.log_action(action, subject, AuditStatus.SUCCESS, details)

    def log_failure(self, action: str, subject: str, error_message: str) -> AuditEntry | None:
        return self.log_action(action, subject, AuditStatus.FAILURE, error_message)
