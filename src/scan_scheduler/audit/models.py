"""Audit record types."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

NOT_APPLICABLE = "N/A"


class AuditStatus(str, Enum):
    STARTED = "STARTED"
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"


@dataclass(frozen=True)
class AuditEntry:
    service: str
    action: str
    subject: str
    status: AuditStatus
    timestamp: str
    correlation_id: str | None
    details: object | None = None

    def to_dict(self) -> dict[str, object]:
        """Wire layout of one audit line."""
        data: dict[str, object] = {
            "service": self.service,
            "action": self.action,
            "scanId": self.subject,
            "status": self.status.value,
            "timestamp": self.timestamp,
            "correlationId": self.correlation_id,
        }
        if self.details is not None:
            data["details"] = self.details
        return data
