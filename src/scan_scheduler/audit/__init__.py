"""Service audit trail."""

from scan_scheduler.audit.emitter import AuditEmitter, AuditSink
from scan_scheduler.audit.models import NOT_APPLICABLE, AuditEntry, AuditStatus

__all__ = ["AuditEmitter", "AuditEntry", "AuditSink", "AuditStatus", "NOT_APPLICABLE"]
