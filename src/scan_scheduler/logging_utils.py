"""Logging helpers for the scan scheduler."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from scan_scheduler import correlation
from scan_scheduler.config import load_settings

AUDIT_LOGGER_NAME = "SERVICE_AUDIT"

_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(correlation_id)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

_logger = logging.getLogger(__name__)


class CorrelationIdLogFilter(logging.Filter):
    """Stamp each record with the active correlation id ("-" outside a scope)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation.current() or "-"
        return True


def _formatted_handler(handler: logging.Handler) -> logging.Handler:
    handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt=_DATE_FORMAT))
    handler.addFilter(CorrelationIdLogFilter())
    return handler


def _configure_audit_logger(audit_file: str | None) -> None:
    """Route audit entries as bare JSON lines, separate from application logs."""
    audit_logger = logging.getLogger(AUDIT_LOGGER_NAME)
    for existing in list(audit_logger.handlers):
        audit_logger.removeHandler(existing)
        existing.close()

    handler: logging.Handler = logging.StreamHandler(sys.stdout)
    if audit_file:
        try:
            Path(audit_file).parent.mkdir(parents=True, exist_ok=True)
            handler = logging.FileHandler(audit_file)
        except OSError as exc:
            _logger.warning("Failed to open audit log file %s: %s", audit_file, exc)

    handler.setFormatter(logging.Formatter("%(message)s"))
    audit_logger.addHandler(handler)
    audit_logger.setLevel(logging.INFO)
    audit_logger.propagate = False


def configure_logging() -> None:
    """Configure application and audit logging."""
    settings = load_settings()
    level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [_formatted_handler(logging.StreamHandler(sys.stderr))]

    if settings.logging.file:
        try:
            Path(settings.logging.file).parent.mkdir(parents=True, exist_ok=True)
            handlers.append(_formatted_handler(logging.FileHandler(settings.logging.file)))
        except OSError as exc:
            _logger.warning("Failed to open log file %s: %s", settings.logging.file, exc)

    logging.basicConfig(level=level, handlers=handlers, force=True)
    # httpx request lines stay at WARNING and above.
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))

    _configure_audit_logger(settings.audit.file)

