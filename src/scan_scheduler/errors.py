"""Error taxonomy shared by the token provider, interceptor and repository."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    AUTH_UNAVAILABLE = "auth_unavailable"
    DOWNSTREAM = "downstream"
    TRANSPORT = "transport"
    AUDIT_SINK = "audit_sink"


class ScanSchedulerError(Exception):
    """Base error. ``kind`` lets callers branch without inspecting httpx types."""

    kind: ErrorKind

    def __init__(self, message: str, code: str) -> None:
        super().__init__(message)
        self.code = code


class AuthUnavailable(ScanSchedulerError):
    """Identity provider unreachable or rejected the client-credentials request."""

    kind = ErrorKind.AUTH_UNAVAILABLE

    def __init__(
        self,
        message: str,
        code: str = "auth_unavailable",
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, code)
        self.status_code = status_code


class DownstreamError(ScanSchedulerError):
    """Downstream call returned a non-success status."""

    kind = ErrorKind.DOWNSTREAM

    def __init__(self, status_code: int, body: str, message: str | None = None) -> None:
        if 400 <= status_code < 500:
            code = "client_error"
        elif status_code >= 500:
            code = "server_error"
        else:
            code = "unexpected_status"
        super().__init__(message or f"Downstream returned HTTP {status_code}", code)
        self.status_code = status_code
        self.body = body

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status_code < 500

    @property
    def is_server_error(self) -> bool:
        return self.status_code >= 500


class TransportError(ScanSchedulerError):
    """Network-level failure: timeout, refused connection, protocol error."""

    kind = ErrorKind.TRANSPORT

    def __init__(self, message: str, code: str = "transport_error") -> None:
        super().__init__(message, code)


class AuditSinkError(ScanSchedulerError):
    """Audit entry could not be serialized or written. Never surfaced to callers."""

    kind = ErrorKind.AUDIT_SINK

    def __init__(self, message: str, code: str = "audit_sink_error") -> None:
        super().__init__(message, code)
