"""Outbound and inbound HTTP plumbing."""

from scan_scheduler.transport.interceptor import AuthenticatedTransport, TokenSource

__all__ = ["AuthenticatedTransport", "TokenSource"]
