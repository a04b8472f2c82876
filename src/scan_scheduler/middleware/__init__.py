"""Inbound HTTP middleware."""

from .correlation import CorrelationIdMiddleware

__all__ = ["CorrelationIdMiddleware"]
