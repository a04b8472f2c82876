"""Correlation id scoping for one unit of work.

The active id lives in a ``ContextVar``. asyncio copies the context into each
task, so concurrently scheduled jobs never observe each other's id.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass

logger = logging.getLogger(__name__)

CORRELATION_ID_HEADER = "X-Correlation-ID"

_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)


@dataclass(frozen=True)
class CorrelationScope:
    correlation_id: str
    generated: bool


def new_correlation_id() -> str:
    return str(uuid.uuid4())


def current() -> str | None:
    """Return the active correlation id, or None outside any scope."""
    return _correlation_id.get()


@contextmanager
def begin(existing: str | None = None) -> Iterator[CorrelationScope]:
    """Open a correlation scope, reusing ``existing`` when it is non-empty.

    The previous value is restored on exit, including when the body raises.
    """
    if existing:
        scope = CorrelationScope(correlation_id=existing, generated=False)
        logger.debug("Using existing correlation ID: %s", existing)
    else:
        scope = CorrelationScope(correlation_id=new_correlation_id(), generated=True)
        logger.debug("Generated new correlation ID: %s", scope.correlation_id)

    token = _correlation_id.set(scope.correlation_id)
    try:
        yield scope
    finally:
        _correlation_id.reset(token)
