"""Correlation context shared by HTTP requests and consumed messages.

A correlation ID is stored in a ContextVar and bound into structlog's
context so every log line emitted while handling one request (or one
stream message) carries it.
"""

from __future__ import annotations

import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterator, Optional

import structlog

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")


def bind_correlation_id(cid: Optional[str] = None, **extra: Any) -> str:
    """Start a fresh log context for one unit of work and return its ID."""
    cid = cid or str(uuid.uuid4())
    correlation_id_var.set(cid)
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(correlation_id=cid, **extra)
    return cid


@contextmanager
def correlation_scope(cid: Optional[str] = None, **extra: Any) -> Iterator[str]:
    """Bind a correlation ID for the duration of the ``with`` block."""
    bound = bind_correlation_id(cid, **extra)
    try:
        yield bound
    finally:
        correlation_id_var.set("")
        structlog.contextvars.clear_contextvars()
