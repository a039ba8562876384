"""
core/trace.py -- Trace id generation and propagation for log correlation.

The HTTP middleware in api/main.py accepts an inbound X-Trace-Id header (or
generates a uuid4), then stores it in a ContextVar. ContextVar is async-safe:
each request task sees its own value, and asyncio.to_thread() copies the
context into the worker thread, so bcrypt work logs with the right id too.

TraceIdFilter copies the current id onto every LogRecord so the log format
can include %(trace_id)s without each call site passing it.

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

from __future__ import annotations

import logging
import uuid
from contextvars import ContextVar

TRACE_ID_HEADER = "X-Trace-Id"

trace_id_var: ContextVar[str] = ContextVar("trace_id", default="")


def generate_trace_id() -> str:
    return str(uuid.uuid4())


def get_or_generate_trace_id(header_value: str | None) -> str:
    """Return the trimmed inbound trace id, or a fresh one if blank or missing."""
    if header_value and header_value.strip():
        return header_value.strip()
    return generate_trace_id()


def current_trace_id() -> str | None:
    return trace_id_var.get() or None


class TraceIdFilter(logging.Filter):
    """Inject the current trace id into log records ("-" outside a request)."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "trace_id"):
            record.trace_id = trace_id_var.get() or "-"
        return True
