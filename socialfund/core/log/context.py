"""Per-thread log context such as the task id and owner of a calculation job."""
from __future__ import annotations

import contextvars
import logging
from contextlib import contextmanager
from typing import Iterator, Mapping

_context_var: contextvars.ContextVar[Mapping[str, object]] = contextvars.ContextVar(
    "socialfund_log_context", default={}
)


class LogContext:
    """Bind key/value pairs that prefix every record logged inside a block."""

    def as_dict(self) -> dict[str, object]:
        return dict(_context_var.get())

    @contextmanager
    def scope(self, **values: object) -> Iterator[None]:
        merged = {**_context_var.get(), **{k: v for k, v in values.items() if v is not None}}
        token = _context_var.set(merged)
        try:
            yield
        finally:
            _context_var.reset(token)


def format_context(values: Mapping[str, object]) -> str:
    """Render ``{"task_id": "t1"}`` as ``"[task_id=t1] "``; empty input gives ``""``."""

    if not values:
        return ""
    return "[" + " ".join(f"{key}={value}" for key, value in values.items()) + "] "


class ContextFilter(logging.Filter):
    """Attach the rendered context to records as ``record.context``."""

    def filter(self, record: logging.LogRecord) -> bool:
        # Set once on the emitting thread; the queue listener must not overwrite it.
        if not hasattr(record, "context"):
            record.context = format_context(_context_var.get())
        return True


log_context = LogContext()
