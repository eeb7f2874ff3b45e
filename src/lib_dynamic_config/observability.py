"""Structured logging for item, manager and storage events.

Purpose
    Every diagnostic the library emits goes through one emitter that attaches
    a ``context`` dictionary (trace id plus event fields) to the log record,
    so host applications can route and index events without parsing messages.
    The library itself stays silent until the host attaches a handler.

Contents
    - ``TRACE_ID``: context variable holding the active trace identifier.
    - ``get_logger``: the shared ``lib_dynamic_config`` logger.
    - ``bind_trace_id``: set or clear the trace identifier.
    - ``log_debug`` / ``log_info`` / ``log_warning`` / ``log_error``: level
      specific entry points.
    - ``make_event``: payload builder for item lifecycle events.

System Integration
    Imported by the manager, items, configure policy, file loaders and
    storage adapters. Event names are short snake_case phrases such as
    ``config_cache_miss`` or ``values_saved``.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from typing import Any, Final, Mapping

TRACE_ID: ContextVar[str | None] = ContextVar("lib_dynamic_config_trace_id", default=None)
"""Trace identifier copied into every emitted ``context``."""

_LOGGER: Final[logging.Logger] = logging.getLogger("lib_dynamic_config")
_LOGGER.addHandler(logging.NullHandler())


def get_logger() -> logging.Logger:
    """Return the package logger for handler and level configuration.

    >>> get_logger().name
    'lib_dynamic_config'
    """

    return _LOGGER


def bind_trace_id(trace_id: str | None) -> None:
    """Bind or clear the active trace identifier.

    Examples
    --------
    >>> bind_trace_id('abc123')
    >>> TRACE_ID.get()
    'abc123'
    >>> bind_trace_id(None)
    >>> TRACE_ID.get() is None
    True
    """

    TRACE_ID.set(trace_id)


def log_debug(message: str, **fields: Any) -> None:
    """Emit a structured debug log entry that includes the trace context."""

    _emit(logging.DEBUG, message, fields)


def log_info(message: str, **fields: Any) -> None:
    """Emit a structured info log entry that includes the trace context."""

    _emit(logging.INFO, message, fields)


def log_warning(message: str, **fields: Any) -> None:
    """Emit a structured warning log entry that includes the trace context."""

    _emit(logging.WARNING, message, fields)


def log_error(message: str, **fields: Any) -> None:
    """Emit a structured error log entry that includes the trace context."""

    _emit(logging.ERROR, message, fields)


def make_event(
    item: object,
    path: str | None,
    payload: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Build a structured logging payload for item lifecycle events.

    Inputs
        item: Id of the config item being observed (``None`` for bulk events).
        path: Dotted config path associated with the event, if any.
        payload: Optional mapping with extra diagnostic detail.

    Examples
    --------
    >>> make_event('appName', 'name', {'cached': True})
    {'item': 'appName', 'path': 'name', 'cached': True}
    """

    event: dict[str, Any] = {"item": item, "path": path}
    if payload:
        event |= dict(payload)
    return event


def _emit(level: int, message: str, fields: Mapping[str, Any]) -> None:
    """Send a log entry through the shared logger with contextual metadata."""

    _LOGGER.log(level, message, extra={"context": _with_trace(fields)})


def _with_trace(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Attach the current trace identifier to the provided structured fields."""

    context = {"trace_id": TRACE_ID.get()}
    context.update(fields)
    return context
