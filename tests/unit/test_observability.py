"""Unit tests for structured logging utilities in ``observability``.

Validates the null handler, trace binding, and event construction behaviour
downstream consumers rely on.
"""

from __future__ import annotations

import logging

import pytest

from lib_dynamic_config import bind_trace_id, get_logger
from lib_dynamic_config.observability import TRACE_ID, log_info, log_warning, make_event


def test_null_handler_present() -> None:
    """Package logger should always include a NullHandler to avoid surprises."""

    logger = get_logger()
    assert logger.name == "lib_dynamic_config"
    assert any(isinstance(handler, logging.NullHandler) for handler in logger.handlers)


def test_trace_id_in_log(caplog: pytest.LogCaptureFixture) -> None:
    """Structured logs should include the bound trace identifier and contextual fields."""

    caplog.set_level(logging.INFO, logger="lib_dynamic_config")
    bind_trace_id("trace-123")
    try:
        log_info("values_saved", item=None, keys=2)
    finally:
        bind_trace_id(None)
    record = caplog.records[-1]
    assert record.getMessage() == "values_saved"
    assert getattr(record, "context") == {"trace_id": "trace-123", "item": None, "keys": 2}


def test_warning_level_is_preserved(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.WARNING, logger="lib_dynamic_config")
    log_warning("configure_error", key="name")
    assert caplog.records[-1].levelno == logging.WARNING


def test_bind_trace_id_clears_context() -> None:
    """Clearing the trace ID should reset the context variable to None."""

    bind_trace_id("trace-temp")
    bind_trace_id(None)
    assert TRACE_ID.get() is None


def test_make_event_merges_optional_payload() -> None:
    """make_event should merge optional metadata without mutating base keys."""

    event = make_event("page_size", "params.page_size", {"cached": True})
    assert event == {"item": "page_size", "path": "params.page_size", "cached": True}


def test_make_event_without_payload() -> None:
    assert make_event(None, None) == {"item": None, "path": None}
