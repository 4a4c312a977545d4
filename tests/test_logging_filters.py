"""Tests for sensitive data filtering in logs."""

from __future__ import annotations

import json
import logging
from io import StringIO

import pytest

from ratewindow.core.logging import (
    JsonFormatter,
    RequestIdFilter,
    SensitiveDataFilter,
    clear_request_id,
    set_request_id,
)


@pytest.fixture
def log_stream() -> tuple[logging.Logger, StringIO]:
    logger = logging.getLogger("test_ratewindow_logging")
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(RequestIdFilter())
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    return logger, stream


def test_sensitive_filter_redacts_caller_identifiers(log_stream) -> None:
    """Raw identifiers never reach the log output."""
    logger, stream = log_stream

    logger.info(
        "rate_limit.debug",
        extra={
            "identifiers": {"ip": "10.1.2.3", "username": "alice"},
            "ip": "10.1.2.3",
            "api_key": "sk-secret-123",
            "key_hash": "0123456789abcdef",
        },
    )

    output = stream.getvalue()

    assert "10.1.2.3" not in output
    assert "alice" not in output
    assert "sk-secret-123" not in output
    assert "[REDACTED]" in output
    assert "0123456789abcdef" in output


def test_sensitive_filter_redacts_nested_dicts(log_stream) -> None:
    logger, stream = log_stream

    logger.info(
        "nested_event",
        extra={
            "headers": {"x-api-key": "secret-key", "user-agent": "pytest"},
            "store": {"redis_url": "redis://:pw@cache:6379/0", "backend": "redis"},
        },
    )

    output = stream.getvalue()

    assert "secret-key" not in output
    assert "pw@cache" not in output
    assert "pytest" in output
    assert "redis" in output


def test_safe_fields_pass_through(log_stream) -> None:
    logger, stream = log_stream

    logger.warning(
        "rate_limit.exceeded",
        extra={"key_type": "ip", "limit": 10, "total": 12, "retry_after_s": 16},
    )

    record = json.loads(stream.getvalue())

    assert record["message"] == "rate_limit.exceeded"
    assert record["level"] == "warning"
    assert record["limit"] == 10
    assert record["retry_after_s"] == 16
    assert "[REDACTED]" not in stream.getvalue()


def test_request_id_attached_from_context(log_stream) -> None:
    logger, stream = log_stream

    set_request_id("req-123")
    try:
        logger.info("with_request_id")
    finally:
        clear_request_id()

    assert json.loads(stream.getvalue())["request_id"] == "req-123"
