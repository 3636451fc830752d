"""Tests for structured logging, metrics hooks and payload redaction."""

from __future__ import annotations

import io
import json
import logging

from notionkit.observability import (
    MetricsHook,
    NoopMetricsHook,
    StructuredFormatter,
    get_logger,
    log_fields,
)
from notionkit.utils.redact import redact


def _get_record(msg: str = "hello", level: int = logging.INFO, **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="notionkit.test",
        level=level,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


# ---------------------------------------------------------------------------
# StructuredFormatter
# ---------------------------------------------------------------------------


class TestStructuredFormatter:
    def test_required_keys(self):
        entry = json.loads(StructuredFormatter().format(_get_record()))
        assert entry["level"] == "INFO"
        assert entry["logger"] == "notionkit.test"
        assert entry["message"] == "hello"
        assert entry["ts"].endswith("+00:00")

    def test_extra_fields_merged(self):
        record = _get_record(extra_fields={"op": "request", "attempt": 2})
        entry = json.loads(StructuredFormatter().format(record))
        assert entry["op"] == "request"
        assert entry["attempt"] == 2

    def test_reserved_keys_not_overridden(self):
        record = _get_record(extra_fields={"message": "spoofed", "level": "X"})
        entry = json.loads(StructuredFormatter().format(record))
        assert entry["message"] == "hello"
        assert entry["level"] == "INFO"

    def test_exception_included(self):
        try:
            raise ValueError("boom")
        except ValueError:
            import sys

            record = _get_record(level=logging.ERROR)
            record.exc_info = sys.exc_info()
        entry = json.loads(StructuredFormatter().format(record))
        assert "ValueError: boom" in entry["exception"]

    def test_non_json_values_stringified(self):
        record = _get_record(extra_fields={"obj": object()})
        entry = json.loads(StructuredFormatter().format(record))
        assert entry["obj"].startswith("<object object")

    def test_log_fields_shape(self):
        assert log_fields(a=1) == {"extra_fields": {"a": 1}}


class TestGetLogger:
    def test_writes_json_lines(self):
        stream = io.StringIO()
        log = get_logger("notionkit.test_writes_json", stream=stream)
        log.warning("Retrying request", extra=log_fields(attempt=1))
        entry = json.loads(stream.getvalue().strip())
        assert entry["message"] == "Retrying request"
        assert entry["attempt"] == 1

    def test_handler_attached_once(self):
        name = "notionkit.test_once"
        get_logger(name)
        log = get_logger(name)
        assert len(log.handlers) == 1
        assert log.propagate is False

    def test_string_level(self):
        log = get_logger("notionkit.test_level", level="warning")
        assert log.level == logging.WARNING


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------


class TestMetricsHook:
    def test_noop_satisfies_protocol(self):
        hook = NoopMetricsHook()
        assert isinstance(hook, MetricsHook)
        hook.increment("notionkit.requests_total", tags={"status": "200"})
        hook.timing("notionkit.request_duration_ms", 1.5)
        hook.gauge("notionkit.rate_limit_remaining", 10)

    def test_custom_hook_satisfies_protocol(self):
        class _Hook:
            def increment(self, name, value=1, tags=None): ...
            def timing(self, name, ms, tags=None): ...
            def gauge(self, name, value, tags=None): ...

        assert isinstance(_Hook(), MetricsHook)

    def test_incomplete_hook_rejected(self):
        class _Partial:
            def increment(self, name, value=1, tags=None): ...

        assert not isinstance(_Partial(), MetricsHook)


# ---------------------------------------------------------------------------
# Redaction
# ---------------------------------------------------------------------------


class TestRedact:
    def test_authorization_header(self):
        assert redact({"Authorization": "Bearer secret_abc123"}) == {
            "Authorization": "Bearer <redacted>",
        }

    def test_bearer_masked_under_any_key_without_token(self):
        payload = {"note": "sent Bearer abc.def", "items": ["Bearer xyz"]}
        assert redact(payload) == {
            "note": "sent Bearer <redacted>",
            "items": ["Bearer <redacted>"],
        }

    def test_sensitive_key_without_token(self):
        assert redact({"api_key": "plain-value"}) == {"api_key": "<redacted>"}

    def test_non_string_sensitive_value(self):
        assert redact({"password": 1234}) == {"password": "<redacted>"}

    def test_token_masked_in_nested_values(self):
        token = "secret_abcdefgh"
        payload = {"a": {"b": [f"prefix {token} suffix"]}}
        result = redact(payload, token)
        assert result == {"a": {"b": ["prefix <redacted:...efgh> suffix"]}}

    def test_bytes_replaced(self):
        assert redact({"blob": b"\x00\x01\x02"}) == {"blob": "<binary:3_bytes>"}

    def test_input_not_mutated(self):
        payload = {"token": "abc", "nested": {"x": "y"}}
        redact(payload, "abc")
        assert payload == {"token": "abc", "nested": {"x": "y"}}

    def test_plain_values_untouched(self):
        payload = {"title": "Roadmap", "count": 3, "done": False, "missing": None}
        assert redact(payload) == payload
