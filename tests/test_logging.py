import logging

from opentelemetry.sdk.trace import TracerProvider

from supportdesk.core.config import Settings
from supportdesk.core.logging import SpanContextFilter, configure_logging, init_tracer, parse_otlp_headers


def _record() -> logging.LogRecord:
    return logging.LogRecord("supportdesk.test", logging.INFO, __file__, 1, "hello", None, None)


def test_parse_otlp_headers_skips_malformed_pairs():
    assert parse_otlp_headers("api-key=abc, x-team = support,broken,,=empty") == {
        "api-key": "abc",
        "x-team": "support",
    }
    assert parse_otlp_headers(None) == {}


def test_tracer_is_disabled_by_default():
    assert init_tracer(Settings(otel_enabled=False)) is None


def test_configure_logging_sets_package_level():
    logger = configure_logging(Settings(log_level="debug"))
    assert logger.name == "supportdesk"
    assert logger.level == 10


def test_span_context_filter_outside_span():
    record = _record()
    assert SpanContextFilter().filter(record) is True
    assert record.trace_id == "-"
    assert record.span_id == "-"


def test_span_context_filter_stamps_active_span():
    tracer = TracerProvider().get_tracer("supportdesk.test")
    with tracer.start_as_current_span("users.delete_cascading_unassign") as span:
        record = _record()
        SpanContextFilter().filter(record)
        expected = span.get_span_context()

    assert record.trace_id == format(expected.trace_id, "032x")
    assert record.span_id == format(expected.span_id, "016x")
    assert logging.Formatter(Settings().log_format).format(record).endswith(f"[trace={record.trace_id}] hello")
