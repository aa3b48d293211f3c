"""
Unit Tests - Logging and Metrics
"""

import io
import json

import pytest

from toolgate.core.exceptions import ConfigurationError
from toolgate.observability.logging import (
    BufferHandler,
    ConsoleHandler,
    LogLevel,
    StructuredLogger,
    configure_logging,
    get_logger,
)
from toolgate.observability.metrics import Counter, Gauge, Histogram, MetricsCollector


class TestStructuredLogger:
    """Tests for StructuredLogger."""

    def test_level_filtering(self):
        buffer = BufferHandler()
        logger = StructuredLogger("t", level=LogLevel.WARNING, handlers=[buffer])

        logger.info("quiet")
        logger.warning("loud")

        assert buffer.messages() == ["loud"]

    def test_context_enrichment(self):
        buffer = BufferHandler()
        logger = StructuredLogger("t", level=LogLevel.DEBUG, handlers=[buffer])

        with logger.context(request_id="req_1", tool="echo", user_id="u1"):
            logger.info("inside", attempt=2)
        logger.info("outside")

        inside, outside = buffer.records
        assert inside.request_id == "req_1"
        assert inside.tool == "echo"
        assert inside.user_id == "u1"
        assert inside.data == {"attempt": 2}
        assert outside.request_id is None

    def test_error_details(self):
        buffer = BufferHandler()
        logger = StructuredLogger("t", handlers=[buffer])

        try:
            raise RuntimeError("boom")
        except RuntimeError as e:
            logger.error("failed", error=e)

        record = buffer.records[0]
        assert record.error == "boom"
        assert record.error_type == "RuntimeError"
        assert "RuntimeError" in record.stack_trace

    def test_json_console_output(self):
        stream = io.StringIO()
        logger = StructuredLogger("t", handlers=[ConsoleHandler(stream=stream)])

        logger.info("hello", tool_count=3)

        payload = json.loads(stream.getvalue())
        assert payload["message"] == "hello"
        assert payload["level"] == "INFO"
        assert payload["data"] == {"tool_count": 3}

    def test_text_console_output(self):
        stream = io.StringIO()
        logger = StructuredLogger("t", handlers=[ConsoleHandler(stream=stream, json_output=False)])

        logger.warning("careful")

        assert "WARNING" in stream.getvalue()
        assert "careful" in stream.getvalue()

    def test_broken_handler_is_ignored(self):
        class Broken(BufferHandler):
            def handle(self, record):
                raise OSError("disk full")

        buffer = BufferHandler()
        logger = StructuredLogger("t", handlers=[Broken(), buffer])

        logger.info("still logged")

        assert buffer.messages() == ["still logged"]

    def test_child_shares_handlers(self):
        buffer = BufferHandler()
        parent = StructuredLogger("toolgate", handlers=[buffer])

        parent.child("registry").info("hi")

        assert buffer.records[0].logger_name == "toolgate.registry"

    def test_configure_logging_sets_defaults(self):
        buffer = BufferHandler()
        try:
            configure_logging("debug", handlers=[buffer])
            get_logger("x").debug("visible")
            assert buffer.messages() == ["visible"]
        finally:
            configure_logging(LogLevel.INFO, handlers=[ConsoleHandler()])

    def test_configure_logging_rejects_unknown_level(self):
        with pytest.raises(ConfigurationError):
            configure_logging("verbose")


class TestMetrics:
    """Tests for metric types and the collector."""

    def test_counter(self):
        counter = Counter("calls", labels=["tool"])
        counter.inc(tool="a")
        counter.inc(2, tool="a")

        assert counter.get(tool="a") == 3
        assert counter.get(tool="b") == 0

        with pytest.raises(ValueError):
            counter.inc(-1, tool="a")

    def test_gauge(self):
        gauge = Gauge("in_flight")
        gauge.inc()
        gauge.inc()
        gauge.dec()

        assert gauge.get() == 1

    def test_histogram_buckets(self):
        histogram = Histogram("latency", buckets=(0.1, 1.0, float("inf")))
        histogram.observe(0.05)
        histogram.observe(0.5)
        histogram.observe(5)

        assert histogram.get_count() == 3
        assert histogram.get_sum() == pytest.approx(5.55)

        buckets = [v.value for v in histogram.collect() if v.suffix == "_bucket"]
        assert buckets == [1, 2, 3]

    def test_collector_registers_tool_metrics(self):
        collector = MetricsCollector()

        assert collector.counter("tool_invocations_total") is not None
        assert collector.histogram("tool_duration_seconds") is not None
        assert collector.gauge("tool_executions_in_flight") is not None
        assert collector.counter("tool_detached_effects_total") is not None
        assert collector.gauge("tool_invocations_total") is None

    def test_prometheus_export(self):
        collector = MetricsCollector()
        collector.counter("tool_invocations_total").inc(tool="echo", status="success")

        text = collector.to_prometheus()

        assert "# TYPE toolgate_tool_invocations_total counter" in text
        assert 'toolgate_tool_invocations_total{status="success",tool="echo"} 1.0' in text
