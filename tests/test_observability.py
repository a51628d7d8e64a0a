"""
Tests for SDK logging, metrics and tracing.
"""

import logging
from unittest.mock import MagicMock

import pytest
import structlog
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import StatusCode
from prometheus_client import REGISTRY
from structlog.testing import capture_logs

from apprien.observability import get_logger, log_context, metrics, setup_logging, tracing
from apprien.observability.logging import SDK_LOGGER_NAME, add_sdk_context
from apprien.services.backend_connection import ApprienBackendConnection
from apprien.services.price_manager import ApprienManager
from tests.fakes import FakeTransport, http_error, network_error, success


def sample(name: str, labels: dict[str, str] | None = None) -> float:
    return REGISTRY.get_sample_value(name, labels or {}) or 0.0


class TestLogging:
    """Tests for structured logging helpers."""

    def test_add_sdk_context(self):
        """Every entry carries the SDK name and version."""
        event_dict = add_sdk_context(None, "info", {"event": "x"})
        assert event_dict["service"] == "apprien-sdk"
        assert event_dict["version"] == "0.1.0"

    def test_log_context_binds_and_unbinds(self):
        """Context is visible inside the block only."""
        with log_context(package_name="com.example.game", store="google"):
            bound = structlog.contextvars.get_contextvars()
            assert bound["package_name"] == "com.example.game"
            assert bound["store"] == "google"

        assert "package_name" not in structlog.contextvars.get_contextvars()

    def test_setup_logging_leaves_root_logger_alone(self, monkeypatch: pytest.MonkeyPatch):
        """Only the SDK logger gets a handler, once."""
        root_handlers = list(logging.getLogger().handlers)
        sdk_logger = logging.getLogger(SDK_LOGGER_NAME)
        monkeypatch.setattr(sdk_logger, "handlers", [])
        monkeypatch.setattr(sdk_logger, "propagate", True)
        monkeypatch.setattr(sdk_logger, "level", sdk_logger.level)

        setup_logging()
        setup_logging()
        assert structlog.is_configured()
        structlog.reset_defaults()

        assert logging.getLogger().handlers == root_handlers
        assert len(sdk_logger.handlers) == 1
        assert sdk_logger.propagate is False

    def test_get_logger_emits_events(self):
        with capture_logs() as logs:
            get_logger("apprien.test").info("apprien_test_event", count=3)

        assert logs == [{"event": "apprien_test_event", "count": 3, "log_level": "info"}]

    @pytest.mark.asyncio
    async def test_request_failure_is_logged(
        self, backend: ApprienBackendConnection, transport: FakeTransport
    ):
        """Failed requests log an error event with the operation name."""
        transport.queue(http_error(500))

        with capture_logs() as logs:
            await backend.fetch_prices()

        failed = [entry for entry in logs if entry["event"] == "apprien_request_failed"]
        assert failed[0]["operation"] == "fetch_prices"
        assert failed[0]["status"] == 500
        assert failed[0]["log_level"] == "error"


class TestMetrics:
    """Tests for SDK metrics."""

    def test_sdk_info(self):
        labels = {"version": "0.1.0", "service_name": "apprien-sdk"}
        assert REGISTRY.get_sample_value("apprien_sdk_info", labels) == 1.0

    @pytest.mark.asyncio
    async def test_request_outcomes_counted(
        self, backend: ApprienBackendConnection, transport: FakeTransport
    ):
        """Requests are counted per operation and outcome."""
        labels = {"operation": "fetch_prices", "outcome": "success"}
        before = sample("apprien_requests_total", labels)
        transport.queue(success('{"products": []}'))

        await backend.fetch_prices()

        assert sample("apprien_requests_total", labels) == before + 1

    @pytest.mark.asyncio
    async def test_error_reports_counted(
        self, backend: ApprienBackendConnection, transport: FakeTransport
    ):
        """Error reports are counted per status code."""
        before = sample("apprien_error_reports_total", {"status_code": "None"})
        transport.queue(network_error())

        await backend.fetch_prices()

        assert sample("apprien_error_reports_total", {"status_code": "None"}) == before + 1

    @pytest.mark.asyncio
    async def test_variants_applied_counted(
        self, manager: ApprienManager, transport: FakeTransport, products
    ):
        before = sample("apprien_variants_applied_total")
        transport.queue(success('{"products": [{"base": "A", "variant": "A-v"}]}'))

        await manager.fetch_apprien_prices(products)

        assert sample("apprien_variants_applied_total") == before + 1

    @pytest.mark.asyncio
    async def test_parse_failures_counted(
        self, manager: ApprienManager, transport: FakeTransport, products
    ):
        before = sample("apprien_price_parse_failures_total")
        transport.queue(success("not json"))

        await manager.fetch_apprien_prices(products)

        assert sample("apprien_price_parse_failures_total") == before + 1

    def test_disabled_metrics_record_nothing(self, monkeypatch: pytest.MonkeyPatch):
        """Recording is a no-op when metrics are disabled."""
        monkeypatch.setattr(metrics, "enabled", False)
        before = sample("apprien_variants_applied_total")

        metrics.record_variants_applied(5)
        metrics.record_parse_failure()

        assert sample("apprien_variants_applied_total") == before


class TestTracing:
    """Tests for request spans."""

    @pytest.fixture
    def exporter(self, monkeypatch: pytest.MonkeyPatch) -> InMemorySpanExporter:
        exporter = InMemorySpanExporter()
        provider = TracerProvider()
        provider.add_span_processor(SimpleSpanProcessor(exporter))
        monkeypatch.setattr(tracing, "get_tracer", provider.get_tracer)
        return exporter

    @pytest.mark.asyncio
    async def test_successful_request_span(
        self,
        backend: ApprienBackendConnection,
        transport: FakeTransport,
        exporter: InMemorySpanExporter,
    ):
        transport.queue(success('{"products": []}'))

        await backend.fetch_prices()

        (span,) = exporter.get_finished_spans()
        assert span.name == "apprien.fetch_prices"
        assert span.attributes["outcome"] == "success"
        assert span.attributes["http_status_code"] == 200
        assert span.attributes["store"] == "google"

    @pytest.mark.asyncio
    async def test_failed_request_span_is_error(
        self,
        backend: ApprienBackendConnection,
        transport: FakeTransport,
        exporter: InMemorySpanExporter,
    ):
        """Failures mark the span as an error with the exception recorded."""
        transport.queue(http_error(500))

        await backend.fetch_prices()

        (span,) = exporter.get_finished_spans()
        assert span.status.status_code is StatusCode.ERROR
        assert span.attributes["outcome"] == "protocol_error"
        assert span.events[0].name == "exception"

    @pytest.mark.asyncio
    async def test_request_sent_inside_span(
        self,
        backend: ApprienBackendConnection,
        transport: FakeTransport,
        exporter: InMemorySpanExporter,
    ):
        """The transport sees the request span as current, so HTTP spans nest under it."""
        current: list[str] = []
        send = transport.send

        def recording_send(*args, **kwargs):
            current.append(trace.get_current_span().name)
            return send(*args, **kwargs)

        transport.send = recording_send  # type: ignore[method-assign]
        transport.queue(success('{"products": []}'))

        await backend.fetch_prices()

        assert current == ["apprien.fetch_prices"]

    def test_add_span_attributes_skips_none(self):
        span = MagicMock()

        tracing.add_span_attributes(span, a=1, b=None, c=["x"])

        span.set_attribute.assert_any_call("a", 1)
        span.set_attribute.assert_any_call("c", "['x']")
        assert span.set_attribute.call_count == 2
