"""
Metrics Collection with Prometheus.

Counts Apprien API requests and how price resolution ended, so games can
see how often players fall back to base prices.
"""

from enum import Enum

from prometheus_client import Counter, Histogram, Info

from apprien.config import settings


class MetricLabels(str, Enum):
    """Standard metric label names."""

    OPERATION = "operation"
    OUTCOME = "outcome"
    STATUS_CODE = "status_code"


class SdkMetrics:
    """
    Centralized metrics for the Apprien SDK.

    - API requests (rate, duration, outcome)
    - Error reports sent to Apprien
    - Price resolution (variants applied, parse failures)
    """

    def __init__(self, enabled: bool = True) -> None:
        """Initialize all Prometheus metrics."""
        self.enabled = enabled

        self.sdk_info = Info(
            "apprien_sdk",
            "SDK information",
        )
        self.sdk_info.info(
            {
                "version": settings.sdk_version,
                "service_name": settings.service_name,
            }
        )

        # ====================================================================
        # Request Metrics
        # ====================================================================
        self.requests_total = Counter(
            "apprien_requests_total",
            "Total Apprien API requests",
            [MetricLabels.OPERATION.value, MetricLabels.OUTCOME.value],
        )

        self.request_duration_seconds = Histogram(
            "apprien_request_duration_seconds",
            "Apprien API request duration in seconds, until completion or timeout",
            [MetricLabels.OPERATION.value],
            buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 3.0, 5.0, 10.0),
        )

        self.error_reports_total = Counter(
            "apprien_error_reports_total",
            "Error reports sent to the Apprien error endpoint",
            [MetricLabels.STATUS_CODE.value],
        )

        # ====================================================================
        # Price Resolution Metrics
        # ====================================================================
        self.variants_applied_total = Counter(
            "apprien_variants_applied_total",
            "Products switched to an Apprien variant IAP id",
        )

        self.price_parse_failures_total = Counter(
            "apprien_price_parse_failures_total",
            "Successful price responses that could not be parsed",
        )

    # ========================================================================
    # Helper Methods
    # ========================================================================

    def record_request(self, operation: str, outcome: str, duration: float) -> None:
        """Record API request metrics."""
        if not self.enabled:
            return
        self.requests_total.labels(operation=operation, outcome=outcome).inc()
        self.request_duration_seconds.labels(operation=operation).observe(duration)

    def record_error_report(self, status_code: int | None) -> None:
        """Record an error report."""
        if not self.enabled:
            return
        self.error_reports_total.labels(status_code=str(status_code)).inc()

    def record_variants_applied(self, count: int) -> None:
        """Record products that received a variant."""
        if not self.enabled or count <= 0:
            return
        self.variants_applied_total.inc(count)

    def record_parse_failure(self) -> None:
        """Record an unparseable price response."""
        if not self.enabled:
            return
        self.price_parse_failures_total.inc()


# Global metrics instance
metrics = SdkMetrics(enabled=settings.metrics_enabled)
