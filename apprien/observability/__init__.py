"""
Observability module - Logging, Metrics, and Tracing.
"""

from apprien.observability.logging import get_logger, log_context, setup_logging
from apprien.observability.metrics import metrics
from apprien.observability.tracing import setup_tracing

__all__ = [
    "get_logger",
    "log_context",
    "setup_logging",
    "metrics",
    "setup_tracing",
]
