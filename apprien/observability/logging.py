"""
Structured Logging with Structlog.

Provides JSON-formatted SDK logs with context such as the game package.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from apprien.config import settings

SDK_LOGGER_NAME = "apprien"


def add_sdk_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add SDK-level context to all log entries."""
    event_dict["service"] = settings.service_name
    event_dict["version"] = settings.sdk_version
    return event_dict


def setup_logging() -> None:
    """
    Configure structured logging with structlog.

    Logs are formatted as JSON for machine parsing with the following structure:
    {
        "event": "apprien_prices_fetched",
        "level": "info",
        "timestamp": "2025-01-08T12:00:00.123456Z",
        "logger": "apprien.services.backend_connection",
        "service": "apprien-sdk",
        "version": "0.1.0",
        "package_name": "com.example.game",
        ...additional context
    }

    Opt-in for games without their own logging setup. Only the "apprien"
    stdlib logger gets a handler; the host's root logger is left alone.
    """
    sdk_logger = logging.getLogger(SDK_LOGGER_NAME)
    sdk_logger.setLevel(getattr(logging, settings.log_level.upper()))
    sdk_logger.propagate = False
    if not sdk_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter("%(message)s"))
        sdk_logger.addHandler(handler)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_sdk_context,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    if settings.log_level.upper() == "DEBUG":
        processors.append(structlog.processors.ExceptionRenderer())
    else:
        processors.append(structlog.processors.format_exc_info)

    if settings.log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Usage:
        logger = get_logger(__name__)
        logger.info("apprien_prices_fetched", package_name=package_name, count=3)
    """
    return structlog.get_logger(name)  # type: ignore[no-any-return]


class log_context:
    """
    Context manager for adding structured logging context.

    Usage:
        with log_context(package_name="com.example.game", store="google"):
            logger.info("fetching_apprien_prices")
    """

    def __init__(self, **kwargs: Any) -> None:
        self.context = kwargs

    def __enter__(self) -> None:
        """Enter context - bind context variables."""
        structlog.contextvars.bind_contextvars(**self.context)

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit context - clear context variables."""
        structlog.contextvars.unbind_contextvars(*self.context.keys())
