"""
SDK Configuration - Pydantic Settings for type-safe config.

FAIL FAST - Invalid values are rejected when the settings are loaded.
"""

import sys

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from apprien.exceptions import ConfigurationError


class Settings(BaseSettings):
    """SDK settings loaded from APPRIEN_* environment variables."""

    # Apprien Game API
    api_base_url: str = "https://game.apprien.com"
    request_timeout: float = 3.0  # seconds, logical timeout for price fetches
    poll_interval: float = 0.01  # seconds between completion checks
    transport_timeout: float = 30.0  # socket-level timeout handed to httpx

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"  # json or console

    # Observability - Metrics
    metrics_enabled: bool = True

    # Observability - Tracing (export only starts once setup_tracing() is called)
    tracing_enabled: bool = True
    otlp_endpoint: str = "http://localhost:4317"
    otlp_insecure: bool = True
    trace_sample_rate: float = 1.0  # 1.0 = 100% sampling

    service_name: str = "apprien-sdk"
    sdk_version: str = "0.1.0"

    model_config = SettingsConfigDict(
        env_prefix="APPRIEN_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def validate_critical_config(self) -> "Settings":
        """
        FAIL FAST: Validate configuration at load time.

        A broken timeout or base URL would otherwise only surface as every
        price fetch silently falling back to base IAP ids.
        """
        errors: list[str] = []

        if not self.api_base_url.startswith(("http://", "https://")):
            errors.append(f"APPRIEN_API_BASE_URL must be an http(s) URL, got: {self.api_base_url}")
        if self.request_timeout <= 0:
            errors.append(f"APPRIEN_REQUEST_TIMEOUT must be positive, got: {self.request_timeout}")
        if self.poll_interval < 0:
            errors.append(f"APPRIEN_POLL_INTERVAL cannot be negative, got: {self.poll_interval}")
        if self.transport_timeout <= 0:
            errors.append(
                f"APPRIEN_TRANSPORT_TIMEOUT must be positive, got: {self.transport_timeout}"
            )
        if not 0.0 <= self.trace_sample_rate <= 1.0:
            errors.append(
                f"APPRIEN_TRACE_SAMPLE_RATE must be between 0 and 1, got: {self.trace_sample_rate}"
            )
        if self.log_format not in ("json", "console"):
            errors.append(f"APPRIEN_LOG_FORMAT must be 'json' or 'console', got: {self.log_format}")

        if errors:
            error_msg = "\n".join(
                [
                    "",
                    "=" * 60,
                    "APPRIEN SDK CONFIGURATION ERROR",
                    "=" * 60,
                    *[f"  ✗ {e}" for e in errors],
                    "=" * 60,
                    "",
                ]
            )
            print(error_msg, file=sys.stderr)
            raise ConfigurationError(error_msg)

        return self

    @property
    def api_root(self) -> str:
        """Base URL without a trailing slash."""
        return self.api_base_url.rstrip("/")


# Global settings instance - validates at import time
settings = Settings()


def get_settings() -> Settings:
    """Get SDK settings instance."""
    return settings
