"""
Connection configuration - Immutable settings for one Apprien integration.
"""

from dataclasses import dataclass
from enum import Enum


class IntegrationType(str, Enum):
    """Stores Apprien can integrate against."""

    GOOGLE_PLAY_STORE = "GooglePlayStore"
    APPLE_APP_STORE = "AppleAppStore"


# Resource names the Apprien API uses for each store
INTEGRATION_URI: dict[IntegrationType, str] = {
    IntegrationType.GOOGLE_PLAY_STORE: "google",
    IntegrationType.APPLE_APP_STORE: "apple",
}


@dataclass(frozen=True)
class ConnectionConfig:
    """Configuration for the Apprien Game API connection."""

    package_name: str  # Game package name / bundle id
    token: str  # OAuth2 token from the Apprien Dashboard
    integration_type: IntegrationType
    apprien_identifier: str  # Hashed device id sent as Session-Id
    api_base_url: str = "https://game.apprien.com"
    request_timeout: float = 3.0

    @property
    def store_identifier(self) -> str:
        """Store resource name for the configured integration."""
        return INTEGRATION_URI[self.integration_type]

    @property
    def api_root(self) -> str:
        return self.api_base_url.rstrip("/")

    def __post_init__(self) -> None:
        """Validate configuration fields."""
        if not self.package_name:
            raise ValueError("Package name required")
        if not isinstance(self.integration_type, IntegrationType):
            raise ValueError(f"Unknown integration type: {self.integration_type}")
        if self.request_timeout <= 0:
            raise ValueError(f"Request timeout must be positive: {self.request_timeout}")
