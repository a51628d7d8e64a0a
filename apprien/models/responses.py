"""
Response models - Immutable results of Apprien API requests.

Each operation has its own result type so the success payload is precise:
the raw bulk JSON, a single variant id, or a receipt status and body.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class FetchPricesResult:
    """Result of fetching all price variants for the game."""

    success: bool
    json: str | None = None  # Raw response body on success, not parsed here
    error_message: str | None = None


@dataclass(frozen=True)
class FetchPriceResult:
    """Result of fetching the price variant of a single product."""

    success: bool
    variant_id: str | None = None
    error_message: str | None = None


@dataclass(frozen=True)
class PostReceiptResult:
    """Result of posting a purchase receipt."""

    status_code: int | None  # None when no response was received
    body: str | None = None
    error_message: str | None = None

    @property
    def success(self) -> bool:
        """Receipt was accepted."""
        return self.status_code == 200
