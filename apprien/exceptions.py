"""
Exception Classes - Strongly typed exception hierarchy.

Request failures are raised inside the backend connection and converted
into result objects before they reach SDK callers.
"""


class ApprienError(Exception):
    """Base exception for all Apprien SDK errors."""

    pass


class ConfigurationError(ApprienError):
    """Raised when SDK configuration is missing or invalid."""

    pass


class RequestTimeoutError(ApprienError):
    """Raised when a request is still pending after the configured timeout."""

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f"Request timed out after {timeout}s")


class ProtocolFailureError(ApprienError):
    """Raised when the Apprien API answers with an error status."""

    def __init__(self, status_code: int | None, body: str = "") -> None:
        self.status_code = status_code
        self.body = body
        snippet = body[:200]
        super().__init__(f"HTTP error {status_code}: {snippet}")


class ConnectionFailureError(ApprienError):
    """Raised when no response could be obtained from the Apprien API."""

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail
        super().__init__(f"Network error: {detail}" if detail else "Network error")


class UnexpectedResponseError(ApprienError):
    """Raised when a request completed without error but not with HTTP 200."""

    def __init__(self, status_code: int | None, body: str = "") -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"Unexpected response code {status_code}")


class PriceParseError(ApprienError):
    """Raised when a successful price response cannot be parsed."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"Price response parse error: {message}")
