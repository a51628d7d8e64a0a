"""Clock used to measure request timeouts."""

import time
from typing import Protocol


class TimeProvider(Protocol):
    """Source of the current time in seconds."""

    def now(self) -> float: ...


class SystemTimeProvider:
    """Monotonic system clock."""

    def now(self) -> float:
        return time.monotonic()
