"""Time authority port.

Every service that needs the current time injects a TimeAuthorityProtocol
implementation instead of reading the system clock. Production uses
SystemTimeAuthority; tests use FakeTimeAuthority from tests/helpers.
"""

from abc import ABC, abstractmethod
from datetime import datetime


class TimeAuthorityProtocol(ABC):
    """Abstract interface for time authority.

    Example usage:
        class MyService:
            def __init__(self, time_authority: TimeAuthorityProtocol) -> None:
                self._time = time_authority

            def process(self) -> None:
                now = self._time.now()  # NOT datetime.now()
    """

    @abstractmethod
    def now(self) -> datetime:
        """Return the current time, timezone-aware (UTC)."""
        ...

    @abstractmethod
    def utcnow(self) -> datetime:
        """Return the current UTC time."""
        ...

    @abstractmethod
    def monotonic(self) -> float:
        """Return a monotonic clock value in seconds, for elapsed time only."""
        ...
