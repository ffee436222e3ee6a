from abc import ABC, abstractmethod
from datetime import datetime, timezone


class Clock(ABC):
    """
    Abstract source of time for the ledger.

    Record creation and the edit-window check must read the same clock,
    so both are handed one instance.
    """

    @abstractmethod
    def now(self) -> datetime:
        """Current time as an aware UTC datetime."""
        pass


class SystemClock(Clock):
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)
