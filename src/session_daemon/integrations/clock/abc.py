"""Clock abstraction for testing.

Status derivation, the recency filter and PR cache expiry all depend on the
current time; routing them through this ABC keeps them deterministic in tests.
"""

from abc import ABC, abstractmethod
from datetime import datetime


class Clock(ABC):
    """Abstract wall clock for dependency injection."""

    @abstractmethod
    def now(self) -> datetime:
        """Return the current time as a timezone-aware UTC datetime."""
        ...
