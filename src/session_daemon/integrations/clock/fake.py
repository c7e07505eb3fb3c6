"""Fake Clock implementation for testing."""

from datetime import UTC, datetime, timedelta

from session_daemon.integrations.clock.abc import Clock


class FakeClock(Clock):
    """In-memory clock that only moves when told to.

    The starting time is provided via constructor.
    """

    def __init__(self, now: datetime | None = None) -> None:
        """Create FakeClock.

        Args:
            now: Starting time (defaults to 2024-01-15 10:30 UTC)
        """
        self._now = now or datetime(2024, 1, 15, 10, 30, 0, tzinfo=UTC)

    def now(self) -> datetime:
        return self._now

    def advance(self, delta: timedelta) -> None:
        """Move the clock forward by delta."""
        self._now = self._now + delta
