"""Time source integration."""

from session_daemon.integrations.clock.abc import Clock
from session_daemon.integrations.clock.fake import FakeClock
from session_daemon.integrations.clock.real import RealClock

__all__ = ["Clock", "FakeClock", "RealClock"]
